from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from services.slot_catalog import SlotCatalog
from services.span import span_from_slot


DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class PlacedCell:
    """A cell as the grid sees it: where it starts and how many periods it holds."""

    id: int | None
    day_of_week: int
    period: int
    span: int
    start_time: str
    end_time: str

    @property
    def end_period(self) -> int:
        # Exclusive.
        return self.period + self.span

    def overlaps(self, other: "PlacedCell") -> bool:
        return self.period < other.end_period and other.period < self.end_period


def placed_from(cell: Any, *, catalog: SlotCatalog) -> PlacedCell:
    period = int(cell.period)
    span = span_from_slot(
        cell.start_time,
        cell.end_time,
        slot_start=catalog.minute_for_period(period),
        slot_minutes=catalog.step_minutes,
    )
    return PlacedCell(
        id=getattr(cell, "id", None),
        day_of_week=int(cell.day_of_week),
        period=period,
        span=span,
        start_time=str(cell.start_time),
        end_time=str(cell.end_time),
    )


class GridStore:
    """Read-only projection of one table's cells, keyed by (day, start period)."""

    def __init__(self, cells: Iterable[Any], catalog: SlotCatalog) -> None:
        self.catalog = catalog
        self._by_start: dict[tuple[int, int], PlacedCell] = {}
        self._max_span = 1
        for cell in cells:
            placed = cell if isinstance(cell, PlacedCell) else placed_from(cell, catalog=catalog)
            self._by_start[(placed.day_of_week, placed.period)] = placed
            self._max_span = max(self._max_span, placed.span)

    def __len__(self) -> int:
        return len(self._by_start)

    @property
    def max_span(self) -> int:
        return self._max_span

    def span_of(self, cell: Any) -> int:
        if isinstance(cell, PlacedCell):
            return cell.span
        return placed_from(cell, catalog=self.catalog).span

    def cells(self) -> list[PlacedCell]:
        return sorted(self._by_start.values(), key=lambda c: (c.day_of_week, c.period))

    def cells_on(self, day: int) -> list[PlacedCell]:
        return [c for c in self.cells() if c.day_of_week == day]

    def cell_at(self, day: int, period: int) -> PlacedCell | None:
        return self._by_start.get((day, period))

    def covering_cell(self, day: int, period: int) -> PlacedCell | None:
        """The earlier cell whose span reaches `period`, if any."""

        lowest = max(self.catalog.first_period, period - (self._max_span - 1))
        for start in range(period - 1, lowest - 1, -1):
            cell = self._by_start.get((day, start))
            if cell is not None and cell.end_period > period:
                return cell
        return None

    def is_covered(self, day: int, period: int) -> bool:
        return self.covering_cell(day, period) is not None

    def render_rows(self) -> list[dict[str, Any]]:
        """Occupancy per period and day; a multi-period cell is emitted once at its start."""

        rows: list[dict[str, Any]] = []
        for period in self.catalog.periods:
            days: list[dict[str, Any]] = []
            for day in range(DAYS_PER_WEEK):
                cell = self.cell_at(day, period)
                if cell is not None:
                    days.append({"day": day, "state": "start", "cell_id": cell.id, "span": cell.span})
                    continue
                covering = self.covering_cell(day, period)
                if covering is not None:
                    days.append({"day": day, "state": "covered", "cell_id": covering.id, "span": covering.span})
                else:
                    days.append({"day": day, "state": "empty", "cell_id": None, "span": 0})
            rows.append({"period": period, "time": self.catalog.time_for_period(period), "days": days})
        return rows
