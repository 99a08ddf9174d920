from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from models.schedule_cell import CELL_GENDERS
from services.errors import SlotConflict, ValidationError
from services.grid import PlacedCell, placed_from
from services.slot_catalog import OFF_GRID_REJECT, SlotCatalog
from services.span import resolve_span, span_from_slot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellDraft:
    """A cell as submitted by an admin, before anything is derived from it."""

    table_id: int | None
    day_of_week: int | None
    start_time: str | None
    end_time: str | None
    education_level: str | None
    subject_id: int | None
    teacher_id: int | None
    grade: str | None = None
    gender: str | None = None


@dataclass(frozen=True)
class Placement:
    period: int
    span: int
    duration_class: int
    minutes: int


_REQUIRED_FIELDS = (
    ("table_id", "TABLE_REQUIRED"),
    ("education_level", "EDUCATION_LEVEL_REQUIRED"),
    ("subject_id", "SUBJECT_REQUIRED"),
    ("teacher_id", "TEACHER_REQUIRED"),
    ("day_of_week", "DAY_REQUIRED"),
    ("start_time", "START_TIME_REQUIRED"),
    ("end_time", "END_TIME_REQUIRED"),
)


def check_required_fields(draft: CellDraft) -> None:
    errors: list[str] = []
    for field, code in _REQUIRED_FIELDS:
        value = getattr(draft, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(code)

    if draft.day_of_week is not None and not 0 <= int(draft.day_of_week) <= 6:
        errors.append("DAY_OUT_OF_RANGE")
    if draft.gender is not None and draft.gender not in CELL_GENDERS:
        errors.append("INVALID_GENDER")

    if errors:
        raise ValidationError("Missing or invalid lesson fields", errors=errors)


def prepare_placement(draft: CellDraft, *, catalog: SlotCatalog, policy: str = OFF_GRID_REJECT) -> Placement:
    """Derive period, span and duration class for a draft, or fail with ValidationError."""

    check_required_fields(draft)

    info = resolve_span(draft.start_time, draft.end_time, slot_minutes=catalog.step_minutes)
    period = catalog.resolve_period(draft.start_time, policy=policy)
    span = span_from_slot(
        draft.start_time,
        draft.end_time,
        slot_start=catalog.minute_for_period(period),
        slot_minutes=catalog.step_minutes,
    )

    last = period + span - 1
    if last > catalog.last_period:
        raise ValidationError(
            "Lesson runs past the last slot of the day",
            errors=[f"ENDS_AFTER_LAST_SLOT:{draft.end_time}"],
        )

    return Placement(period=period, span=span, duration_class=info.duration_class, minutes=info.minutes)


def find_conflicts(candidate: PlacedCell, existing: Iterable[PlacedCell]) -> list[PlacedCell]:
    return [
        other
        for other in existing
        if other.day_of_week == candidate.day_of_week
        and (candidate.id is None or other.id != candidate.id)
        and candidate.overlaps(other)
    ]


def validate_placement(
    draft: CellDraft,
    existing: Iterable[Any],
    *,
    catalog: SlotCatalog,
    policy: str = OFF_GRID_REJECT,
    exclude_cell_id: int | None = None,
) -> Placement:
    """Check a draft against the other cells of its table.

    `existing` holds the table's cells (ORM rows or PlacedCell). On edit pass
    the edited cell's id as `exclude_cell_id` so it is not compared with itself.
    Raises ValidationError before any overlap check, then SlotConflict.
    """

    placement = prepare_placement(draft, catalog=catalog, policy=policy)
    candidate = PlacedCell(
        id=exclude_cell_id,
        day_of_week=int(draft.day_of_week),
        period=placement.period,
        span=placement.span,
        start_time=str(draft.start_time),
        end_time=str(draft.end_time),
    )

    others = [
        c if isinstance(c, PlacedCell) else placed_from(c, catalog=catalog)
        for c in existing
        if getattr(c, "table_id", draft.table_id) == draft.table_id
    ]
    clashes = find_conflicts(candidate, others)
    if clashes:
        logger.info(
            "Placement rejected table_id=%s day=%s period=%s span=%s clashes=%s",
            draft.table_id,
            draft.day_of_week,
            placement.period,
            placement.span,
            [c.id for c in clashes],
        )
        raise SlotConflict(
            "Lesson overlaps an existing lesson on the same day",
            conflicts=[
                {
                    "id": c.id,
                    "day_of_week": c.day_of_week,
                    "period": c.period,
                    "span": c.span,
                    "start_time": c.start_time,
                    "end_time": c.end_time,
                }
                for c in clashes
            ],
        )

    return placement
