from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from core.config import Settings, settings
from services.errors import ValidationError


_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

OFF_GRID_REJECT = "reject"
OFF_GRID_SNAP = "snap"


def parse_hhmm(value: str) -> int:
    """Parse a 24-hour "HH:MM" string into minutes after midnight."""

    m = _HHMM_RE.match(str(value or "").strip())
    if m is None:
        raise ValidationError("Malformed time", errors=[f"INVALID_TIME:{value!r}"])
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError("Malformed time", errors=[f"INVALID_TIME:{value!r}"])
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class SlotCatalog:
    """Ordered 1-based periods at a fixed spacing across the operating day."""

    first_minute: int
    last_minute: int
    step_minutes: int

    def __post_init__(self) -> None:
        if self.step_minutes < 1:
            raise ValueError("step_minutes must be >= 1")
        if self.last_minute < self.first_minute:
            raise ValueError("last slot must not precede the first slot")

    @classmethod
    def from_times(cls, first: str, last: str, step_minutes: int = 30) -> "SlotCatalog":
        return cls(parse_hhmm(first), parse_hhmm(last), int(step_minutes))

    @classmethod
    def from_settings(cls, cfg: Settings) -> "SlotCatalog":
        return cls.from_times(cfg.slot_first_time, cfg.slot_last_time, cfg.slot_minutes)

    def __len__(self) -> int:
        return (self.last_minute - self.first_minute) // self.step_minutes + 1

    @property
    def first_period(self) -> int:
        return 1

    @property
    def last_period(self) -> int:
        return len(self)

    @property
    def periods(self) -> range:
        return range(self.first_period, self.last_period + 1)

    def slots(self) -> list[tuple[int, str]]:
        return [(p, self._time_at(p)) for p in self.periods]

    def minute_for_period(self, period: int) -> int:
        return self.first_minute + (period - 1) * self.step_minutes

    def _time_at(self, period: int) -> str:
        return format_hhmm(self.minute_for_period(period))

    def period_for_time(self, value: str) -> int | None:
        """Exact lookup; anything off the grid or outside the window is None."""

        try:
            minutes = parse_hhmm(value)
        except ValidationError:
            return None
        offset = minutes - self.first_minute
        if offset < 0 or offset % self.step_minutes:
            return None
        period = offset // self.step_minutes + 1
        return period if period <= self.last_period else None

    def time_for_period(self, period: int) -> str | None:
        if period < self.first_period or period > self.last_period:
            return None
        return self._time_at(period)

    def resolve_period(self, value: str, *, policy: str = OFF_GRID_REJECT) -> int:
        """Map a start time to a period, applying the off-grid policy.

        `reject` fails on any time that is not exactly a slot label.
        `snap` places the lesson on the slot that holds its start time, so the
        drawn interval never begins after the real lesson does.
        """

        period = self.period_for_time(value)
        if period is not None:
            return period

        minutes = parse_hhmm(value)
        if minutes < self.first_minute or minutes >= self.last_minute + self.step_minutes:
            raise ValidationError(
                "Start time is outside the operating window",
                errors=[f"START_TIME_OUTSIDE_WINDOW:{value}"],
            )
        if policy != OFF_GRID_SNAP:
            raise ValidationError(
                f"Start time must fall on the {self.step_minutes}-minute slot grid",
                errors=[f"START_TIME_OFF_GRID:{value}"],
            )

        return (minutes - self.first_minute) // self.step_minutes + 1


@lru_cache(maxsize=1)
def get_slot_catalog() -> SlotCatalog:
    """Process-wide catalog, built once from settings (FastAPI dependency)."""

    return SlotCatalog.from_settings(settings)
