from __future__ import annotations

from typing import Any


class ScheduleError(Exception):
    """Base class for errors reported back to the admin placing/linking lessons."""

    code = "SCHEDULE_ERROR"
    status_code = 400

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "errors": self.errors}


class ValidationError(ScheduleError):
    """A required attribute is missing or malformed. Nothing was persisted."""

    code = "VALIDATION_ERROR"


class InvalidRange(ValidationError):
    """end_time is not after start_time."""

    code = "INVALID_RANGE"


class IncompatibleGroups(ValidationError):
    code = "INCOMPATIBLE_GROUPS"


class SlotConflict(ScheduleError):
    """The candidate cell overlaps one or more cells on the same table/day."""

    code = "SLOT_CONFLICT"
    status_code = 409

    def __init__(self, message: str, *, conflicts: list[dict[str, Any]]) -> None:
        super().__init__(message, errors=[f"Overlaps cell {c['id']}" for c in conflicts])
        self.conflicts = conflicts

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["conflicts"] = self.conflicts
        return out
