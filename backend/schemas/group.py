from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class CompatibleGroupOut(BaseModel):
    id: int
    name: str
    education_level: str | None = None
    grade: str | None = None
    subject_id: int | None = None
    teacher_id: int | None = None
    students_count: int = 0

    class Config:
        from_attributes = True


class GroupScheduleAssignmentOut(BaseModel):
    id: int
    cell_id: int
    is_active: bool
    created_at: datetime | None = None
    day_of_week: int
    period: int
    start_time: str
    end_time: str
    education_level: str
    table_name: str


class ScheduledDatesOut(BaseModel):
    dates: list[date]
