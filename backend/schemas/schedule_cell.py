from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScheduleCellIn(BaseModel):
    # Presence is checked by the placement validator so that missing fields
    # come back as one VALIDATION_ERROR listing all of them.
    table_id: int | None = None
    day_of_week: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    education_level: str | None = None
    grade: str | None = None
    gender: str | None = None
    subject_id: int | None = None
    teacher_id: int | None = None


class ScheduleCellOut(BaseModel):
    id: int
    table_id: int
    day_of_week: int
    period: int
    duration: int
    span: int = 1
    start_time: str
    end_time: str
    education_level: str
    grade: str | None = None
    gender: str | None = None
    subject_id: int
    teacher_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SlotOut(BaseModel):
    period: int
    time: str


class LinkGroupsRequest(BaseModel):
    group_ids: list[int] = Field(default_factory=list)


class LinkGroupsResponse(BaseModel):
    ok: bool = True
    cell_id: int
    group_ids: list[int]


class LinkedGroupOut(BaseModel):
    id: int
    cell_id: int
    group_id: int
    group_name: str
    is_active: bool
    created_at: datetime | None = None
