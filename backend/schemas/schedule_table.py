from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScheduleTableBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    is_active: bool = True


class ScheduleTableCreate(ScheduleTableBase):
    pass


class ScheduleTableUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    is_active: bool | None = None


class ScheduleTableOut(ScheduleTableBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GridDayOut(BaseModel):
    day: int
    state: str
    cell_id: int | None = None
    span: int = 0


class GridRowOut(BaseModel):
    period: int
    time: str
    days: list[GridDayOut]


class ScheduleGridOut(BaseModel):
    table_id: int
    max_span: int
    rows: list[GridRowOut]
