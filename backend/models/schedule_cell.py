from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


CELL_GENDERS = ("male", "female", "mixed")


class ScheduleCell(Base):
    """A lesson placed in a schedule table.

    `start_time`/`end_time` are authoritative; `period` and `duration` are
    derived from them when the cell is written.
    """

    __tablename__ = "schedule_cells"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    table_id = Column(Integer, ForeignKey("schedule_tables.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    period = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False, default=1)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    education_level = Column(Text, nullable=False)
    grade = Column(Text, nullable=True)
    gender = Column(String(10), nullable=True)
    subject_id = Column(Integer, nullable=False)
    teacher_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    table = relationship("ScheduleTable", back_populates="cells")
    group_links = relationship(
        "GroupScheduleAssignment",
        back_populates="cell",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 and day_of_week <= 6", name="ck_schedule_cells_day"),
        CheckConstraint("period >= 1", name="ck_schedule_cells_period"),
        CheckConstraint("duration >= 1 and duration <= 4", name="ck_schedule_cells_duration"),
        CheckConstraint(
            "gender is null or gender in ('male', 'female', 'mixed')",
            name="ck_schedule_cells_gender",
        ),
        Index("ix_schedule_cells_table_day", "table_id", "day_of_week"),
    )
