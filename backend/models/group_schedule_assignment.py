from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


class GroupScheduleAssignment(Base):
    __tablename__ = "group_schedule_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    schedule_cell_id = Column(Integer, ForeignKey("schedule_cells.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    assigned_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    cell = relationship("ScheduleCell", back_populates="group_links")

    __table_args__ = (
        UniqueConstraint("schedule_cell_id", "group_id", name="uq_group_schedule_assignments_cell_group"),
    )
