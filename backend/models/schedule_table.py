from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base import Base


class ScheduleTable(Base):
    """One room's weekly grid."""

    __tablename__ = "schedule_tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    cells = relationship(
        "ScheduleCell",
        back_populates="table",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
