from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Integer, Text
from sqlalchemy.sql import func

from models.base import Base


class Group(Base):
    """A student group. Owned by the groups module; read-only for scheduling."""

    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    name = Column(Text, nullable=False)
    education_level = Column(Text, nullable=True)
    grade = Column(Text, nullable=True)
    subject_id = Column(Integer, nullable=True)
    teacher_id = Column(Integer, nullable=True)
    max_members = Column(Integer, nullable=True)
    students_assigned = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def students_count(self) -> int:
        return len(self.students_assigned or [])
