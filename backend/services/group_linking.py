from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from api.tenant import where_tenant
from models.group import Group
from models.group_schedule_assignment import GroupScheduleAssignment
from models.schedule_cell import ScheduleCell
from models.schedule_table import ScheduleTable
from services.errors import IncompatibleGroups


logger = logging.getLogger(__name__)


def is_compatible(group: Any, *, subject_id: int | None, teacher_id: int | None, education_level: str | None) -> bool:
    return (
        group.subject_id == subject_id
        and group.teacher_id == teacher_id
        and group.education_level == education_level
    )


def find_compatible_groups(
    db: Session,
    *,
    subject_id: int | None,
    teacher_id: int | None,
    education_level: str | None,
    tenant_id: int | None = None,
) -> list[Group]:
    """Groups whose subject, teacher and education level all equal the cell's.

    Returns an empty list when any of the three keys is missing.
    """

    if subject_id is None or teacher_id is None or not education_level:
        return []

    q = (
        select(Group)
        .where(Group.subject_id == subject_id)
        .where(Group.teacher_id == teacher_id)
        .where(Group.education_level == education_level)
        .order_by(Group.name.asc(), Group.id.asc())
    )
    q = where_tenant(q, Group, tenant_id)
    return list(db.execute(q).scalars().all())


def _dedupe(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    out: list[int] = []
    for i in ids:
        i = int(i)
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


def link_groups(
    db: Session,
    *,
    cell: ScheduleCell,
    group_ids: Iterable[int],
    assigned_by: int | None = None,
    tenant_id: int | None = None,
) -> list[int]:
    """Replace the cell's group links with exactly `group_ids`.

    Every id must name an existing group compatible with the cell, otherwise
    IncompatibleGroups is raised and the current links are left untouched.
    Commits on success and returns the linked ids in request order.
    """

    wanted = _dedupe(group_ids)

    if wanted:
        found = {
            g.id: g
            for g in db.execute(where_tenant(select(Group).where(Group.id.in_(wanted)), Group, tenant_id))
            .scalars()
            .all()
        }
        errors: list[str] = []
        for gid in wanted:
            group = found.get(gid)
            if group is None:
                errors.append(f"GROUP_NOT_FOUND:{gid}")
            elif not is_compatible(
                group,
                subject_id=cell.subject_id,
                teacher_id=cell.teacher_id,
                education_level=cell.education_level,
            ):
                errors.append(f"GROUP_NOT_COMPATIBLE:{gid}")
        if errors:
            raise IncompatibleGroups("Some groups cannot be linked to this lesson", errors=errors)

    db.execute(delete(GroupScheduleAssignment).where(GroupScheduleAssignment.schedule_cell_id == cell.id))
    for gid in wanted:
        db.add(
            GroupScheduleAssignment(
                tenant_id=tenant_id,
                group_id=gid,
                schedule_cell_id=cell.id,
                assigned_by=assigned_by,
                is_active=True,
            )
        )
    db.commit()

    logger.info("Linked groups cell_id=%s group_ids=%s assigned_by=%s", cell.id, wanted, assigned_by)
    return wanted


def drop_incompatible_links(db: Session, *, cell: ScheduleCell) -> list[int]:
    """Remove links to groups that no longer match the cell's subject, teacher or level.

    Runs inside the caller's transaction (no commit). Returns the unlinked group ids.
    """

    rows = db.execute(
        select(GroupScheduleAssignment.id, Group)
        .join(Group, Group.id == GroupScheduleAssignment.group_id)
        .where(GroupScheduleAssignment.schedule_cell_id == cell.id)
    ).all()
    stale = [
        (link_id, group.id)
        for link_id, group in rows
        if not is_compatible(
            group,
            subject_id=cell.subject_id,
            teacher_id=cell.teacher_id,
            education_level=cell.education_level,
        )
    ]
    if stale:
        db.execute(delete(GroupScheduleAssignment).where(GroupScheduleAssignment.id.in_([i for i, _ in stale])))
        logger.info("Unlinked incompatible groups cell_id=%s group_ids=%s", cell.id, [g for _, g in stale])
    return [g for _, g in stale]


def get_linked_groups(db: Session, *, table_id: int, tenant_id: int | None = None) -> list[dict[str, Any]]:
    q = (
        select(
            GroupScheduleAssignment.id,
            GroupScheduleAssignment.schedule_cell_id,
            GroupScheduleAssignment.group_id,
            Group.name,
            GroupScheduleAssignment.is_active,
            GroupScheduleAssignment.created_at,
        )
        .select_from(GroupScheduleAssignment)
        .join(ScheduleCell, ScheduleCell.id == GroupScheduleAssignment.schedule_cell_id)
        .join(Group, Group.id == GroupScheduleAssignment.group_id)
        .where(ScheduleCell.table_id == table_id)
        .where(GroupScheduleAssignment.is_active.is_(True))
        .order_by(Group.name.asc(), GroupScheduleAssignment.id.asc())
    )
    q = where_tenant(q, GroupScheduleAssignment, tenant_id)

    return [
        {
            "id": row_id,
            "cell_id": cell_id,
            "group_id": group_id,
            "group_name": group_name,
            "is_active": bool(is_active),
            "created_at": created_at,
        }
        for row_id, cell_id, group_id, group_name, is_active, created_at in db.execute(q).all()
    ]


def get_group_schedule_assignments(db: Session, *, group_id: int, tenant_id: int | None = None) -> list[dict[str, Any]]:
    q = (
        select(
            GroupScheduleAssignment.id,
            GroupScheduleAssignment.schedule_cell_id,
            GroupScheduleAssignment.is_active,
            GroupScheduleAssignment.created_at,
            ScheduleCell.day_of_week,
            ScheduleCell.period,
            ScheduleCell.start_time,
            ScheduleCell.end_time,
            ScheduleCell.education_level,
            ScheduleTable.name,
        )
        .select_from(GroupScheduleAssignment)
        .join(ScheduleCell, ScheduleCell.id == GroupScheduleAssignment.schedule_cell_id)
        .join(ScheduleTable, ScheduleTable.id == ScheduleCell.table_id)
        .where(GroupScheduleAssignment.group_id == group_id)
        .order_by(ScheduleCell.day_of_week.asc(), ScheduleCell.period.asc())
    )
    q = where_tenant(q, GroupScheduleAssignment, tenant_id)

    return [
        {
            "id": r[0],
            "cell_id": r[1],
            "is_active": bool(r[2]),
            "created_at": r[3],
            "day_of_week": int(r[4]),
            "period": int(r[5]),
            "start_time": r[6],
            "end_time": r[7],
            "education_level": r[8],
            "table_name": r[9],
        }
        for r in db.execute(q).all()
    ]
