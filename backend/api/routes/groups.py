from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.deps import get_tenant_id, require_admin
from api.tenant import get_by_id
from core.config import settings
from core.database import get_db
from models.group import Group
from schemas.group import CompatibleGroupOut, GroupScheduleAssignmentOut, ScheduledDatesOut
from services.group_linking import find_compatible_groups, get_group_schedule_assignments
from services.lesson_dates import scheduled_lesson_dates


router = APIRouter()


def _get_group(db: Session, group_id: int, *, tenant_id: int | None) -> Group:
    group = get_by_id(db, Group, group_id, tenant_id)
    if group is None:
        raise HTTPException(status_code=404, detail="GROUP_NOT_FOUND")
    return group


@router.get("/compatible", response_model=list[CompatibleGroupOut])
def list_compatible_groups(
    subject_id: int | None = Query(default=None),
    teacher_id: int | None = Query(default=None),
    education_level: str | None = Query(default=None),
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> list[CompatibleGroupOut]:
    level = (education_level or "").strip() or None
    groups = find_compatible_groups(
        db,
        subject_id=subject_id,
        teacher_id=teacher_id,
        education_level=level,
        tenant_id=tenant_id,
    )
    return [CompatibleGroupOut.model_validate(g) for g in groups]


@router.get("/{group_id}/schedule-assignments", response_model=list[GroupScheduleAssignmentOut])
def list_group_schedule_assignments(
    group_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> list[GroupScheduleAssignmentOut]:
    _get_group(db, group_id, tenant_id=tenant_id)
    rows = get_group_schedule_assignments(db, group_id=group_id, tenant_id=tenant_id)
    return [GroupScheduleAssignmentOut(**r) for r in rows]


@router.get("/{group_id}/scheduled-dates", response_model=ScheduledDatesOut)
def list_group_scheduled_dates(
    group_id: int,
    from_date: date | None = Query(default=None),
    weeks: int | None = Query(default=None, ge=1, le=520),
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> ScheduledDatesOut:
    _get_group(db, group_id, tenant_id=tenant_id)
    rows = get_group_schedule_assignments(db, group_id=group_id, tenant_id=tenant_id)
    dates = scheduled_lesson_dates(
        [r["day_of_week"] for r in rows if r["is_active"]],
        today=from_date or date.today(),
        week_start_weekday=settings.week_start_weekday,
        weeks=weeks or settings.lesson_dates_weeks,
    )
    return ScheduledDatesOut(dates=dates)
