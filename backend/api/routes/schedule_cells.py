from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.deps import get_catalog, get_off_grid_policy, get_tenant_id, require_admin
from api.tenant import get_by_id, where_tenant
from core.database import get_db
from models.schedule_cell import ScheduleCell
from models.schedule_table import ScheduleTable
from models.user import User
from schemas.schedule_cell import (
    LinkGroupsRequest,
    LinkGroupsResponse,
    LinkedGroupOut,
    ScheduleCellIn,
    ScheduleCellOut,
    SlotOut,
)
from services.grid import placed_from
from services.group_linking import drop_incompatible_links, get_linked_groups, link_groups
from services.placement import CellDraft, check_required_fields, validate_placement
from services.slot_catalog import SlotCatalog


logger = logging.getLogger(__name__)


router = APIRouter()


def _cell_out(cell: ScheduleCell, catalog: SlotCatalog) -> ScheduleCellOut:
    span = placed_from(cell, catalog=catalog).span
    return ScheduleCellOut.model_validate(cell).model_copy(update={"span": span})


def _draft(payload: ScheduleCellIn) -> CellDraft:
    return CellDraft(
        table_id=payload.table_id,
        day_of_week=payload.day_of_week,
        start_time=payload.start_time.strip() if payload.start_time else payload.start_time,
        end_time=payload.end_time.strip() if payload.end_time else payload.end_time,
        education_level=payload.education_level.strip() if payload.education_level else payload.education_level,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
        grade=(payload.grade or "").strip() or None,
        gender=(payload.gender or "").strip().lower() or None,
    )


def _lock_table(db: Session, table_id: int, *, tenant_id: int | None) -> ScheduleTable:
    # Row lock on the owning table serializes concurrent placements on it until commit.
    q = where_tenant(select(ScheduleTable).where(ScheduleTable.id == table_id), ScheduleTable, tenant_id)
    table = db.execute(q.with_for_update()).scalars().first()
    if table is None:
        raise HTTPException(status_code=404, detail="SCHEDULE_TABLE_NOT_FOUND")
    return table


def _cells_on_day(db: Session, *, table_id: int, day_of_week: int) -> list[ScheduleCell]:
    return (
        db.execute(
            select(ScheduleCell)
            .where(ScheduleCell.table_id == table_id)
            .where(ScheduleCell.day_of_week == day_of_week)
        )
        .scalars()
        .all()
    )


def _get_cell(db: Session, cell_id: int, *, tenant_id: int | None) -> ScheduleCell:
    cell = get_by_id(db, ScheduleCell, cell_id, tenant_id)
    if cell is None:
        raise HTTPException(status_code=404, detail="SCHEDULE_CELL_NOT_FOUND")
    return cell


@router.get("/slots", response_model=list[SlotOut])
def list_slots(catalog: SlotCatalog = Depends(get_catalog)) -> list[SlotOut]:
    return [SlotOut(period=p, time=t) for p, t in catalog.slots()]


@router.get("/table/{table_id}", response_model=list[ScheduleCellOut])
def list_cells(
    table_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
    catalog: SlotCatalog = Depends(get_catalog),
) -> list[ScheduleCellOut]:
    if get_by_id(db, ScheduleTable, table_id, tenant_id) is None:
        raise HTTPException(status_code=404, detail="SCHEDULE_TABLE_NOT_FOUND")

    cells = (
        db.execute(
            select(ScheduleCell)
            .where(ScheduleCell.table_id == table_id)
            .order_by(ScheduleCell.day_of_week.asc(), ScheduleCell.period.asc())
        )
        .scalars()
        .all()
    )
    return [_cell_out(c, catalog) for c in cells]


@router.get("/linked-groups/{table_id}", response_model=list[LinkedGroupOut])
def list_linked_groups(
    table_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> list[LinkedGroupOut]:
    if get_by_id(db, ScheduleTable, table_id, tenant_id) is None:
        raise HTTPException(status_code=404, detail="SCHEDULE_TABLE_NOT_FOUND")
    return [LinkedGroupOut(**row) for row in get_linked_groups(db, table_id=table_id, tenant_id=tenant_id)]


@router.post("/", response_model=ScheduleCellOut)
def create_cell(
    payload: ScheduleCellIn,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
    catalog: SlotCatalog = Depends(get_catalog),
    policy: str = Depends(get_off_grid_policy),
) -> ScheduleCellOut:
    draft = _draft(payload)
    check_required_fields(draft)
    _lock_table(db, int(draft.table_id), tenant_id=tenant_id)

    existing = _cells_on_day(db, table_id=int(draft.table_id), day_of_week=int(draft.day_of_week))
    placement = validate_placement(draft, existing, catalog=catalog, policy=policy)

    cell = ScheduleCell(
        tenant_id=tenant_id,
        table_id=draft.table_id,
        day_of_week=draft.day_of_week,
        period=placement.period,
        duration=placement.duration_class,
        start_time=draft.start_time,
        end_time=draft.end_time,
        education_level=draft.education_level,
        grade=draft.grade,
        gender=draft.gender,
        subject_id=draft.subject_id,
        teacher_id=draft.teacher_id,
    )
    db.add(cell)
    db.commit()
    db.refresh(cell)

    logger.info(
        "Schedule cell created id=%s table_id=%s day=%s period=%s span=%s by user_id=%s",
        cell.id,
        cell.table_id,
        cell.day_of_week,
        cell.period,
        placement.span,
        admin.id,
    )
    return _cell_out(cell, catalog)


@router.put("/{cell_id}", response_model=ScheduleCellOut)
def update_cell(
    cell_id: int,
    payload: ScheduleCellIn,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
    catalog: SlotCatalog = Depends(get_catalog),
    policy: str = Depends(get_off_grid_policy),
) -> ScheduleCellOut:
    cell = _get_cell(db, cell_id, tenant_id=tenant_id)

    draft = _draft(payload)
    check_required_fields(draft)
    _lock_table(db, int(draft.table_id), tenant_id=tenant_id)

    existing = _cells_on_day(db, table_id=int(draft.table_id), day_of_week=int(draft.day_of_week))
    placement = validate_placement(draft, existing, catalog=catalog, policy=policy, exclude_cell_id=cell.id)

    cell.table_id = draft.table_id
    cell.day_of_week = draft.day_of_week
    cell.period = placement.period
    cell.duration = placement.duration_class
    cell.start_time = draft.start_time
    cell.end_time = draft.end_time
    cell.education_level = draft.education_level
    cell.grade = draft.grade
    cell.gender = draft.gender
    cell.subject_id = draft.subject_id
    cell.teacher_id = draft.teacher_id
    unlinked = drop_incompatible_links(db, cell=cell)
    db.commit()
    db.refresh(cell)

    logger.info(
        "Schedule cell updated id=%s table_id=%s day=%s period=%s span=%s unlinked_groups=%s",
        cell.id,
        cell.table_id,
        cell.day_of_week,
        cell.period,
        placement.span,
        unlinked,
    )
    return _cell_out(cell, catalog)


@router.delete("/{cell_id}")
def delete_cell(
    cell_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> dict:
    cell = _get_cell(db, cell_id, tenant_id=tenant_id)
    db.delete(cell)
    db.commit()
    return {"ok": True}


@router.post("/{cell_id}/link-groups", response_model=LinkGroupsResponse)
def link_cell_groups(
    cell_id: int,
    payload: LinkGroupsRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> LinkGroupsResponse:
    cell = _get_cell(db, cell_id, tenant_id=tenant_id)
    linked = link_groups(db, cell=cell, group_ids=payload.group_ids, assigned_by=admin.id, tenant_id=tenant_id)
    return LinkGroupsResponse(ok=True, cell_id=cell.id, group_ids=linked)


@router.get("/{cell_id}", response_model=ScheduleCellOut)
def get_cell(
    cell_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
    catalog: SlotCatalog = Depends(get_catalog),
) -> ScheduleCellOut:
    return _cell_out(_get_cell(db, cell_id, tenant_id=tenant_id), catalog)
