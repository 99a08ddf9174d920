from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.deps import get_catalog, get_tenant_id, require_admin
from api.tenant import get_by_id, where_tenant
from core.database import get_db
from models.schedule_cell import ScheduleCell
from models.schedule_table import ScheduleTable
from schemas.schedule_table import ScheduleGridOut, ScheduleTableCreate, ScheduleTableOut, ScheduleTableUpdate
from services.grid import GridStore
from services.slot_catalog import SlotCatalog


logger = logging.getLogger(__name__)


router = APIRouter()


def _get_table(db: Session, table_id: int, *, tenant_id: int | None) -> ScheduleTable:
    table = get_by_id(db, ScheduleTable, table_id, tenant_id)
    if table is None:
        raise HTTPException(status_code=404, detail="SCHEDULE_TABLE_NOT_FOUND")
    return table


def _clean_description(value: str | None) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


@router.get("/", response_model=list[ScheduleTableOut])
def list_tables(
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> list[ScheduleTableOut]:
    q = where_tenant(select(ScheduleTable), ScheduleTable, tenant_id)
    return db.execute(q.order_by(ScheduleTable.created_at.desc(), ScheduleTable.id.desc())).scalars().all()


@router.post("/", response_model=ScheduleTableOut)
def create_table(
    payload: ScheduleTableCreate,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> ScheduleTableOut:
    name = str(payload.name).strip()
    if not name:
        raise HTTPException(status_code=400, detail="INVALID_NAME")

    table = ScheduleTable(
        tenant_id=tenant_id,
        name=name,
        description=_clean_description(payload.description),
        is_active=payload.is_active,
    )
    db.add(table)
    db.commit()
    db.refresh(table)
    logger.info("Schedule table created id=%s name=%r", table.id, table.name)
    return table


@router.put("/{table_id}", response_model=ScheduleTableOut)
def put_table(
    table_id: int,
    payload: ScheduleTableCreate,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> ScheduleTableOut:
    table = _get_table(db, table_id, tenant_id=tenant_id)

    name = str(payload.name).strip()
    if not name:
        raise HTTPException(status_code=400, detail="INVALID_NAME")

    table.name = name
    table.description = _clean_description(payload.description)
    table.is_active = bool(payload.is_active)
    db.commit()
    db.refresh(table)
    return table


@router.patch("/{table_id}", response_model=ScheduleTableOut)
def update_table(
    table_id: int,
    payload: ScheduleTableUpdate,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> ScheduleTableOut:
    table = _get_table(db, table_id, tenant_id=tenant_id)

    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates:
        updates["name"] = str(updates["name"] or "").strip()
        if not updates["name"]:
            raise HTTPException(status_code=400, detail="INVALID_NAME")
    if "description" in updates:
        updates["description"] = _clean_description(updates["description"])
    if "is_active" in updates and updates["is_active"] is None:
        del updates["is_active"]

    for k, v in updates.items():
        setattr(table, k, v)

    db.commit()
    db.refresh(table)
    return table


@router.delete("/{table_id}")
def delete_table(
    table_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
) -> dict:
    table = _get_table(db, table_id, tenant_id=tenant_id)
    db.delete(table)
    db.commit()
    logger.info("Schedule table deleted id=%s (cells cascaded)", table_id)
    return {"ok": True}


@router.get("/{table_id}/grid", response_model=ScheduleGridOut)
def get_table_grid(
    table_id: int,
    _admin=Depends(require_admin),
    db: Session = Depends(get_db),
    tenant_id: int | None = Depends(get_tenant_id),
    catalog: SlotCatalog = Depends(get_catalog),
) -> ScheduleGridOut:
    _get_table(db, table_id, tenant_id=tenant_id)
    cells = db.execute(select(ScheduleCell).where(ScheduleCell.table_id == table_id)).scalars().all()
    grid = GridStore(cells, catalog)
    return ScheduleGridOut(table_id=table_id, max_span=grid.max_span, rows=grid.render_rows())
