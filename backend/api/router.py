from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import require_admin
from api.routes import auth, groups, schedule_cells, schedule_tables


api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Every scheduling route mutates or exposes school data: admin only.
_protected = [Depends(require_admin)]
api_router.include_router(
    schedule_tables.router, prefix="/schedule-tables", tags=["schedule-tables"], dependencies=_protected
)
api_router.include_router(
    schedule_cells.router, prefix="/schedule-cells", tags=["schedule-cells"], dependencies=_protected
)
api_router.include_router(groups.router, prefix="/groups", tags=["groups"], dependencies=_protected)
