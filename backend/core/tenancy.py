from __future__ import annotations

from contextvars import ContextVar


current_tenant_id: ContextVar[int | None] = ContextVar("current_tenant_id", default=None)


def set_current_tenant_id(tenant_id: int | None) -> None:
    current_tenant_id.set(tenant_id)


def get_current_tenant_id() -> int | None:
    return current_tenant_id.get()
