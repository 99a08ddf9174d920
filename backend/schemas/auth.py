from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=256)


class LoginResponse(BaseModel):
    ok: bool = True
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    id: int
    tenant_id: int | None = None
    username: str
    role: str
    is_active: bool
    created_at: datetime
