from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from api.deps import get_current_user
from core.config import settings
from core.database import get_db
from core.security import create_access_token, verify_password
from models.user import User
from schemas.auth import LoginRequest, LoginResponse, MeResponse


router = APIRouter()

logger = logging.getLogger(__name__)


# Simple in-memory rate limiting for login.
# NOTE: In multi-worker deployments this is per-worker.
_LOGIN_WINDOW_SECONDS = 60
_LOGIN_MAX_ATTEMPTS_PER_KEY = 12
_login_attempts: dict[str, list[float]] = {}


def _rate_limit_key(request: Request, username: str) -> str:
    ip = request.client.host if request.client else "unknown"
    return f"{ip}:{username.lower().strip()}"


def _prune_login_attempts(now: float) -> None:
    stale = [k for k, history in _login_attempts.items() if not history or now - history[-1] >= _LOGIN_WINDOW_SECONDS]
    for k in stale:
        del _login_attempts[k]


def _enforce_login_rate_limit(request: Request, username: str) -> None:
    key = _rate_limit_key(request, username)
    now = time.time()
    _prune_login_attempts(now)
    history = [t for t in _login_attempts.get(key, []) if now - t < _LOGIN_WINDOW_SECONDS]
    history.append(now)
    _login_attempts[key] = history
    if len(history) > _LOGIN_MAX_ATTEMPTS_PER_KEY:
        raise HTTPException(status_code=429, detail="RATE_LIMITED")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> LoginResponse:
    username = str(payload.username or "").strip()
    _enforce_login_rate_limit(request, username)

    ip = request.client.host if request.client else "unknown"

    user = db.execute(select(User).where(func.lower(User.username) == func.lower(username))).scalars().first()
    if user is None or not verify_password(str(payload.password or ""), user.password_hash):
        logger.warning("Login failed ip=%s username=%r", ip, username)
        raise HTTPException(status_code=401, detail="INVALID_CREDENTIALS")
    if not user.is_active:
        logger.warning("Login failed (disabled user) ip=%s username=%r", ip, username)
        raise HTTPException(status_code=403, detail="USER_DISABLED")

    token = create_access_token(
        user_id=user.id,
        username=user.username,
        role=user.role,
        tenant_id=user.tenant_id if settings.tenant_mode == "per_tenant" else None,
    )

    secure_cookie = settings.environment.lower() == "production"
    samesite = (settings.cookie_samesite or "lax").lower().strip()
    if samesite not in {"lax", "strict", "none"}:
        raise HTTPException(status_code=500, detail="INVALID_COOKIE_SAMESITE")
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=secure_cookie,
        samesite=samesite,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )

    logger.info("Login success ip=%s username=%r", ip, user.username)
    return LoginResponse(ok=True, access_token=token)


@router.post("/logout")
def logout(response: Response) -> dict[str, Any]:
    response.delete_cookie(key="access_token", path="/")
    return {"ok": True}


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(
        id=current_user.id,
        tenant_id=current_user.tenant_id,
        username=current_user.username,
        role=current_user.role,
        is_active=current_user.is_active,
        created_at=current_user.created_at,
    )
