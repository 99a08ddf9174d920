from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db
from core.security import decode_token
from core.tenancy import set_current_tenant_id
from models.user import User
from services.slot_catalog import SlotCatalog, get_slot_catalog


bearer_scheme = HTTPBearer(auto_error=False)


def _extract_token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    if creds is not None and creds.credentials:
        return creds.credentials
    cookie_token = request.cookies.get("access_token")
    return cookie_token or None


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    cached = getattr(request.state, "current_user", None)
    if isinstance(cached, User):
        return cached

    token = _extract_token(request, creds)
    if not token:
        raise HTTPException(status_code=401, detail="NOT_AUTHENTICATED")
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="INVALID_TOKEN")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="USER_DISABLED")

    mode = (settings.tenant_mode or "shared").strip().lower()
    if mode == "per_tenant":
        token_tenant_id = payload.get("tenant_id")
        if token_tenant_id is None or user.tenant_id is None or int(token_tenant_id) != int(user.tenant_id):
            raise HTTPException(status_code=401, detail="INVALID_TOKEN")
        set_current_tenant_id(user.tenant_id)
    else:
        set_current_tenant_id(None)

    request.state.current_user = user
    request.state.auth_payload = payload
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    role = (current_user.role or "").upper()
    if role != "ADMIN":
        raise HTTPException(status_code=403, detail="NOT_AUTHORIZED")
    return current_user


def get_tenant_id(current_user: User = Depends(get_current_user)) -> int | None:
    """Return the tenant_id used to scope data.

    - shared mode: returns None (no scoping)
    - per_tenant mode: returns current_user.tenant_id
    """

    mode = (settings.tenant_mode or "shared").strip().lower()
    if mode == "shared":
        set_current_tenant_id(None)
        return None
    if current_user.tenant_id is None:
        raise HTTPException(status_code=403, detail="TENANT_NOT_SET")
    set_current_tenant_id(current_user.tenant_id)
    return current_user.tenant_id


def get_catalog() -> SlotCatalog:
    return get_slot_catalog()


def get_off_grid_policy() -> str:
    return settings.off_grid_policy
