from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.config import settings
from core.database import ENGINE
from core.security import hash_password
from models import Base, User


logger = logging.getLogger(__name__)


def _seed_admin_if_configured(db: Session) -> None:
    username = settings.seed_admin_username
    password = settings.seed_admin_password
    if not username or not password:
        return

    existing = db.execute(
        select(User.id).where(func.lower(User.username) == func.lower(username)).limit(1)
    ).first()
    if existing is not None:
        return

    # per_tenant deployments start with a single default school (tenant 1).
    tenant_id = 1 if settings.tenant_mode == "per_tenant" else None

    db.add(
        User(
            tenant_id=tenant_id,
            username=username,
            password_hash=hash_password(password),
            role="ADMIN",
            is_active=True,
        )
    )
    db.commit()

    logger.warning(
        "Seeded initial admin user from env (username=%r). Change the password after first login.",
        username,
    )


def bootstrap_database() -> None:
    """Create missing tables and optionally seed an admin user.

    Safe to run on every startup: `create_all` only creates what is missing.
    """

    Base.metadata.create_all(ENGINE)
    with Session(ENGINE) as db:
        _seed_admin_if_configured(db)
