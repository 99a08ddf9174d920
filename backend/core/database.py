from __future__ import annotations

import time
from typing import Iterable

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import settings
from core.tenancy import get_current_tenant_id


class DatabaseUnavailableError(RuntimeError):
    """Raised when the database is temporarily unreachable (transient connectivity failure)."""


_RETRY_DELAYS_SECONDS: list[float] = [0.2, 0.5, 1.0]


def _iter_exception_messages(exc: BaseException) -> Iterable[str]:
    seen: set[int] = set()
    cur: BaseException | None = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        msg = str(cur)
        if msg:
            yield msg
        cur = getattr(cur, "__cause__", None) or getattr(cur, "__context__", None)


def is_transient_db_connectivity_error(exc: BaseException) -> bool:
    """Heuristically detect transient DB connectivity failures (DNS/timeouts/refused).

    Constraint/validation/SQL errors are never treated as transient.
    """

    joined = "\n".join(m.lower() for m in _iter_exception_messages(exc))

    markers = (
        # DNS resolution
        "getaddrinfo failed",
        "could not translate host name",
        "name or service not known",
        # Connection refused / reset / closed
        "connection refused",
        "actively refused",
        "connection reset",
        "server closed the connection unexpectedly",
        # Timeouts
        "timeout",
        "timed out",
    )
    return any(m in joined for m in markers)


def normalize_database_url(url: str) -> str:
    url = url.strip()

    # Normalize common Postgres URLs to SQLAlchemy's psycopg2 dialect.
    if url.startswith("postgresql://"):
        url = "postgresql+psycopg2://" + url.removeprefix("postgresql://")
    elif url.startswith("postgres://"):
        url = "postgresql+psycopg2://" + url.removeprefix("postgres://")
    return url


def get_engine(database_url: str | None = None) -> Engine:
    url = normalize_database_url(database_url or settings.database_url)
    parsed = make_url(url)

    if parsed.get_backend_name() == "sqlite":
        # Local/test databases. In-memory SQLite needs a single shared connection.
        kwargs: dict[str, object] = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)

        @event.listens_for(engine, "connect")
        def _sqlite_fk_on(dbapi_conn, _record) -> None:
            # ON DELETE CASCADE only works with foreign keys enabled.
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

        return engine

    # connect_timeout keeps outages from hanging requests (used by retries and /health).
    connect_args: dict[str, object] = {"connect_timeout": 3}
    host = (parsed.host or "").lower()
    if host.endswith("supabase.com") and "sslmode" not in (parsed.query or {}):
        connect_args["sslmode"] = "require"

    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


ENGINE = get_engine()
SessionLocal = sessionmaker(bind=ENGINE, autoflush=False, autocommit=False)


@event.listens_for(Session, "before_flush")
def _inject_tenant_id(session: Session, flush_context, instances) -> None:
    # Enforce tenant_id assignment at the ORM layer so request bodies cannot spoof tenant_id.
    mode = (settings.tenant_mode or "shared").strip().lower()
    ctx_tenant_id = get_current_tenant_id()

    for obj in session.new:
        if not hasattr(obj, "tenant_id"):
            continue

        obj_tenant_id = getattr(obj, "tenant_id", None)
        if obj_tenant_id is None:
            if mode != "shared" and ctx_tenant_id is None:
                raise ValueError("tenant_id missing for new row (no tenant context)")
            setattr(obj, "tenant_id", ctx_tenant_id)
            continue

        if mode != "shared" and ctx_tenant_id is not None and obj_tenant_id != ctx_tenant_id:
            raise ValueError("tenant_id spoofing attempt detected")

    for obj in session.dirty:
        if not hasattr(obj, "tenant_id"):
            continue

        state = inspect(obj)
        if "tenant_id" not in state.attrs:
            continue

        hist = state.attrs.tenant_id.history
        if not hist.has_changes():
            continue

        new_tenant_id = getattr(obj, "tenant_id", None)
        if mode != "shared" and ctx_tenant_id is not None and new_tenant_id != ctx_tenant_id:
            raise ValueError("tenant_id change/spoofing attempt detected")


def get_db():
    last_exc: BaseException | None = None

    # Retry session acquisition by doing an explicit lightweight ping (SELECT 1).
    for attempt in range(len(_RETRY_DELAYS_SECONDS) + 1):
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        except OperationalError as exc:
            last_exc = exc
            db.close()
            if not is_transient_db_connectivity_error(exc) or attempt >= len(_RETRY_DELAYS_SECONDS):
                break
            time.sleep(_RETRY_DELAYS_SECONDS[attempt])
            continue

        # Do NOT wrap `yield db` in the same try/except as the ping.
        # Exceptions raised by the endpoint (409/422) must propagate unchanged
        # instead of being converted into DatabaseUnavailableError (503).
        try:
            yield db
        finally:
            db.close()
        return

    raise DatabaseUnavailableError("Database temporarily unavailable") from last_exc


def validate_db_connection(db: Session) -> None:
    """Explicitly validate DB connectivity with a lightweight query."""

    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        if is_transient_db_connectivity_error(exc):
            raise DatabaseUnavailableError("Database temporarily unavailable") from exc
        raise
