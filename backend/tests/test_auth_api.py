from __future__ import annotations

import time

from fastapi.testclient import TestClient

from api.routes import auth as auth_routes
from core.security import hash_password
from main import app
from models import User


def test_scheduling_routes_require_authentication(client):
    res = client.get("/api/schedule-tables/")
    assert res.status_code == 401
    assert res.json()["detail"] == "NOT_AUTHENTICATED"


def test_bad_token_is_rejected(client):
    res = client.get("/api/schedule-tables/", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401
    assert res.json()["detail"] == "INVALID_TOKEN"


def test_non_admin_cannot_mutate(user_client):
    res = user_client.post("/api/schedule-tables/", json={"name": "Salle 1"})
    assert res.status_code == 403
    assert res.json()["detail"] == "NOT_AUTHORIZED"


def test_login_sets_cookie_and_me(db):
    db.add(User(username="Director", password_hash=hash_password("s3cret-pass"), role="ADMIN", is_active=True))
    db.commit()

    client = TestClient(app)
    assert client.post("/api/auth/login", json={"username": "director", "password": "wrong"}).status_code == 401

    res = client.post("/api/auth/login", json={"username": "director", "password": "s3cret-pass"})
    assert res.status_code == 200
    assert res.json()["access_token"]

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["username"] == "Director"
    assert me.json()["role"] == "ADMIN"

    assert client.get("/api/schedule-tables/").status_code == 200


def test_disabled_user_is_refused(db):
    db.add(User(username="gone", password_hash=hash_password("s3cret-pass"), role="ADMIN", is_active=False))
    db.commit()

    res = TestClient(app).post("/api/auth/login", json={"username": "gone", "password": "s3cret-pass"})
    assert res.status_code == 403


def test_health(client):
    assert client.get("/health").json() == {"app": "ok", "database": "ok"}


def test_login_rate_limit_forgets_stale_keys(client, monkeypatch):
    monkeypatch.setattr(auth_routes, "_login_attempts", {"10.0.0.1:old": [time.time() - 3600], "10.0.0.2:empty": []})

    res = client.post("/api/auth/login", json={"username": "nobody", "password": "wrong-pass"})
    assert res.status_code == 401

    assert list(auth_routes._login_attempts) == ["testclient:nobody"]
