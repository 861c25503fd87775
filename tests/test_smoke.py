from collections import defaultdict
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app.jury import auth, create_app
from app.jury.db import session_scope
from app.jury.models import Base, Permission, Role, User


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        p = Permission(key="admin.view", name="Admin: view shell")
        r = Role(key="admin", name="Administrator")
        r.permissions.append(p)
        u = User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        u.roles.append(r)
        s.add_all([p, r, u])

    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_login_and_admin_access(client):
    # Anonymous should be rejected
    r = client.get("/admin/")
    assert r.status_code == 401

    # Login
    r = client.post("/auth/login", data={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 200
    assert r.json["csrf_token"]

    # Now admin should be accessible
    r = client.get("/admin/")
    assert r.status_code == 200
    assert r.json["db_connected"] is True


def test_login_bad_password(client):
    r = client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert r.status_code == 401


def test_logout_clears_session(client):
    client.post("/auth/login", json={"email": "admin@example.com", "password": "pw"})
    r = client.post("/auth/logout")
    assert r.status_code == 200
    assert client.get("/admin/").status_code == 401


def test_login_rate_limited_after_repeated_failures(client, monkeypatch):
    monkeypatch.setattr(auth, "_login_attempts", defaultdict(list))
    for _ in range(5):
        r = client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
        assert r.status_code == 401
    r = client.post("/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 429


def test_rate_limit_forgets_idle_addresses(client, monkeypatch):
    attempts = defaultdict(list)
    attempts["10.0.0.9"].append(datetime.utcnow() - timedelta(hours=1))
    monkeypatch.setattr(auth, "_login_attempts", attempts)

    assert auth._check_rate_limit("10.0.0.9") is False
    assert "10.0.0.9" not in attempts

    client.post("/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert dict(attempts) == {}


def test_production_requires_postgres(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "a-real-secret")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///prod.db")
    with pytest.raises(RuntimeError, match="Postgres"):
        create_app()
