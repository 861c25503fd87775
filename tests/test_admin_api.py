"""Tests for the admin JSON endpoints (projects, judges, options, audit)."""
import pytest
from werkzeug.security import generate_password_hash

from app.jury import create_app
from app.jury.db import session_scope
from app.jury.models import Base, Permission, Role, User
from app.jury.modules.judges.models import Judge
from app.jury.modules.options.service import get_options
from app.jury.modules.projects.models import Project


def _seed_all_permissions(s):
    """Seed all permissions needed for admin API tests."""
    perm_keys = [
        ("admin.view", "Admin: view shell"),
        ("projects.view", "Projects: view"),
        ("projects.edit", "Projects: create and renumber"),
        ("judges.view", "Judges: view"),
        ("judges.edit", "Judges: create and rotate groups"),
        ("options.view", "Options: view"),
        ("options.edit", "Options: edit group layout"),
    ]
    perms = {}
    for key, name in perm_keys:
        p = Permission(key=key, name=name)
        s.add(p)
        perms[key] = p
    return perms


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        perms = _seed_all_permissions(s)
        admin = Role(key="admin", name="Administrator")
        for p in perms.values():
            admin.permissions.append(p)
        viewer = Role(key="viewer", name="Viewer")
        viewer.permissions.append(perms["projects.view"])
        u = User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        u.roles.append(admin)
        v = User(email="viewer@example.com", password_hash=generate_password_hash("pw"), is_active=True)
        v.roles.append(viewer)
        s.add_all([admin, viewer, u, v])

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client, email="admin@example.com"):
    r = client.post("/auth/login", json={"email": email, "password": "pw"})
    assert r.status_code == 200
    return {"X-CSRF-Token": r.json["csrf_token"]}


def _seed_projects(app, *locations):
    with session_scope(app) as s:
        s.add_all([Project(name=f"Project {i}", location=loc) for i, loc in enumerate(locations)])


def test_projects_require_auth(client):
    r = client.get("/admin/projects")
    assert r.status_code == 401


def test_reassign_requires_edit_permission(client):
    headers = _login(client, "viewer@example.com")
    assert client.get("/admin/projects").status_code == 200
    r = client.post("/admin/projects/reassign", headers=headers)
    assert r.status_code == 403
    assert r.json["missing_permission"] == "projects.edit"


def test_post_without_csrf_rejected(client):
    _login(client)
    r = client.post("/admin/projects/reassign")
    assert r.status_code == 400


def test_reassign_in_order(app, client):
    _seed_projects(app, 30, 10, 20)
    headers = _login(client)

    r = client.post("/admin/projects/reassign?mode=order", headers=headers)
    assert r.status_code == 200
    assert r.json["mode"] == "order"
    assert r.json["count"] == 3
    assert r.json["options"]["curr_table_num"] == 3

    r = client.get("/admin/projects")
    assert [(p["name"], p["location"]) for p in r.json["projects"]] == [
        ("Project 1", 0),
        ("Project 2", 1),
        ("Project 0", 2),
    ]


def test_reassign_mode_follows_multi_group(app, client):
    with session_scope(app) as s:
        options = get_options(s)
        options.num_groups = 2
        options.group_sizes = [1]
        options.multi_group = True
    _seed_projects(app, 5, 6, 7)
    headers = _login(client)

    r = client.post("/admin/projects/reassign", headers=headers)
    assert r.status_code == 200
    assert r.json["mode"] == "group"
    assert r.json["options"]["group_table_nums"] == [1, 3]

    r = client.get("/admin/projects")
    assert [(p["group"], p["location"]) for p in r.json["projects"]] == [(0, 0), (1, 1), (1, 2)]


def test_reassign_invalid_mode(client):
    headers = _login(client)
    r = client.post("/admin/projects/reassign?mode=random", headers=headers)
    assert r.status_code == 400


def test_reassign_by_group_bad_config_is_400(app, client):
    with session_scope(app) as s:
        options = get_options(s)
        options.num_groups = 4
        options.group_sizes = [1]
    headers = _login(client)
    r = client.post("/admin/projects/reassign", json={"mode": "group"}, headers=headers)
    assert r.status_code == 400
    assert "at least 3 entries" in r.json["errors"][0]


def test_create_project(client):
    headers = _login(client)
    r = client.post("/admin/projects", json={"name": "Robot Arm"}, headers=headers)
    assert r.status_code == 201
    assert r.json["project"]["location"] == 0

    r = client.post("/admin/projects", json={"name": "Drone"}, headers=headers)
    assert r.json["project"]["location"] == 1

    r = client.post("/admin/projects", json={"name": ""}, headers=headers)
    assert r.status_code == 400
    assert r.json["errors"] == ["Project name is required."]


def test_judges_create_and_swap(app, client):
    headers = _login(client)
    for i in range(3):
        r = client.post("/admin/judges", json={"name": f"Judge {i}", "email": f"judge{i}@example.com"}, headers=headers)
        assert r.status_code == 201

    r = client.post("/admin/judges", json={"name": "Dup", "email": "judge0@example.com"}, headers=headers)
    assert r.status_code == 409

    r = client.post("/admin/judges/groups/swap", headers=headers)
    assert r.status_code == 200
    assert r.json["manual_switches"] == 1

    r = client.get("/admin/judges")
    assert [j["group"] for j in r.json["judges"]] == [1, 2, 0]

    with session_scope(app) as s:
        assert s.query(Judge).count() == 3


def test_options_get_and_update(client):
    headers = _login(client)
    r = client.get("/admin/options")
    assert r.status_code == 200
    assert r.json["options"]["manual_switches"] == 0

    r = client.post("/admin/options/groups", json={"num_groups": 2, "group_sizes": [4], "multi_group": True}, headers=headers)
    assert r.status_code == 200
    assert r.json["options"]["num_groups"] == 2
    assert r.json["options"]["multi_group"] is True

    r = client.post("/admin/options/groups", json={"num_groups": 0}, headers=headers)
    assert r.status_code == 400
    assert r.json["errors"] == ["Number of groups must be at least 1."]


def test_audit_lists_renumbering(app, client):
    _seed_projects(app, 1, 0)
    headers = _login(client)
    client.post("/admin/projects/reassign?mode=order", headers=headers)

    r = client.get("/admin/audit?action=projects.reassign_in_order")
    assert r.status_code == 200
    events = r.json["events"]
    assert len(events) == 1
    assert events[0]["actor"] == "admin@example.com"
    assert events[0]["metadata"]["count"] == 2
