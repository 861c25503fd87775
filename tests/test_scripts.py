"""Tests for the seed and table-renumbering scripts."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app.jury.models import Base, Permission, Role, User
from app.jury.modules.judges.models import Judge
from app.jury.modules.options.models import Options
from app.jury.modules.projects.models import Project
from scripts import init_db, reassign_tables


@pytest.fixture()
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path/'scripts.db'}"
    monkeypatch.setenv("ADMIN_EMAIL", "Chief@Example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")
    engine = create_engine(url, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    return url


def _session(url):
    return Session(create_engine(url, future=True))


def test_seed_only_is_idempotent(db_url):
    init_db.seed_only(database_url=db_url)
    init_db.seed_only(database_url=db_url)

    s = _session(db_url)
    try:
        assert s.query(Permission).count() == len(init_db.PERMISSIONS)
        role = s.query(Role).filter(Role.key == "admin").one()
        assert {p.key for p in role.permissions} == {k for k, _ in init_db.PERMISSIONS}
        user = s.query(User).filter(User.email == "chief@example.com").one()
        assert role in user.roles
        assert s.query(Options).count() == 1
    finally:
        s.close()


def test_seed_uses_configured_group_defaults(db_url, monkeypatch):
    monkeypatch.setenv("DEFAULT_NUM_GROUPS", "5")
    monkeypatch.setenv("DEFAULT_GROUP_SIZE", "12")
    init_db.seed_only(database_url=db_url)

    s = _session(db_url)
    try:
        options = s.query(Options).one()
        assert options.num_groups == 5
        assert options.group_sizes == [12, 12, 12, 12]
    finally:
        s.close()


def test_reassign_in_order_cli(db_url, capsys):
    s = _session(db_url)
    s.add_all([Project(name="A", location=9), Project(name="B", location=4)])
    s.commit()
    s.close()

    assert reassign_tables.main(["--in-order", "--database-url", db_url]) == 0
    assert "Renumbered 2 projects in order." in capsys.readouterr().out

    s = _session(db_url)
    try:
        assert {p.name: p.location for p in s.query(Project).all()} == {"A": 1, "B": 0}
    finally:
        s.close()


def test_rotate_judges_cli(db_url):
    s = _session(db_url)
    s.add_all([Judge(name="J1", email="j1@example.com", group=2)])
    s.commit()
    s.close()

    assert reassign_tables.main(["--rotate-judges", "--database-url", db_url]) == 0

    s = _session(db_url)
    try:
        assert s.query(Judge).one().group == 0
        assert s.query(Options).one().manual_switches == 1
    finally:
        s.close()


def test_by_group_cli_reports_bad_config(db_url, capsys):
    s = _session(db_url)
    s.add(Options(num_groups=3, group_sizes=[], group_table_nums=[]))
    s.commit()
    s.close()

    assert reassign_tables.main(["--by-group", "--database-url", db_url]) == 2
    assert "invalid group configuration" in capsys.readouterr().err


def test_cli_requires_an_action(db_url):
    with pytest.raises(SystemExit):
        reassign_tables.main(["--database-url", db_url])
