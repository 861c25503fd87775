"""Tests for the options row and group-layout validation."""
import json

import pytest

from app.jury import create_app
from app.jury.models import AuditEvent, Base
from app.jury.modules.options.models import Options
from app.jury.modules.options.service import (
    GroupConfigError,
    get_options,
    increment_manual_switches,
    options_snapshot,
    update_group_options,
    validate_group_config,
)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DEFAULT_NUM_GROUPS", "4")
    monkeypatch.setenv("DEFAULT_GROUP_SIZE", "12")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    return app


@pytest.fixture()
def s(app):
    session = app.extensions["sqlalchemy_sessionmaker"]()
    yield session
    session.close()


class TestValidateGroupConfig:
    def test_valid_layouts(self):
        assert validate_group_config(1, []) == []
        assert validate_group_config(3, [10, 20]) == []
        assert validate_group_config(2, [5, 5, 5]) == []

    def test_too_few_sizes(self):
        errors = validate_group_config(3, [10])
        assert errors == ["Group sizes needs at least 2 entries for 3 groups (got 1)."]

    def test_num_groups_must_be_positive_int(self):
        assert validate_group_config(0, []) == ["Number of groups must be at least 1."]
        assert validate_group_config("3", [1, 1]) == ["Number of groups must be an integer."]
        assert validate_group_config(True, []) == ["Number of groups must be an integer."]

    def test_sizes_must_be_non_negative_ints(self):
        assert validate_group_config(2, [-1]) == ["Group sizes must be non-negative integers."]
        assert validate_group_config(2, ["5"]) == ["Group sizes must be non-negative integers."]
        assert validate_group_config(2, 5) == ["Group sizes must be a list of integers."]


def test_get_options_creates_defaults_from_config(app, s):
    with app.app_context():
        options = get_options(s)
        s.commit()
    assert options.num_groups == 4
    assert options.group_sizes == [12, 12, 12]
    assert options.curr_table_num == 0
    assert options.multi_group is False
    assert s.query(Options).count() == 1


def test_get_options_outside_app_uses_builtin_defaults(app, s):
    options = get_options(s)
    assert options.num_groups == 3
    assert options.group_sizes == [30, 30]


def test_get_options_returns_existing_row(app, s):
    first = get_options(s)
    s.commit()
    assert get_options(s).id == first.id
    assert s.query(Options).count() == 1


def test_increment_manual_switches(app, s):
    options = get_options(s)
    assert increment_manual_switches(s, options) == 1
    assert increment_manual_switches(s, options) == 2


def test_update_group_options_records_changes(app, s):
    options = get_options(s)
    update_group_options(s, options, {"num_groups": 2, "group_sizes": [7], "multi_group": True}, None)
    s.commit()

    assert options_snapshot(options) == {
        "curr_table_num": 0,
        "num_groups": 2,
        "group_sizes": [7],
        "group_table_nums": [0, 7],
        "multi_group": True,
        "manual_switches": 0,
    }
    ev = s.query(AuditEvent).filter(AuditEvent.action == "options.update_groups").one()
    changes = json.loads(ev.metadata_json)["changes"]
    assert changes["num_groups"] == {"old": 3, "new": 2}
    assert changes["multi_group"] == {"old": False, "new": True}


def test_update_group_options_rejects_invalid_layout(app, s):
    options = get_options(s)
    with pytest.raises(GroupConfigError) as exc:
        update_group_options(s, options, {"num_groups": 5, "group_sizes": [1]}, None)
    assert exc.value.errors == ["Group sizes needs at least 4 entries for 5 groups (got 1)."]
    assert options.num_groups == 3
