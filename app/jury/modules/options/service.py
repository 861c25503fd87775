from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from app.jury.audit import record_event
from app.jury.config import load_settings

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.jury.models import User
    from app.jury.modules.options.models import Options

logger = logging.getLogger(__name__)

DEFAULT_NUM_GROUPS = 3
DEFAULT_GROUP_SIZE = 30


class GroupConfigError(ValueError):
    """Group layout on the options row cannot be used for numbering or rotation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def get_options(s: "Session") -> "Options":
    """Return the options row, creating it with defaults on first use."""
    from app.jury.modules.options.models import Options

    options = s.query(Options).order_by(Options.id.asc()).first()
    if options is not None:
        return options

    num_groups, group_size = _configured_defaults()
    options = Options(
        curr_table_num=0,
        num_groups=num_groups,
        group_sizes=[group_size] * (num_groups - 1),
        group_table_nums=[],
        multi_group=False,
        manual_switches=0,
        updated_at=datetime.utcnow(),
    )
    s.add(options)
    s.flush()
    logger.info("Created options row (num_groups=%s)", num_groups)
    return options


def _configured_defaults() -> tuple[int, int]:
    from flask import current_app, has_app_context

    if has_app_context():
        num_groups = int(current_app.config.get("DEFAULT_NUM_GROUPS") or DEFAULT_NUM_GROUPS)
        group_size = int(current_app.config.get("DEFAULT_GROUP_SIZE") or DEFAULT_GROUP_SIZE)
    else:
        # scripts (seed, release) run without an app
        settings = load_settings()
        num_groups, group_size = settings.default_num_groups, settings.default_group_size
    return max(num_groups, 1), max(group_size, 0)


def validate_group_config(num_groups, group_sizes) -> list[str]:
    """Validate a group layout. Returns list of errors."""
    errors = []
    if isinstance(num_groups, bool) or not isinstance(num_groups, int):
        errors.append("Number of groups must be an integer.")
        return errors
    if num_groups < 1:
        errors.append("Number of groups must be at least 1.")
    if not isinstance(group_sizes, list):
        errors.append("Group sizes must be a list of integers.")
        return errors
    for size in group_sizes:
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            errors.append("Group sizes must be non-negative integers.")
            break
    if num_groups >= 1 and len(group_sizes) < num_groups - 1:
        errors.append(f"Group sizes needs at least {num_groups - 1} entries for {num_groups} groups (got {len(group_sizes)}).")
    return errors


def require_valid_group_config(options: "Options") -> None:
    errors = validate_group_config(options.num_groups, list(options.group_sizes or []))
    if errors:
        logger.warning("Rejected group configuration: %s", "; ".join(errors))
        raise GroupConfigError(errors)


def update_curr_table_num(s: "Session", options: "Options") -> None:
    """Persist the numbering counters held on the options row."""
    options.updated_at = datetime.utcnow()
    s.add(options)
    s.flush()


def sync_table_counters(s: "Session", options: "Options", *, relayout: bool = False) -> None:
    """
    Advance the counters on `options` past every project location in use, so
    the next number handed out is free. `relayout` rebuilds the group counters
    from the current layout first.
    """
    from app.jury.modules.projects.models import Project
    from app.jury.modules.projects.numbering import TableNumberSequence

    locations = [loc for (loc,) in s.query(Project.location).all()]
    seq = TableNumberSequence.from_options(options)
    seq.catch_up(locations, relayout=relayout)
    seq.apply_to(options)
    s.add(options)


def increment_manual_switches(s: "Session", options: "Options") -> int:
    options.manual_switches = int(options.manual_switches or 0) + 1
    options.updated_at = datetime.utcnow()
    s.add(options)
    s.flush()
    return options.manual_switches


def update_group_options(s: "Session", options: "Options", payload: dict, user: "User | None") -> "Options":
    """
    Apply num_groups / group_sizes / multi_group from payload.
    Raises GroupConfigError without touching the row if the result would be invalid.
    Any change re-syncs the table counters with the locations projects already hold.
    """
    num_groups = payload.get("num_groups", options.num_groups)
    group_sizes = payload.get("group_sizes", list(options.group_sizes or []))
    errors = validate_group_config(num_groups, group_sizes)
    if errors:
        logger.warning("Rejected group options update: %s", "; ".join(errors))
        raise GroupConfigError(errors)

    changes = {}

    def _set(attr: str, val):
        if val != getattr(options, attr):
            changes[attr] = {"old": getattr(options, attr), "new": val}
            setattr(options, attr, val)

    _set("num_groups", num_groups)
    _set("group_sizes", list(group_sizes))
    if "multi_group" in payload:
        _set("multi_group", bool(payload.get("multi_group")))

    if changes:
        sync_table_counters(s, options, relayout="num_groups" in changes or "group_sizes" in changes)
        logger.info("Group layout changed; table counters now %s / %s", options.curr_table_num, options.group_table_nums)

    options.updated_at = datetime.utcnow()
    s.add(options)
    s.flush()

    record_event(
        s,
        actor=user,
        action="options.update_groups",
        entity_type="Options",
        entity_id=str(options.id),
        metadata={"changes": changes} if changes else None,
    )
    return options


def options_snapshot(options: "Options") -> dict:
    return {
        "curr_table_num": options.curr_table_num,
        "num_groups": options.num_groups,
        "group_sizes": list(options.group_sizes or []),
        "group_table_nums": list(options.group_table_nums or []),
        "multi_group": options.multi_group,
        "manual_switches": options.manual_switches,
    }
