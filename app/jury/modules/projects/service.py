from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from app.jury.audit import record_event
from app.jury.db import db_step, transaction
from app.jury.modules.options.service import get_options, require_valid_group_config, update_curr_table_num
from app.jury.modules.projects.numbering import TableNumberSequence, assign_by_group, assign_in_order

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.jury.models import User
    from app.jury.modules.options.models import Options
    from app.jury.modules.projects.models import Project

logger = logging.getLogger(__name__)


def _all_projects(s: "Session") -> list["Project"]:
    from app.jury.modules.projects.models import Project

    return s.query(Project).all()


def _save_projects(s: "Session", projects: list["Project"]) -> None:
    now = datetime.utcnow()
    for project in projects:
        project.updated_at = now
    s.add_all(projects)
    s.flush()


def reassign_nums_in_order(s: "Session", user: "User | None" = None) -> int:
    """
    Renumber every project 0..n-1, keeping the current table-number order.
    Returns the number of projects renumbered.
    """
    with transaction(s):
        with db_step("error getting projects from database"):
            projects = _all_projects(s)

        if not projects:
            logger.info("Reassign in order: no projects, nothing to do")
            return 0

        with db_step("error getting options from database"):
            options = get_options(s)

        seq = TableNumberSequence.from_options(options)
        assign_in_order(projects, seq)
        seq.apply_to(options)

        with db_step("error updating options in database"):
            update_curr_table_num(s, options)

        with db_step("error updating projects in database"):
            _save_projects(s, projects)
            record_event(
                s,
                actor=user,
                action="projects.reassign_in_order",
                entity_type="Project",
                metadata={"count": len(projects), "next_table_num": options.curr_table_num},
            )

    logger.info("Reassigned table numbers in order for %s projects", len(projects))
    return len(projects)


def reassign_nums_by_group(s: "Session", user: "User | None" = None) -> int:
    """
    Renumber every project into the configured groups.
    Group i starts at the sum of the sizes of groups 0..i-1; projects fill the
    groups in current table-number order. Counters are reset even when there
    are no projects.
    """
    with transaction(s):
        with db_step("error getting projects from database"):
            projects = _all_projects(s)

        with db_step("error getting options from database"):
            options = get_options(s)

        require_valid_group_config(options)

        seq = TableNumberSequence.from_options(options)
        assign_by_group(projects, seq)
        seq.apply_to(options)

        with db_step("error updating options in database"):
            update_curr_table_num(s, options)

        if not projects:
            logger.info("Reassign by group: no projects, counters reset only")
            return 0

        with db_step("error updating projects in database"):
            _save_projects(s, projects)
            record_event(
                s,
                actor=user,
                action="projects.reassign_by_group",
                entity_type="Project",
                metadata={"count": len(projects), "group_table_nums": list(options.group_table_nums)},
            )

    logger.info("Reassigned table numbers by group for %s projects (%s groups)", len(projects), options.num_groups)
    return len(projects)


def get_next_table_num(s: "Session", options: "Options") -> tuple[int, int]:
    """
    (group, table number) for the next project added.
    Group is always 0 when multi_group is off. Counters are first moved past any
    location a project already holds. The advanced counters are left on
    `options` (attached to `s`) and persist with the caller's commit.
    """
    from app.jury.modules.projects.models import Project

    if options.multi_group:
        require_valid_group_config(options)
    with db_step("error getting project locations from database"):
        taken = [loc for (loc,) in s.query(Project.location).all()]

    seq = TableNumberSequence.from_options(options)
    seq.catch_up(taken)
    if options.multi_group:
        group, table = seq.next_group()
    else:
        group, table = 0, seq.next_incr()
    seq.apply_to(options)
    s.add(options)
    return group, table


def validate_project_payload(payload: dict) -> list[str]:
    errors = []
    if not (payload.get("name") or "").strip():
        errors.append("Project name is required.")
    return errors


def create_project(s: "Session", payload: dict, user: "User | None") -> "Project":
    from app.jury.modules.projects.models import Project

    with transaction(s):
        with db_step("error getting options from database"):
            options = get_options(s)

        group, location = get_next_table_num(s, options)

        now = datetime.utcnow()
        project = Project(
            name=(payload.get("name") or "").strip(),
            description=(payload.get("description") or "").strip() or None,
            url=(payload.get("url") or "").strip() or None,
            location=location,
            group=group,
            active=True,
            created_at=now,
            updated_at=now,
            created_by_user_id=user.id if user else None,
        )
        with db_step("error inserting project into database"):
            s.add(project)
            update_curr_table_num(s, options)
            s.flush()

        record_event(
            s,
            actor=user,
            action="project.create",
            entity_type="Project",
            entity_id=str(project.id),
            metadata={"name": project.name, "location": location, "group": group},
        )

    logger.info("Created project id=%s at table %s (group %s)", project.id, location, group)
    return project


def list_projects(s: "Session") -> list["Project"]:
    from app.jury.modules.projects.models import Project

    return s.query(Project).order_by(Project.location.asc(), Project.id.asc()).all()


def project_to_dict(project: "Project") -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "url": project.url,
        "location": project.location,
        "group": project.group,
        "active": project.active,
    }
