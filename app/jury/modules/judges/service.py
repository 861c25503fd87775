from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from app.jury.audit import record_event
from app.jury.db import db_step, transaction
from app.jury.modules.options.service import get_options, increment_manual_switches, require_valid_group_config

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.jury.models import User
    from app.jury.modules.judges.models import Judge

logger = logging.getLogger(__name__)


def increment_judge_group_num(s: "Session", user: "User | None" = None) -> int:
    """
    Move every judge to the next group, wrapping at num_groups, and count the
    rotation as a manual switch. Returns the new manual switch count.
    """
    from app.jury.modules.judges.models import Judge

    with transaction(s):
        with db_step("error getting options from database"):
            options = get_options(s)

        require_valid_group_config(options)

        with db_step("error getting judges from database"):
            judges = s.query(Judge).all()

        now = datetime.utcnow()
        for judge in judges:
            judge.group = (judge.group + 1) % options.num_groups
            judge.updated_at = now

        with db_step("error updating judges in database"):
            s.add_all(judges)
            s.flush()

        with db_step("error incrementing manual switches in database"):
            switches = increment_manual_switches(s, options)

        record_event(
            s,
            actor=user,
            action="judges.increment_group",
            entity_type="Judge",
            metadata={"count": len(judges), "num_groups": options.num_groups, "manual_switches": switches},
        )

    logger.info("Rotated %s judges to their next group (manual switch #%s)", len(judges), switches)
    return switches


def validate_judge_payload(payload: dict) -> list[str]:
    errors = []
    if not (payload.get("name") or "").strip():
        errors.append("Judge name is required.")
    email = (payload.get("email") or "").strip()
    if not email:
        errors.append("Judge email is required.")
    elif "@" not in email:
        errors.append("Judge email is invalid.")
    return errors


class DuplicateJudgeError(ValueError):
    """A judge with this email already exists."""


def create_judge(s: "Session", payload: dict, user: "User | None") -> "Judge":
    """Add a judge; groups are dealt round-robin by judge count."""
    from app.jury.modules.judges.models import Judge

    email = (payload.get("email") or "").strip().lower()
    with transaction(s):
        with db_step("error getting options from database"):
            options = get_options(s)
            judge_count = s.query(Judge).count()
            exists = s.query(Judge.id).filter(Judge.email == email).first() is not None
        if exists:
            raise DuplicateJudgeError(email)

        require_valid_group_config(options)

        now = datetime.utcnow()
        judge = Judge(
            name=(payload.get("name") or "").strip(),
            email=email,
            group=judge_count % options.num_groups,
            active=True,
            created_at=now,
            updated_at=now,
        )
        with db_step("error inserting judge into database"):
            s.add(judge)
            try:
                s.flush()
            except IntegrityError as e:
                # lost a race with a concurrent insert of the same email
                raise DuplicateJudgeError(email) from e

        record_event(
            s,
            actor=user,
            action="judge.create",
            entity_type="Judge",
            entity_id=str(judge.id),
            metadata={"email": judge.email, "group": judge.group},
        )

    logger.info("Created judge id=%s in group %s", judge.id, judge.group)
    return judge


def list_judges(s: "Session") -> list["Judge"]:
    from app.jury.modules.judges.models import Judge

    return s.query(Judge).order_by(Judge.id.asc()).all()


def judge_to_dict(judge: "Judge") -> dict:
    return {
        "id": judge.id,
        "name": judge.name,
        "email": judge.email,
        "group": judge.group,
        "active": judge.active,
    }
