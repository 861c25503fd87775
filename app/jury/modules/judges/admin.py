from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.jury.db import db_session
from app.jury.models import User
from app.jury.modules.judges.service import (
    DuplicateJudgeError,
    create_judge,
    increment_judge_group_num,
    judge_to_dict,
    list_judges,
    validate_judge_payload,
)
from app.jury.modules.options.service import GroupConfigError
from app.jury.rbac import require_permission

bp = Blueprint("judges", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


@bp.get("/judges")
@require_permission("judges.view")
def judges_list():
    s = db_session()
    return jsonify({"judges": [judge_to_dict(j) for j in list_judges(s)]})


@bp.post("/judges")
@require_permission("judges.edit")
def judges_create():
    s = db_session()
    u = _current_user()
    payload = (request.get_json(silent=True) if request.is_json else request.form.to_dict()) or {}

    errors = validate_judge_payload(payload)
    if errors:
        return jsonify({"errors": errors}), 400

    try:
        judge = create_judge(s, payload, u)
    except DuplicateJudgeError:
        return jsonify({"errors": ["Judge email already exists."]}), 409
    except GroupConfigError as e:
        return jsonify({"errors": e.errors}), 400
    return jsonify({"judge": judge_to_dict(judge)}), 201


@bp.post("/judges/groups/swap")
@require_permission("judges.edit")
def judges_groups_swap():
    s = db_session()
    u = _current_user()
    try:
        switches = increment_judge_group_num(s, user=u)
    except GroupConfigError as e:
        return jsonify({"errors": e.errors}), 400
    return jsonify({"ok": True, "manual_switches": switches})
