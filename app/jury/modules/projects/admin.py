from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.jury.db import db_session
from app.jury.models import User
from app.jury.modules.options.service import GroupConfigError, get_options, options_snapshot
from app.jury.modules.projects.service import (
    create_project,
    list_projects,
    project_to_dict,
    reassign_nums_by_group,
    reassign_nums_in_order,
    validate_project_payload,
)
from app.jury.rbac import require_permission

bp = Blueprint("projects", __name__)

REASSIGN_MODES = ("order", "group")


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _payload() -> dict:
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


@bp.get("/projects")
@require_permission("projects.view")
def projects_list():
    s = db_session()
    projects = list_projects(s)
    return jsonify({"projects": [project_to_dict(p) for p in projects]})


@bp.post("/projects")
@require_permission("projects.edit")
def projects_create():
    s = db_session()
    u = _current_user()
    payload = _payload()

    errors = validate_project_payload(payload)
    if errors:
        return jsonify({"errors": errors}), 400

    try:
        project = create_project(s, payload, u)
    except GroupConfigError as e:
        return jsonify({"errors": e.errors}), 400
    return jsonify({"project": project_to_dict(project)}), 201


@bp.post("/projects/reassign")
@require_permission("projects.edit")
def projects_reassign():
    """
    Renumber all tables. mode=order|group; without a mode, the options row's
    multi_group flag decides.
    """
    s = db_session()
    u = _current_user()
    mode = (request.args.get("mode") or _payload().get("mode") or "").strip().lower()
    if mode and mode not in REASSIGN_MODES:
        return jsonify({"errors": [f"Invalid mode. Must be one of: {', '.join(REASSIGN_MODES)}"]}), 400
    if not mode:
        mode = "group" if get_options(s).multi_group else "order"

    try:
        if mode == "group":
            count = reassign_nums_by_group(s, user=u)
        else:
            count = reassign_nums_in_order(s, user=u)
    except GroupConfigError as e:
        return jsonify({"errors": e.errors}), 400

    return jsonify({"ok": True, "mode": mode, "count": count, "options": options_snapshot(get_options(s))})
