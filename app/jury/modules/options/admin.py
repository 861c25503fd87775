from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.jury.db import db_session, transaction
from app.jury.models import User
from app.jury.modules.options.service import GroupConfigError, get_options, options_snapshot, update_group_options
from app.jury.rbac import require_permission

bp = Blueprint("options", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


@bp.get("/options")
@require_permission("options.view")
def options_get():
    s = db_session()
    with transaction(s):
        options = get_options(s)
    return jsonify({"options": options_snapshot(options)})


@bp.post("/options/groups")
@require_permission("options.edit")
def options_groups_post():
    s = db_session()
    u = _current_user()
    payload = request.get_json(silent=True) if request.is_json else None
    if not isinstance(payload, dict):
        return jsonify({"errors": ["Expected a JSON object body."]}), 400

    try:
        with transaction(s):
            options = update_group_options(s, get_options(s), payload, u)
    except GroupConfigError as e:
        return jsonify({"errors": e.errors}), 400
    return jsonify({"options": options_snapshot(options)})
