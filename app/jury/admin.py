import json

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.jury.db import db_session
from app.jury.models import AuditEvent
from app.jury.rbac import require_permission

bp = Blueprint("admin", __name__)


@bp.get("/")
@require_permission("admin.view")
def index():
    s = db_session()
    status = {
        "env": (current_app.config.get("ENV") or "development").strip().lower(),
        "db_connected": False,
        "db_error": None,
    }

    # DB connectivity (lightweight)
    try:
        s.execute(text("SELECT 1"))
        status["db_connected"] = True
    except SQLAlchemyError as e:
        status["db_error"] = str(e)

    return jsonify(status)


@bp.get("/audit")
@require_permission("admin.view")
def audit_list():
    s = db_session()
    action = (request.args.get("action") or "").strip()
    try:
        limit = min(max(int(request.args.get("limit") or 50), 1), 500)
    except ValueError:
        limit = 50

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action == action)
    events = q.order_by(AuditEvent.id.desc()).limit(limit).all()
    return jsonify(
        {
            "events": [
                {
                    "id": ev.id,
                    "created_at": ev.created_at.isoformat() if ev.created_at else None,
                    "actor": ev.actor_user_email,
                    "action": ev.action,
                    "entity_type": ev.entity_type,
                    "entity_id": ev.entity_id,
                    "metadata": json.loads(ev.metadata_json) if ev.metadata_json else None,
                }
                for ev in events
            ]
        }
    )
