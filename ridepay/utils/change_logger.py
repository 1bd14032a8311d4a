from datetime import datetime
from flask import has_request_context
from flask_jwt_extended import get_jwt_identity
from ridepay.extension import db
from ridepay.models import ChangeLog


def current_actor_id():
    """JWT identity of the caller, or None for scheduled/system work."""
    if not has_request_context():
        return None
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return None
    return int(identity) if identity else None


def log_change(entity_type, entity_id, action, details=None, actor_user_id=None):
    """Add an audit row to the current session. The caller commits."""
    log_entry = ChangeLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        changed_by=actor_user_id if actor_user_id is not None else current_actor_id(),
        timestamp=datetime.utcnow(),
        details=details or {},
    )
    db.session.add(log_entry)
    return log_entry
