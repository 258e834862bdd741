from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from labsync.models.activity_log import ActivityLog
from labsync.models.user import User

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Stage an audit row in the caller's transaction; it commits or rolls back with it.

    Calls made without a user (jobs, tests) are recorded with a null ``user_id``.
    """
    payload = dict(details or {})
    if user is not None:
        payload.setdefault("actor_role", user.role.value)
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=payload,
    )
    db.add(record)
    logger.debug("Audit %s on %s %s", action, entity_type or "-", entity_id or "-")
    return record
