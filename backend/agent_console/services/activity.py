# Agent Console - Activity log writes and serialization

import logging
from typing import Optional

from sqlmodel import Session

from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.models import ActivityLog, User
from agent_console.schemas import ActivityRead, ActivityUser

logger = logging.getLogger(__name__)


def serialize_activity(log: ActivityLog, user: Optional[User] = None) -> dict:
    return ActivityRead(
        id=log.id,
        user_id=log.user_id,
        user=ActivityUser(email=user.email, name=user.name) if user else None,
        agent=log.agent,
        action=log.action,
        details=log.details,
        level=log.level,
        created_at=log.created_at,
    ).model_dump(by_alias=True, mode="json")


async def record_activity(
    session: Session,
    broadcaster: ActivityBroadcaster,
    agent: str,
    action: str,
    details: str,
    level: str = "info",
    user_id: Optional[str] = None,
) -> ActivityLog:
    """Insert an activity row, then push it to every connected dashboard."""
    log = ActivityLog(user_id=user_id, agent=agent, action=action, details=details, level=level)
    session.add(log)
    session.commit()
    session.refresh(log)

    user = session.get(User, user_id) if user_id else None
    # Fan-out failures are counted inside the broadcaster; the write already succeeded
    await broadcaster.broadcast(serialize_activity(log, user))
    return log


async def try_record_activity(session: Session, broadcaster: ActivityBroadcaster, **kwargs) -> Optional[ActivityLog]:
    """Best-effort variant for audit rows that must not fail the request."""
    try:
        return await record_activity(session, broadcaster, **kwargs)
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to log activity {kwargs.get('action')}: {e}")
        return None
