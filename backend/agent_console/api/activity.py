# Agent Console - Activity log routes

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlmodel import Session, select

from agent_console.api.deps import get_broadcaster, get_current_user
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.database import get_session
from agent_console.models import ActivityLog, User
from agent_console.schemas import ActivityCreate, Level, Pagination
from agent_console.services.activity import record_activity, serialize_activity

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("")
async def list_activity(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    agent: Optional[str] = None,
    level: Optional[Level] = None,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Newest page first; entries inside a page are in chronological order."""
    filters = []
    if agent:
        filters.append(ActivityLog.agent == agent)
    if level:
        filters.append(ActivityLog.level == level)

    total = session.exec(select(func.count()).select_from(ActivityLog).where(*filters)).one()
    rows = session.exec(
        select(ActivityLog, User)
        .join(User, ActivityLog.user_id == User.id, isouter=True)
        .where(*filters)
        .order_by(ActivityLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    items = [serialize_activity(log, log_user) for log, log_user in reversed(rows)]
    return {
        "items": items,
        "pagination": Pagination(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit)),
    }


@router.post("")
async def create_activity(
    request: ActivityCreate,
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    """Agents report activity here without a dashboard session."""
    log = await record_activity(
        session, broadcaster,
        agent=request.agent,
        action=request.action,
        details=request.details,
        level=request.level,
    )
    return {"id": log.id, "created": True}
