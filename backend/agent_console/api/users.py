# Agent Console - User management routes (admin only)

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlmodel import Session, select

from agent_console.api.deps import get_broadcaster, require_admin
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.database import get_session
from agent_console.core.security import hash_password
from agent_console.models import ActivityLog, User, utc_now
from agent_console.schemas import Pagination, UserCreate, UserUpdate
from agent_console.services.activity import try_record_activity
from agent_console.services.auth_service import find_user_by_email, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

USER_AGENT_NAME = "user-management"


def _get_user_or_404(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[str] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(User.email.ilike(pattern), User.name.ilike(pattern)))
    if role:
        filters.append(User.role == role)

    total = session.exec(select(func.count()).select_from(User).where(*filters)).one()
    users = session.exec(
        select(User).where(*filters).order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    ).all()

    return {
        "items": [serialize_user(user) for user in users],
        "pagination": Pagination(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit)),
    }


@router.post("", status_code=201)
async def create_user(
    request: UserCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    if find_user_by_email(session, request.email):
        raise HTTPException(status_code=409, detail="User with this email already exists")

    user = User(
        email=request.email,
        name=request.name,
        password=hash_password(request.password),
        role=request.role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"User created: {user.email} ({user.role}) by {admin.email}")

    await try_record_activity(
        session, broadcaster,
        agent=USER_AGENT_NAME,
        action="create_user",
        details=f"Admin {admin.email} created user: {user.email} ({user.role})",
        user_id=admin.id,
    )
    return {"user": serialize_user(user), "message": "User created successfully"}


@router.get("/{user_id}")
async def get_user(user_id: str, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return serialize_user(_get_user_or_404(session, user_id))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: UserUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    user = _get_user_or_404(session, user_id)
    previous_email = user.email

    if request.email and request.email != user.email and find_user_by_email(session, request.email):
        raise HTTPException(status_code=409, detail="User with this email already exists")

    changes = []
    if request.email:
        user.email = request.email
        changes.append(f"email to {request.email}")
    if request.name:
        user.name = request.name
        changes.append(f"name to {request.name}")
    if request.role:
        user.role = request.role
        changes.append(f"role to {request.role}")
    if request.password:
        user.password = hash_password(request.password)
        changes.append("password")

    if changes:
        user.updated_at = utc_now()
        session.add(user)
        session.commit()
        session.refresh(user)

    await try_record_activity(
        session, broadcaster,
        agent=USER_AGENT_NAME,
        action="update_user",
        details=f"Admin {admin.email} updated user {previous_email}: {', '.join(changes) or 'no changes'}",
        user_id=admin.id,
    )
    return {"user": serialize_user(user), "message": "User updated successfully"}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    user = _get_user_or_404(session, user_id)
    email, role = user.email, user.role

    # The user's activity rows go with the account
    for log in session.exec(select(ActivityLog).where(ActivityLog.user_id == user_id)).all():
        session.delete(log)
    session.flush()
    session.delete(user)
    session.commit()
    logger.warning(f"User deleted: {email} by {admin.email}")

    await try_record_activity(
        session, broadcaster,
        agent=USER_AGENT_NAME,
        action="delete_user",
        details=f"Admin {admin.email} deleted user: {email} ({role})",
        level="warning",
        user_id=admin.id,
    )
    return {"message": "User deleted successfully"}
