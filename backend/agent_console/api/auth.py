# Agent Console - Authentication routes

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from agent_console.api.deps import (
    get_broadcaster,
    get_current_user,
    get_session_state,
    get_settings,
)
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.config import Settings
from agent_console.core.database import get_session
from agent_console.models import User
from agent_console.schemas import LoginRequest, SessionCheck
from agent_console.services import auth_service
from agent_console.services.activity import try_record_activity
from agent_console.services.auth_service import AuthError, SessionState, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

AUTH_AGENT = "auth-system"


@router.post("/login")
async def login(
    request: LoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    email = request.email.strip()
    if not email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        access_token, user = auth_service.login(session, settings, email, request.password)
    except AuthError as e:
        logger.info(f"Failed login attempt for {email}")
        raise HTTPException(status_code=401, detail=str(e))

    await try_record_activity(
        session, broadcaster,
        agent=AUTH_AGENT,
        action="user_login",
        details=f"User {user.email} signed in successfully",
        user_id=user.id,
    )
    return {"access_token": access_token, "token_type": "bearer", "user": serialize_user(user)}


@router.post("/logout")
async def logout(
    state: SessionState = Depends(get_session_state),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    # A displaced session must not clear the token of the newer login
    if state.valid:
        user = state.user
        auth_service.logout(session, user)
        await try_record_activity(
            session, broadcaster,
            agent=AUTH_AGENT,
            action="user_logout",
            details=f"User {user.email} signed out",
            user_id=user.id,
        )
    return {"success": True}


@router.get("/check-session", response_model=SessionCheck, response_model_exclude_none=True)
async def check_session(state: SessionState = Depends(get_session_state)):
    if not state.valid and state.reason == "logged_in_elsewhere":
        logger.info(f"Session invalidated for {state.user.email}: logged in elsewhere")
    return SessionCheck(valid=state.valid, reason=state.reason)


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return serialize_user(user)
