# Agent Console - Shared route dependencies

from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.config import Settings
from agent_console.core.database import get_session
from agent_console.core.logging_config import get_audit_logger
from agent_console.models import User
from agent_console.services.auth_service import SessionState, resolve_session
from agent_console.services.presence import PresenceTracker
from agent_console.services.text_provider import TextStreamProvider

bearer_scheme = HTTPBearer(auto_error=False)
audit_logger = get_audit_logger()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_broadcaster(request: Request) -> ActivityBroadcaster:
    return request.app.state.broadcaster


def get_provider(request: Request) -> TextStreamProvider:
    return request.app.state.text_provider


def get_presence(request: Request) -> PresenceTracker:
    return request.app.state.presence


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_session_state(
    token: Optional[str] = Depends(get_token),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> SessionState:
    return resolve_session(session, settings, token)


def get_current_user(request: Request, state: SessionState = Depends(get_session_state)) -> User:
    if not state.valid:
        audit_logger.warning(f"401 {request.method} {request.url.path}: {state.reason}")
        raise HTTPException(status_code=401, detail="Unauthorized")
    return state.user


def require_admin(request: Request, user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        audit_logger.warning(f"403 {request.method} {request.url.path}: {user.email} has role {user.role}")
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required")
    return user
