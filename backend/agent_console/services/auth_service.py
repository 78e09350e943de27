# Agent Console - Login / session lifecycle
#
# anonymous -> authenticating -> authenticated(session token) -> invalidated
#
# One current session token per user: a new login overwrites it, so the
# previous session's next check fails with "logged_in_elsewhere".

import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session, select

from agent_console.core.config import Settings
from agent_console.core.security import (
    create_access_token,
    decode_access_token,
    mint_session_token,
    verify_password,
)
from agent_console.models import User, utc_now
from agent_console.schemas import UserRead

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Login failed. The message is safe to show to the client."""


@dataclass
class SessionState:
    user: Optional[User]
    valid: bool
    reason: Optional[str] = None


def find_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email)).first()


def authenticate(session: Session, email: str, password: str) -> User:
    if not email or not password:
        raise AuthError("Email and password are required")

    user = find_user_by_email(session, email)
    # Same error for unknown user and wrong password
    if user is None or not verify_password(password, user.password):
        raise AuthError("Invalid email or password")
    return user


def login(session: Session, settings: Settings, email: str, password: str):
    """Returns (access_token, user). Overwrites any previous session token."""
    user = authenticate(session, email, password)

    session_token = mint_session_token()
    user.current_session_token = session_token
    user.last_login_time = utc_now()
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"New session created for user {user.email} at {user.last_login_time.isoformat()}")
    return create_access_token(settings, user.id, session_token, user.role), user


def resolve_session(session: Session, settings: Settings, token: Optional[str]) -> SessionState:
    if not token:
        return SessionState(user=None, valid=False, reason="no_session")

    payload = decode_access_token(settings, token)
    if not payload or not payload.get("sub") or not payload.get("sid"):
        return SessionState(user=None, valid=False, reason="invalid_token")

    user = session.get(User, payload["sub"])
    if user is None:
        return SessionState(user=None, valid=False, reason="user_not_found")

    if user.current_session_token != payload["sid"]:
        return SessionState(user=user, valid=False, reason="logged_in_elsewhere")

    return SessionState(user=user, valid=True)


def logout(session: Session, user: User):
    user.current_session_token = None
    session.add(user)
    session.commit()
    logger.info(f"Session cleared for user {user.email}")


def serialize_user(user: User) -> dict:
    return UserRead.model_validate(user).model_dump(by_alias=True, mode="json")
