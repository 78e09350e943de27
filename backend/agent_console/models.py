# Agent Console - Database tables

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_field(**kwargs):
    """Timezone-aware timestamp column defaulting to now (UTC)."""
    return Field(default_factory=utc_now, sa_type=DateTime(timezone=True), **kwargs)


class User(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: Optional[str] = None
    password: str  # bcrypt hash
    role: str = "user"
    current_session_token: Optional[str] = None
    last_login_time: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class ActivityLog(SQLModel, table=True):
    """Append-only audit row. Never updated after insert."""
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, foreign_key="user.id", index=True)
    agent: str = Field(index=True)
    action: str
    details: str
    level: str = Field(default="info", index=True)
    created_at: datetime = timestamp_field(index=True)


class VNCDisplay(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    display: str = Field(unique=True)
    port: int
    resolution: str = "1024x768"
    is_active: bool = True
