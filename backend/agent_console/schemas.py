# Agent Console - Request / Response models

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

Role = Literal["admin", "user", "viewer", "developer"]
Level = Literal["info", "warning", "error"]


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without an offset; they are stored as UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the dashboard UI speaks."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========================= AUTH =========================

class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class SessionCheck(BaseModel):
    valid: bool
    reason: Optional[str] = None


# ========================= USERS =========================

class UserRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: str
    last_login_time: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class UserCreate(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    role: Role = "user"


class UserUpdate(CamelModel):
    """Every field optional. Blank strings and nulls mean 'leave unchanged'."""
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[Role] = None

    @field_validator("email", "name", "password", "role", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None or (isinstance(v, str) and v.strip() == ""):
            return None
        return v


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


# ========================= ACTIVITY =========================

class ActivityUser(BaseModel):
    email: str
    name: Optional[str] = None


class ActivityRead(CamelModel):
    id: str
    user_id: Optional[str] = None
    user: Optional[ActivityUser] = None
    agent: str
    action: str
    details: str
    level: str
    created_at: UtcDatetime


class ActivityCreate(BaseModel):
    agent: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    details: str = Field(..., min_length=1)
    level: Level = "info"


# ========================= FILESYSTEM =========================

class WriteFileRequest(BaseModel):
    path: str = Field(..., min_length=1)
    content: str


class CreateEntryRequest(BaseModel):
    path: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    content: str = ""


class DeleteRequest(BaseModel):
    path: str = Field(..., min_length=1)
    recursive: bool = False


class PermissionChange(BaseModel):
    path: str = Field(..., min_length=1)
    mode: str = Field(..., pattern=r"^[0-7]{3}$")


# ========================= SKILLS / AGENTS =========================

class SkillResource(CamelModel):
    file_name: str = Field(..., min_length=1)
    content: str


class SkillSaveRequest(CamelModel):
    file_name: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1)
    resources: List[SkillResource] = []
    target_path: Optional[str] = None


class SkillDeployRequest(CamelModel):
    skill_name: str = Field(..., min_length=1)
    project_path: str = Field(..., min_length=1)


class AgentSaveRequest(CamelModel):
    file_name: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9_-]+\.md$")
    content: str = Field(..., min_length=1, max_length=100000)
    target_path: Optional[str] = None


class AgentDeployRequest(CamelModel):
    agent_file_name: str = Field(..., min_length=1)
    project_path: str = Field(..., min_length=1)
    overwrite: bool = False


class ImportUrlRequest(BaseModel):
    url: str = Field(..., min_length=1)


class GenerateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    mode: Literal["generate", "refine"] = "generate"
    existing_markdown: Optional[str] = None
    refinement_instructions: Optional[str] = None
    stream: bool = True


class RefineRequest(CamelModel):
    content: str = Field(..., min_length=1)
    refinement_instructions: str = Field(..., min_length=1, max_length=5000)
    file_type: Literal["agent", "skill", "file"]
    file_name: Optional[str] = None
    stream: bool = True


# ========================= VNC =========================

class VNCCopyRequest(BaseModel):
    display: str = ""


class VNCPasteRequest(BaseModel):
    display: str = ""
    text: Optional[str] = None
