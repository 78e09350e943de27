import json

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from agent_console.core.config import Settings
from agent_console.core.security import hash_password
from agent_console.main import create_app
from agent_console.models import User


class FakeProvider:
    """Text provider that replays canned fragments."""

    def __init__(self, chunks=None, error=None):
        self.chunks = chunks if chunks is not None else ["---\nname: demo\n", "description: Demo doc\n---\n", "Body"]
        self.error = error
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return "".join(self.chunks)

    async def stream(self, prompt: str):
        self.prompts.append(prompt)
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise self.error


@pytest.fixture
def workspace(tmp_path):
    home = tmp_path / "home"
    projects = home / "projects"
    (projects / "skills").mkdir(parents=True)
    (projects / "agents").mkdir(parents=True)
    return {"home": home, "projects": projects}


@pytest.fixture
def settings(tmp_path, workspace):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET="test-secret",
        PROJECTS_DIR=str(workspace["projects"]),
        FILESYSTEM_ALLOWED_ROOTS=f"{workspace['home']},{workspace['projects']}",
        LOG_DIR=str(tmp_path / "logs"),
        VNC_DISPLAYS=":98=6081,:99=6080",
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def app(settings, provider):
    return create_app(settings=settings, text_provider=provider)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def make_user(app, email, password, role="user", name=None):
    with Session(app.state.engine) as session:
        user = User(email=email, name=name or email.split("@")[0], password=hash_password(password), role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user


def login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin(client, app):
    return make_user(app, "admin@example.com", "admin123", role="admin", name="Admin User")


@pytest.fixture
def admin_headers(client, admin):
    return login(client, "admin@example.com", "admin123")


@pytest.fixture
def member(client, app):
    return make_user(app, "member@example.com", "member123", role="user", name="Member")


@pytest.fixture
def member_headers(client, member):
    return login(client, "member@example.com", "member123")


def parse_sse(body: str):
    events = []
    for block in body.split("\n\n"):
        block = block.strip()
        if block.startswith("data: "):
            events.append(json.loads(block[len("data: "):]))
    return events

