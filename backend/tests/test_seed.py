from sqlmodel import Session, select

from agent_console.core.database import build_engine
from agent_console.core.security import verify_password
from agent_console.models import User, VNCDisplay
from agent_console.seed import run


def test_seed_is_idempotent(settings):
    run(settings)
    run(settings)

    with Session(build_engine(settings.DATABASE_URL)) as session:
        users = {user.email: user for user in session.exec(select(User)).all()}
        displays = session.exec(select(VNCDisplay)).all()

    assert set(users) == {"admin@example.com", "test@example.com", "dev@example.com"}
    assert users["admin@example.com"].role == "admin"
    assert verify_password("admin123", users["admin@example.com"].password)
    assert len(displays) == 2
