# Agent Console - Seed default users and VNC displays
# Usage: python -m agent_console.seed

import logging

from sqlmodel import Session

from agent_console.core.config import Settings, settings as default_settings
from agent_console.core.database import build_engine, create_db_and_tables, safe_session
from agent_console.core.logging_config import setup_logging
from agent_console.core.security import hash_password
from agent_console.models import User
from agent_console.services.auth_service import find_user_by_email
from agent_console.services.vnc import ensure_displays

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"email": "admin@example.com", "name": "Admin User", "password": "admin123", "role": "admin"},
    {"email": "test@example.com", "name": "Test User", "password": "password123", "role": "user"},
    {"email": "dev@example.com", "name": "Developer", "password": "dev123", "role": "developer"},
]


def seed_users(session: Session, users=DEFAULT_USERS) -> int:
    """Create missing users. Existing accounts are left untouched."""
    created = 0
    for data in users:
        if find_user_by_email(session, data["email"]):
            logger.info(f"User already exists: {data['email']}")
            continue
        session.add(User(
            email=data["email"],
            name=data["name"],
            password=hash_password(data["password"]),
            role=data["role"],
        ))
        created += 1
        logger.info(f"Created user: {data['email']} ({data['role']})")
    session.commit()
    return created


def run(settings: Settings = default_settings):
    engine = build_engine(settings.DATABASE_URL)
    create_db_and_tables(engine)
    with safe_session(engine) as session:
        users = seed_users(session)
        displays = ensure_displays(session, settings.vnc_display_map)
    logger.info(f"Seeding complete: {users} user(s), {displays} VNC display(s) added")


if __name__ == "__main__":
    setup_logging()
    run()
