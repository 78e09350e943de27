# Agent Console - Database engine and sessions

from contextlib import contextmanager
import logging

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL. SQLite gets foreign keys switched on."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,  # Check connection liveliness
    )

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_db_and_tables(engine: Engine):
    # Import models so they register on SQLModel.metadata
    from agent_console import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """FastAPI dependency for database sessions."""
    with Session(request.app.state.engine) as session:
        yield session


@contextmanager
def safe_session(engine: Engine):
    """
    Context manager for safe database transactions.
    Automatically commits on success, rollbacks on error.
    """
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database transaction failed: {e}")
            raise
