# Agent Console - Application entry point

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from agent_console.api import (
    activity,
    agents,
    auth,
    documents,
    filesystem,
    presence,
    projects,
    skills,
    users,
    vnc,
    websocket,
)
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.config import Settings, settings as default_settings
from agent_console.core.database import build_engine, create_db_and_tables
from agent_console.core.filesystem import PathNotAllowedError
from agent_console.core.frontmatter import FrontMatterError
from agent_console.core.key_manager import KeyManager
from agent_console.core.logging_config import get_audit_logger, setup_logging
from agent_console.services.presence import PresenceTracker
from agent_console.services.text_provider import GeminiProvider, TextStreamProvider
from agent_console.services.vnc import ensure_displays

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create DB tables and register VNC displays
    create_db_and_tables(app.state.engine)
    with Session(app.state.engine) as session:
        ensure_displays(session, app.state.settings.vnc_display_map)
    logger.info(f"{app.state.settings.PROJECT_NAME} started")
    yield
    # Shutdown: drop open dashboard sockets
    await app.state.broadcaster.close_all()
    logger.info("Activity broadcaster closed")


def _field_errors(exc: RequestValidationError):
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # detail may be a plain message or {"message", "details"}
        if isinstance(exc.detail, dict):
            content = {"error": exc.detail.get("message", "Error"), "details": exc.detail.get("details")}
        else:
            content = {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Validation failed", "details": _field_errors(exc)})

    @app.exception_handler(FrontMatterError)
    async def front_matter_handler(request: Request, exc: FrontMatterError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(PathNotAllowedError)
    async def path_not_allowed_handler(request: Request, exc: PathNotAllowedError):
        get_audit_logger().warning(f"403 {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=403, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None, text_provider: Optional[TextStreamProvider] = None) -> FastAPI:
    """Build an application instance with its own engine, broadcaster and presence tracker."""
    settings = settings or default_settings
    setup_logging(settings)

    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        description="Backend API for the Agent Console dashboard",
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings.DATABASE_URL)
    app.state.broadcaster = ActivityBroadcaster()
    app.state.presence = PresenceTracker(timeout=settings.PRESENCE_TIMEOUT_SECONDS)
    app.state.text_provider = text_provider or GeminiProvider(
        KeyManager(settings.api_keys_list), settings.GEMINI_MODEL
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for module in (auth, users, activity, filesystem, skills, agents, documents, projects, presence, vnc, websocket):
        app.include_router(module.router)

    @app.get("/")
    async def root():
        return {"message": f"{settings.PROJECT_NAME} API is running", "docs": "/docs"}

    @app.get("/health")
    async def health():
        status = {
            "status": "ok",
            "version": settings.VERSION,
            "websocketClients": app.state.broadcaster.client_count,
        }
        key_manager = getattr(app.state.text_provider, "key_manager", None)
        if key_manager is not None:
            status["apiKeys"] = key_manager.get_status()
        return status

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "agent_console.main:app",
        host=default_settings.HOST,
        port=default_settings.APP_PORT,
        log_level="warning",
        access_log=False,
    )
