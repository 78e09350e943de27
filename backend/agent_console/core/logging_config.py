# Agent Console - Logging Configuration

import logging
import sys
from pathlib import Path

from agent_console.core.config import Settings, settings as default_settings

AUDIT_LOGGER = "agent_console.audit"


def setup_logging(settings: Settings = default_settings) -> logging.Logger:
    """Configure application logging."""

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / settings.LOG_FILE

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured: {settings.LOG_LEVEL} -> {log_file}")

    return logger


def get_audit_logger() -> logging.Logger:
    """Logger for authorization failures. Never broadcast."""
    return logging.getLogger(AUDIT_LOGGER)
