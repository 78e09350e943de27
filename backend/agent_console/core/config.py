# Agent Console - Production Configuration

from pydantic_settings import BaseSettings
from typing import Dict, List
from pathlib import Path


class Settings(BaseSettings):
    PROJECT_NAME: str = "Agent Console"
    VERSION: str = "1.0.0"

    # Server
    HOST: str = "0.0.0.0"
    APP_PORT: int = 3000
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Database
    DATABASE_URL: str = "sqlite:///./agent_console.db"

    # Security
    JWT_SECRET: str = "supersecretkey_change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    SESSION_MAX_AGE_DAYS: int = 30

    # Gemini API
    GEMINI_API_KEYS: str = ""  # Comma separated
    GEMINI_MODEL: str = "gemini-2.0-flash-exp"

    # Workspace layout
    PROJECTS_DIR: str = "/home/master/projects"
    SKILLS_DIR: str = ""  # Defaults to PROJECTS_DIR/skills
    AGENTS_DIR: str = ""  # Defaults to PROJECTS_DIR/agents
    FILESYSTEM_ALLOWED_ROOTS: str = "/,/home,/home/master,/home/master/projects"

    # Remote markdown import
    IMPORT_ALLOWED_DOMAINS: str = "github.com,raw.githubusercontent.com,gist.github.com,gitlab.com,bitbucket.org"
    IMPORT_TIMEOUT_SECONDS: float = 10.0
    IMPORT_MAX_BYTES: int = 100000

    # Presence
    PRESENCE_TIMEOUT_SECONDS: int = 60

    # VNC displays, display=websockify_port
    VNC_DISPLAYS: str = ":98=6081,:99=6080"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "agent_console.log"
    LOG_DIR: str = str(Path(__file__).parent.parent.parent / "logs")

    @property
    def api_keys_list(self) -> List[str]:
        return [k.strip() for k in self.GEMINI_API_KEYS.split(",") if k.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def allowed_roots(self) -> List[str]:
        return [r.strip() for r in self.FILESYSTEM_ALLOWED_ROOTS.split(",") if r.strip()]

    @property
    def import_domains_list(self) -> List[str]:
        return [d.strip() for d in self.IMPORT_ALLOWED_DOMAINS.split(",") if d.strip()]

    @property
    def skills_path(self) -> Path:
        return Path(self.SKILLS_DIR) if self.SKILLS_DIR else Path(self.PROJECTS_DIR) / "skills"

    @property
    def agents_path(self) -> Path:
        return Path(self.AGENTS_DIR) if self.AGENTS_DIR else Path(self.PROJECTS_DIR) / "agents"

    @property
    def vnc_display_map(self) -> Dict[str, int]:
        displays = {}
        for item in self.VNC_DISPLAYS.split(","):
            display, _, port = item.strip().partition("=")
            if display and port.isdigit():
                displays[display] = int(port)
        return displays

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        case_sensitive = True


settings = Settings()
