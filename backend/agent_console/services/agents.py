# Agent Console - Agent definition files
# Agents are single markdown files: <base>/<name>.md, deployed to <project>/.claude/agents/.

import logging
import os
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple

from agent_console.core.frontmatter import read_metadata

logger = logging.getLogger(__name__)

AGENT_FILE_RE = re.compile(r"^[a-zA-Z0-9_-]+\.md$")
FILE_MODE = 0o644


class InvalidAgentName(ValueError):
    pass


def check_agent_file_name(file_name: str) -> str:
    name = os.path.basename(file_name.strip())
    if not AGENT_FILE_RE.match(name):
        raise InvalidAgentName("Invalid filename. Use only letters, numbers, hyphens, and underscores with .md extension")
    return name


def list_agents(base: Path) -> List[dict]:
    agents = []
    if not base.is_dir():
        return agents

    for agent_file in sorted(base.glob("*.md")):
        if not agent_file.is_file():
            continue
        metadata = read_metadata(agent_file.read_text(encoding="utf-8"), agent_file.stem)
        modified = datetime.fromtimestamp(agent_file.stat().st_mtime, tz=timezone.utc)
        agents.append({
            "id": agent_file.stem,
            "fileName": agent_file.name,
            "name": metadata["name"],
            "description": metadata["description"],
            "path": str(agent_file),
            "modified": modified.isoformat(),
        })
    return agents


def save_agent(base: Path, file_name: str, content: str) -> Tuple[Path, bool]:
    """Write an agent file. Returns (path, existed)."""
    name = check_agent_file_name(file_name)
    base.mkdir(parents=True, exist_ok=True)

    agent_file = base / name
    existed = agent_file.exists()
    agent_file.write_text(content, encoding="utf-8")
    os.chmod(agent_file, FILE_MODE)

    logger.info(f"Agent {'updated' if existed else 'created'}: {agent_file} ({len(content)} bytes)")
    return agent_file, existed


def deploy_agent(source_base: Path, file_name: str, project_path: Path, overwrite: bool = False) -> Tuple[Path, bool]:
    """
    Copy a master agent into <project>/.claude/agents/.
    Raises FileNotFoundError for a missing source and FileExistsError when the
    target exists and overwrite is False. Returns (target, overwritten).
    """
    name = check_agent_file_name(file_name)
    source = source_base / name
    if not source.is_file():
        raise FileNotFoundError(f"Agent file not found: {name}")

    target_dir = project_path / ".claude" / "agents"
    target = target_dir / name
    existed = target.exists()
    if existed and not overwrite:
        raise FileExistsError(f"Agent already exists in project: {name}")

    target_dir.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
    os.chmod(target, FILE_MODE)
    return target, existed
