# Agent Console - Skill management service
# Layout: <base>/<skill-name>/SKILL.md plus a sibling resources/ folder.

import logging
import os
import re
import shutil
from pathlib import Path
from typing import List, Optional

from agent_console.core.frontmatter import FrontMatter, parse_front_matter, read_metadata

logger = logging.getLogger(__name__)

SKILL_FILE = "SKILL.md"
RESOURCES_DIR = "resources"
SKILL_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


class InvalidSkillName(ValueError):
    pass


def skill_dir_name(file_name: str) -> str:
    """'my-skill.md' -> 'my-skill'. Rejects anything that could escape the base directory."""
    name = re.sub(r"\.md$", "", file_name.strip())
    if not SKILL_NAME_RE.match(name):
        raise InvalidSkillName("Skill name may only contain letters, digits, '-' and '_'")
    return name


def resource_file_name(file_name: str) -> str:
    name = os.path.basename(file_name.strip())
    if name in (".", ".."):
        raise InvalidSkillName(f"Invalid resource name: {file_name}")
    return name


def parse_skill_metadata(skill_path: Path) -> dict:
    """Parse skill metadata from SKILL.md frontmatter."""
    skill_md = skill_path / SKILL_FILE
    if not skill_md.exists():
        return {"name": skill_path.name, "description": ""}
    return read_metadata(skill_md.read_text(encoding="utf-8"), skill_path.name)


def list_skills(base: Path) -> List[dict]:
    """List skill folders under a base directory."""
    skills = []
    if not base.exists():
        return skills

    for skill_path in sorted(base.iterdir()):
        if skill_path.is_dir() and not skill_path.name.startswith('.'):
            metadata = parse_skill_metadata(skill_path)
            resources = skill_path / RESOURCES_DIR
            skills.append({
                "id": skill_path.name,
                "name": metadata["name"],
                "description": metadata["description"],
                "path": str(skill_path),
                "hasSkillMd": (skill_path / SKILL_FILE).exists(),
                "resources": sorted(p.name for p in resources.iterdir() if p.is_file()) if resources.is_dir() else [],
            })

    return skills


def save_skill(base: Path, file_name: str, content: str, resources: Optional[list] = None) -> dict:
    """
    Validate the front-matter, then write SKILL.md and its resources.
    Nothing is written when validation fails.
    """
    metadata: FrontMatter = parse_front_matter(content)
    name = skill_dir_name(file_name)
    resource_names = [resource_file_name(resource.file_name) for resource in resources or []]

    skill_path = base / name
    skill_file = skill_path / SKILL_FILE
    resources_path = skill_path / RESOURCES_DIR

    skill_path.mkdir(parents=True, exist_ok=True)
    skill_file.write_text(content, encoding="utf-8")
    resources_path.mkdir(exist_ok=True)

    written = []
    for resource_name, resource in zip(resource_names, resources or []):
        if not resource_name or not resource.content:
            continue
        (resources_path / resource_name).write_text(resource.content, encoding="utf-8")
        written.append(resource_name)

    logger.info(f"Skill saved: {metadata.name} -> {skill_file} ({len(written)} resources)")
    return {
        "path": str(skill_file),
        "skillPath": str(skill_path),
        "resourcesPath": str(resources_path),
        "skillName": name,
        "name": metadata.name,
        "description": metadata.description,
        "resources": written,
    }


def deploy_skill(source_base: Path, skill_name: str, project_path: Path) -> dict:
    """Copy a master skill folder into <project>/.claude/skills/<name>, replacing any previous copy."""
    name = skill_dir_name(skill_name)
    source = source_base / name
    if not (source / SKILL_FILE).exists():
        raise FileNotFoundError(f"Skill not found: {name}")

    target = project_path / ".claude" / "skills" / name
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        shutil.rmtree(target)
    shutil.copytree(source, target)

    metadata = parse_skill_metadata(target)
    return {"sourcePath": str(source), "destPath": str(target), "displayName": metadata["name"]}
