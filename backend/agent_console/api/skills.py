# Agent Console - Skill routes

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from agent_console.api.deps import get_broadcaster, get_current_user, get_provider, get_settings
from agent_console.api.generation import prompt_for, respond
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.config import Settings
from agent_console.core.database import get_session
from agent_console.core.filesystem import ensure_allowed
from agent_console.core.frontmatter import parse_front_matter, slugify
from agent_console.models import User
from agent_console.schemas import GenerateRequest, ImportUrlRequest, SkillDeployRequest, SkillSaveRequest
from agent_console.services import skills as skill_service
from agent_console.services.activity import try_record_activity
from agent_console.services.importer import ImportFailure, fetch_markdown
from agent_console.services.skills import InvalidSkillName
from agent_console.services.text_provider import TextStreamProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/skills", tags=["skills"])

SKILLS_AGENT = "skills-manager"


def _project_skills_base(settings: Settings, project_path: str) -> Path:
    return Path(ensure_allowed(project_path, settings.allowed_roots)) / ".claude" / "skills"


@router.get("")
async def list_skills(
    projectPath: Optional[str] = None,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    base = _project_skills_base(settings, projectPath) if projectPath else settings.skills_path
    skills = skill_service.list_skills(base)
    return {"skills": skills, "count": len(skills), "basePath": str(base)}


@router.post("/save")
async def save_skill(
    request: SkillSaveRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    base = _project_skills_base(settings, request.target_path) if request.target_path else settings.skills_path
    try:
        result = skill_service.save_skill(base, request.file_name, request.content, request.resources)
    except InvalidSkillName as e:
        raise HTTPException(status_code=400, detail=str(e))

    await try_record_activity(
        session, broadcaster,
        agent=SKILLS_AGENT,
        action="create_skill",
        details=f"Created skill: {result['name']} at {result['skillPath']}",
        user_id=user.id,
    )
    return {"success": True, "message": f'Skill "{result["name"]}" saved successfully!', **result}


@router.post("/generate")
async def generate_skill(
    request: GenerateRequest,
    user: User = Depends(get_current_user),
    provider: TextStreamProvider = Depends(get_provider),
):
    prompt = prompt_for("skill", request)
    logger.info(f"Skill {request.mode} requested by {user.email}: {request.name}")
    return await respond(provider, prompt, request.stream, "skills/generate")


@router.post("/deploy")
async def deploy_skill(
    request: SkillDeployRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    project = Path(ensure_allowed(request.project_path, settings.allowed_roots))
    if not project.is_dir():
        raise HTTPException(status_code=404, detail="Project not found")

    try:
        result = skill_service.deploy_skill(settings.skills_path, request.skill_name, project)
    except InvalidSkillName as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await try_record_activity(
        session, broadcaster,
        agent=SKILLS_AGENT,
        action="deploy_skill",
        details=f"Deployed skill {result['displayName']} to {result['destPath']}",
        user_id=user.id,
    )
    return {"success": True, "message": f'Skill "{result["displayName"]}" deployed successfully!', **result}


@router.post("/import-url")
async def import_skill(
    request: ImportUrlRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    try:
        content = await fetch_markdown(
            request.url,
            settings.import_domains_list,
            settings.IMPORT_TIMEOUT_SECONDS,
            settings.IMPORT_MAX_BYTES,
        )
    except ImportFailure as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    metadata = parse_front_matter(content)
    return {
        "success": True,
        "fileName": slugify(metadata.name),
        "content": content,
        "skillName": metadata.name,
    }
