# Agent Console - Agent definition routes

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from agent_console.api.deps import get_broadcaster, get_current_user, get_provider, get_settings
from agent_console.api.generation import prompt_for, respond
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.config import Settings
from agent_console.core.database import get_session
from agent_console.core.filesystem import ensure_allowed
from agent_console.core.frontmatter import read_metadata
from agent_console.models import User
from agent_console.schemas import AgentDeployRequest, AgentSaveRequest, GenerateRequest, ImportUrlRequest
from agent_console.services import agents as agent_service
from agent_console.services.activity import try_record_activity
from agent_console.services.agents import InvalidAgentName
from agent_console.services.importer import ImportFailure, fetch_markdown
from agent_console.services.text_provider import TextStreamProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agents", tags=["agents"])

AGENTS_AGENT = "agent-manager"


@router.get("")
async def list_agents(user: User = Depends(get_current_user), settings: Settings = Depends(get_settings)):
    agents = agent_service.list_agents(settings.agents_path)
    return {"agents": agents, "count": len(agents)}


@router.post("/save")
async def save_agent(
    request: AgentSaveRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    if request.target_path:
        base = Path(ensure_allowed(request.target_path, settings.allowed_roots)) / ".claude" / "agents"
    else:
        base = settings.agents_path

    try:
        path, existed = agent_service.save_agent(base, request.file_name, request.content)
    except InvalidAgentName as e:
        raise HTTPException(status_code=400, detail=str(e))

    await try_record_activity(
        session, broadcaster,
        agent=AGENTS_AGENT,
        action="update_agent" if existed else "create_agent",
        details=f"{'Updated' if existed else 'Created'} agent: {request.file_name} at {path}",
        user_id=user.id,
    )
    return {
        "success": True,
        "message": "Agent updated successfully" if existed else "Agent created successfully",
        "filePath": str(path),
        "fileName": request.file_name,
    }


@router.post("/generate")
async def generate_agent(
    request: GenerateRequest,
    user: User = Depends(get_current_user),
    provider: TextStreamProvider = Depends(get_provider),
):
    prompt = prompt_for("agent", request)
    logger.info(f"Agent {request.mode} requested by {user.email}: {request.name}")
    return await respond(provider, prompt, request.stream, "agents/generate")


@router.post("/deploy")
async def deploy_agent(
    request: AgentDeployRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    project = Path(ensure_allowed(request.project_path, settings.allowed_roots))
    if not project.is_dir():
        raise HTTPException(status_code=404, detail="Project not found")

    try:
        target, overwritten = agent_service.deploy_agent(
            settings.agents_path, request.agent_file_name, project, overwrite=request.overwrite
        )
    except InvalidAgentName as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info(f"Deployed agent: {request.agent_file_name} to {target} with permissions 644")
    await try_record_activity(
        session, broadcaster,
        agent=AGENTS_AGENT,
        action="deploy_agent",
        details=f"Deployed agent {request.agent_file_name} to {target}{' (overwritten)' if overwritten else ''}",
        user_id=user.id,
    )
    return {
        "success": True,
        "message": f"Agent {request.agent_file_name} deployed successfully",
        "targetPath": str(target),
        "overwritten": overwritten,
    }


@router.post("/import-url")
async def import_agent(
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

    metadata = read_metadata(content, "")
    return {"success": True, "content": content, "url": request.url, "name": metadata["name"]}
