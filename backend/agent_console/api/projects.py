# Agent Console - Project listing

import os

from fastapi import APIRouter, Depends

from agent_console.api.deps import get_current_user, get_settings
from agent_console.core import filesystem as fs_ops
from agent_console.core.config import Settings
from agent_console.models import User

router = APIRouter(prefix="/api/projects", tags=["projects"])

# Master template trees and infrastructure folders living beside the projects
EXCLUDED_DIRS = ["agents", "skills", "ssl", "node_modules"]


@router.get("")
async def list_projects(user: User = Depends(get_current_user), settings: Settings = Depends(get_settings)):
    projects = []
    for name in fs_ops.list_subdirectories(settings.PROJECTS_DIR, exclude=EXCLUDED_DIRS):
        project_path = os.path.join(settings.PROJECTS_DIR, name)
        agents_path = os.path.join(project_path, ".claude", "agents")
        skills_path = os.path.join(project_path, ".claude", "skills")
        projects.append({
            "name": name,
            "path": project_path,
            "agentsPath": agents_path,
            "skillsPath": skills_path,
            "hasAgentsFolder": os.path.isdir(agents_path),
            "hasSkillsFolder": os.path.isdir(skills_path),
        })

    return {
        "projects": projects,
        "masterAgentsPath": str(settings.agents_path),
        "masterSkillsPath": str(settings.skills_path),
    }
