# Agent Console - Document refinement route

import logging

from fastapi import APIRouter, Depends

from agent_console.api.deps import get_current_user, get_provider
from agent_console.api.generation import respond
from agent_console.models import User
from agent_console.schemas import RefineRequest
from agent_console.services.prompts import build_refine_prompt
from agent_console.services.text_provider import TextStreamProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/document", tags=["documents"])


@router.post("/refine")
async def refine_document(
    request: RefineRequest,
    user: User = Depends(get_current_user),
    provider: TextStreamProvider = Depends(get_provider),
):
    logger.info(
        f"Starting refinement: type={request.file_type} file={request.file_name} "
        f"length={len(request.content)} user={user.email}"
    )
    prompt = build_refine_prompt(
        request.file_type, request.content, request.refinement_instructions, request.file_name
    )
    return await respond(provider, prompt, request.stream, "document/refine")
