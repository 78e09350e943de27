# Agent Console - Shared handling for generate / refine requests

import logging

from fastapi import HTTPException

from agent_console.schemas import GenerateRequest
from agent_console.services.prompts import build_generate_prompt, build_refine_prompt
from agent_console.services.sse import event_stream_response, strip_code_fence
from agent_console.services.text_provider import ProviderError, TextStreamProvider

logger = logging.getLogger(__name__)


def prompt_for(kind: str, request: GenerateRequest) -> str:
    if request.mode == "refine":
        if not request.existing_markdown or not request.refinement_instructions:
            raise HTTPException(
                status_code=400,
                detail="existingMarkdown and refinementInstructions are required for refine mode",
            )
        return build_refine_prompt(kind, request.existing_markdown, request.refinement_instructions)
    return build_generate_prompt(kind, request.name, request.description)


async def respond(provider: TextStreamProvider, prompt: str, stream: bool, label: str):
    """Stream as Server-Sent Events, or return the whole document at once."""
    if stream:
        logger.info(f"[{label}] Starting streaming generation")
        return event_stream_response(provider.stream(prompt), label)

    try:
        text = await provider.generate(prompt)
    except ProviderError as e:
        logger.error(f"[{label}] Generation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to generate content")
    return {"content": strip_code_fence(text)}
