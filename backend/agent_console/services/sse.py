# Agent Console - Server-Sent Events relay for generated text

import json
import logging
import re
from typing import AsyncIterator

from fastapi.responses import StreamingResponse

from agent_console.services.text_provider import ProviderError

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*\r?\n")
_CLOSING_FENCE = re.compile(r"\r?\n```$")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def strip_code_fence(text: str) -> str:
    """Remove one surrounding ```lang ... ``` wrapper if present."""
    cleaned = text.strip()
    if _OPENING_FENCE.match(cleaned):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def relay_events(fragments: AsyncIterator[str], label: str = "generate") -> AsyncIterator[str]:
    """
    Forward each fragment as a 'chunk' event carrying only the new text,
    then one 'complete' event with the assembled, de-fenced document.
    Failures become a single 'error' event.
    """
    buffer = []
    length = 0
    chunk_count = 0
    try:
        async for fragment in fragments:
            buffer.append(fragment)
            length += len(fragment)
            chunk_count += 1
            yield sse_event({"type": "chunk", "content": fragment, "currentLength": length})

            if chunk_count % 10 == 0:
                logger.debug(f"[{label}] Sent chunk {chunk_count}, total length {length}")

        logger.info(f"[{label}] Stream complete. Total chunks: {chunk_count}, final length: {length}")
        yield sse_event({"type": "complete", "fullContent": strip_code_fence("".join(buffer))})
    except ProviderError as e:
        logger.error(f"[{label}] Provider error: {e}")
        yield sse_event({"type": "error", "message": str(e) or "Generation failed"})
    except Exception as e:
        logger.exception(f"[{label}] Unexpected streaming error")
        yield sse_event({"type": "error", "message": str(e) or "Generation failed"})


def event_stream_response(fragments: AsyncIterator[str], label: str) -> StreamingResponse:
    return StreamingResponse(
        relay_events(fragments, label),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
