# Agent Console - Generative text providers
# The relay logic only depends on TextStreamProvider, not on a vendor SDK.

import logging
from typing import AsyncIterator, Protocol

from agent_console.core.key_manager import KeyManager

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The generative-text provider failed."""


class TextStreamProvider(Protocol):
    async def generate(self, prompt: str) -> str:
        ...

    def stream(self, prompt: str) -> AsyncIterator[str]:
        ...


def _is_quota_error(error: Exception) -> bool:
    return (
        "RESOURCE_EXHAUSTED" in str(error)
        or getattr(error, "code", 0) == 429
        or getattr(error, "status_code", 0) == 429
    )


class GeminiProvider:
    """Gemini via google-genai, rotating keys on rate-limit errors."""

    def __init__(self, key_manager: KeyManager, model: str):
        self.key_manager = key_manager
        self.model = model

    def _handle_quota(self, error: Exception):
        exhausted_key = self.key_manager.keys[self.key_manager.index]
        self.key_manager.mark_exhausted(exhausted_key)
        try:
            self.key_manager.rotate_key()
        except RuntimeError:
            raise ProviderError("All Gemini API keys exhausted; generation failed.") from error

    async def generate(self, prompt: str) -> str:
        attempts = 0
        max_retries = len(self.key_manager.keys) + 1

        while attempts < max_retries:
            try:
                client = self.key_manager.get_client()
                response = await client.aio.models.generate_content(model=self.model, contents=prompt)
                self.key_manager.track_usage()
                return response.text or ""
            except ProviderError:
                raise
            except Exception as e:
                self.key_manager.track_usage(success=False, error_msg=str(e))
                if _is_quota_error(e):
                    self._handle_quota(e)
                    attempts += 1
                    continue
                raise ProviderError(str(e) or "Failed to generate content") from e

        raise ProviderError("Failed to generate content after all retries")

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        """Yield text fragments. Keys rotate only before the first fragment arrives."""
        attempts = 0
        max_retries = len(self.key_manager.keys) + 1

        while attempts < max_retries:
            started = False
            try:
                client = self.key_manager.get_client()
                chunks = await client.aio.models.generate_content_stream(model=self.model, contents=prompt)
                async for chunk in chunks:
                    text = chunk.text
                    if text:
                        started = True
                        yield text
                self.key_manager.track_usage()
                return
            except ProviderError:
                raise
            except Exception as e:
                self.key_manager.track_usage(success=False, error_msg=str(e))
                if _is_quota_error(e) and not started:
                    self._handle_quota(e)
                    attempts += 1
                    continue
                raise ProviderError(str(e) or "Failed to stream content") from e

        raise ProviderError("Failed to stream content after all retries")
