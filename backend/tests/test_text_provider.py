from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agent_console.core.key_manager import KeyManager
from agent_console.services.text_provider import GeminiProvider, ProviderError


def chunk_stream(*texts, error=None):
    async def gen():
        for text in texts:
            yield MagicMock(text=text)
        if error:
            raise error
    return gen()


# --- KeyManager ---

def test_key_manager_rotation():
    with patch("agent_console.core.key_manager.GeminiClient") as MockClient:
        km = KeyManager(["key1", "key2", "key3"])

        km.get_client()
        MockClient.assert_called_with(api_key="key1")

        km.rotate_key()
        MockClient.assert_called_with(api_key="key2")

        km.mark_exhausted("key3")
        km.rotate_key()
        # key3 is skipped
        MockClient.assert_called_with(api_key="key1")


def test_key_manager_all_exhausted():
    with patch("agent_console.core.key_manager.GeminiClient"):
        km = KeyManager(["key1", "key2"])
        km.mark_exhausted("key1")
        km.mark_exhausted("key2")
        with pytest.raises(RuntimeError, match="All API keys have been exhausted"):
            km.rotate_key()


def test_key_manager_without_keys():
    km = KeyManager([])
    with pytest.raises(ValueError):
        km.get_current_key()
    assert km.get_status()["active_keys"] == 0


def test_key_manager_status_masks_keys():
    km = KeyManager(["secret-abcd"])
    km.track_usage()
    km.track_usage(success=False, error_msg="boom")
    status = km.get_status()["keys"][0]
    assert status["masked"] == "...abcd"
    assert status["calls_made"] == 2
    assert status["errors"] == 1


# --- GeminiProvider ---

@pytest.mark.asyncio
async def test_generate_rotates_on_quota_error():
    km = KeyManager(["key1", "key2"])
    provider = GeminiProvider(km, "gemini-test")

    with patch("agent_console.core.key_manager.GeminiClient") as mock_gemini:
        generate = AsyncMock(side_effect=[Exception("429 RESOURCE_EXHAUSTED"), MagicMock(text="Success")])
        mock_gemini.return_value.aio.models.generate_content = generate

        assert await provider.generate("prompt") == "Success"
        assert generate.call_count == 2
        assert "key1" in km.exhausted
        assert km.keys[km.index] == "key2"
        generate.assert_called_with(model="gemini-test", contents="prompt")


@pytest.mark.asyncio
async def test_generate_fails_when_all_keys_exhausted():
    km = KeyManager(["key1"])
    provider = GeminiProvider(km, "gemini-test")

    with patch("agent_console.core.key_manager.GeminiClient") as mock_gemini:
        mock_gemini.return_value.aio.models.generate_content = AsyncMock(side_effect=Exception("429 RESOURCE_EXHAUSTED"))
        with pytest.raises(ProviderError, match="exhausted"):
            await provider.generate("prompt")


@pytest.mark.asyncio
async def test_generate_wraps_other_errors():
    provider = GeminiProvider(KeyManager(["key1"]), "gemini-test")
    with patch("agent_console.core.key_manager.GeminiClient") as mock_gemini:
        mock_gemini.return_value.aio.models.generate_content = AsyncMock(side_effect=Exception("400 INVALID_ARGUMENT"))
        with pytest.raises(ProviderError, match="INVALID_ARGUMENT"):
            await provider.generate("prompt")


@pytest.mark.asyncio
async def test_generate_without_keys_is_provider_error():
    provider = GeminiProvider(KeyManager([]), "gemini-test")
    with pytest.raises(ProviderError, match="No Gemini API keys"):
        await provider.generate("prompt")


@pytest.mark.asyncio
async def test_stream_yields_fragments():
    provider = GeminiProvider(KeyManager(["key1"]), "gemini-test")
    with patch("agent_console.core.key_manager.GeminiClient") as mock_gemini:
        mock_gemini.return_value.aio.models.generate_content_stream = AsyncMock(
            return_value=chunk_stream("Hel", "", "lo")
        )
        fragments = [fragment async for fragment in provider.stream("prompt")]
    assert fragments == ["Hel", "lo"]


@pytest.mark.asyncio
async def test_stream_rotates_before_first_fragment():
    km = KeyManager(["key1", "key2"])
    provider = GeminiProvider(km, "gemini-test")
    with patch("agent_console.core.key_manager.GeminiClient") as mock_gemini:
        mock_gemini.return_value.aio.models.generate_content_stream = AsyncMock(
            side_effect=[Exception("429 RESOURCE_EXHAUSTED"), chunk_stream("ok")]
        )
        fragments = [fragment async for fragment in provider.stream("prompt")]
    assert fragments == ["ok"]
    assert km.keys[km.index] == "key2"


@pytest.mark.asyncio
async def test_stream_error_after_first_fragment_is_not_retried():
    km = KeyManager(["key1", "key2"])
    provider = GeminiProvider(km, "gemini-test")
    with patch("agent_console.core.key_manager.GeminiClient") as mock_gemini:
        stream = AsyncMock(return_value=chunk_stream("partial", error=Exception("429 RESOURCE_EXHAUSTED")))
        mock_gemini.return_value.aio.models.generate_content_stream = stream

        received = []
        with pytest.raises(ProviderError):
            async for fragment in provider.stream("prompt"):
                received.append(fragment)

    assert received == ["partial"]
    assert stream.await_count == 1
    assert km.exhausted == set()
