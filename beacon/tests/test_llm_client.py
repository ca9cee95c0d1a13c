"""Tests for LLMClient provider abstraction."""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from beacon.common.llm_client import LLMClient


class TestLLMClientInit:
    @pytest.mark.parametrize("provider", ["openai", "anthropic", "google"])
    def test_missing_key_logs_info(self, caplog, provider):
        with caplog.at_level(logging.INFO, logger="beacon.common.llm_client"):
            client = LLMClient(provider=provider)
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_auto_provider_raises(self):
        with pytest.raises(ValueError, match="auto"):
            LLMClient(provider="auto")

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="beacon.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text

    def test_provider_is_lowercased(self):
        client = LLMClient(provider="OpenAI")
        assert client.provider == "openai"

    def test_openai_client_created_with_key(self):
        client = LLMClient(provider="openai", model="gpt-4", openai_api_key="sk-test")
        assert client.is_available


class TestLLMClientUnavailable:
    @pytest.mark.asyncio
    async def test_generate_raises_when_unavailable(self):
        client = LLMClient(provider="anthropic")
        with pytest.raises(RuntimeError, match="not available"):
            await client.generate("test")

    @pytest.mark.asyncio
    async def test_stream_raises_when_unavailable(self):
        client = LLMClient(provider="openai")
        with pytest.raises(RuntimeError, match="not available"):
            async for _ in client.stream("test"):
                pass


def openai_chunk(text):
    chunk = MagicMock()
    chunk.choices = [MagicMock()]
    chunk.choices[0].delta.content = text
    return chunk


class FakeOpenAIStream:
    """Async iterable of chunks with an awaitable close()"""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._chunks:
            raise StopAsyncIteration
        return self._chunks.pop(0)

    async def close(self):
        self.closed = True


class TestLLMClientOpenAI:
    @pytest.fixture
    def client(self):
        client = LLMClient(provider="openai", model="gpt-4", openai_api_key="sk-test")
        client._client = MagicMock()
        return client

    @pytest.mark.asyncio
    async def test_generate_sends_system_and_user(self, client):
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = "  Answer text \n"
        client._client.chat.completions.create = AsyncMock(return_value=response)

        text = await client.generate("question", system="rules", max_tokens=10, temperature=0.1)

        assert text == "Answer text"
        kwargs = client._client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["max_tokens"] == 10
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"] == [
            {"role": "system", "content": "rules"},
            {"role": "user", "content": "question"},
        ]

    @pytest.mark.asyncio
    async def test_generate_no_choices(self, client):
        response = MagicMock()
        response.choices = []
        client._client.chat.completions.create = AsyncMock(return_value=response)

        assert await client.generate("question") == ""

    @pytest.mark.asyncio
    async def test_stream_yields_deltas_and_closes(self, client):
        upstream = FakeOpenAIStream([openai_chunk("Hel"), openai_chunk(None), openai_chunk("lo")])
        client._client.chat.completions.create = AsyncMock(return_value=upstream)

        deltas = [d async for d in client.stream("question")]

        assert deltas == ["Hel", "lo"]
        assert upstream.closed
        assert client._client.chat.completions.create.await_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_stream_early_close_closes_upstream(self, client):
        upstream = FakeOpenAIStream([openai_chunk("a"), openai_chunk("b")])
        client._client.chat.completions.create = AsyncMock(return_value=upstream)

        stream = client.stream("question")
        assert await stream.__anext__() == "a"
        await stream.aclose()

        assert upstream.closed


class TestLLMClientAnthropic:
    @pytest.mark.asyncio
    async def test_generate_passes_system(self):
        client = LLMClient(provider="anthropic", model="claude-sonnet-4-20250514", anthropic_api_key="sk-ant")
        client._client = MagicMock()
        response = MagicMock()
        response.content = [MagicMock(text=" grounded answer ")]
        client._client.messages.create = AsyncMock(return_value=response)

        text = await client.generate("question", system="rules")

        assert text == "grounded answer"
        kwargs = client._client.messages.create.await_args.kwargs
        assert kwargs["system"] == "rules"
        assert kwargs["messages"] == [{"role": "user", "content": "question"}]
