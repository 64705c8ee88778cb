import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portfolio.agent.errors import AIConfigurationError, AIResponseParseError
from portfolio.agent.llm_client import (
    LLMClient,
    close_shared_llm_client,
    extract_json_object,
    get_shared_llm_client,
)


def _chunk(content):
    delta = MagicMock()
    delta.content = content
    choice = MagicMock()
    choice.delta = delta
    chunk = MagicMock()
    chunk.choices = [choice]
    return chunk


class FakeStream:
    def __init__(self, chunks):
        self._chunks = list(chunks)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._chunks:
            raise StopAsyncIteration
        return self._chunks.pop(0)


def _mock_openai(create):
    mock_completions = MagicMock()
    mock_completions.create = create

    mock_chat = MagicMock()
    mock_chat.completions = mock_completions

    mock_client_instance = AsyncMock()
    mock_client_instance.chat = mock_chat
    return mock_client_instance, mock_completions


@pytest.mark.asyncio
async def test_stream_chat_accumulates_deltas_and_reports_the_running_buffer():
    stream = FakeStream([_chunk("<h2>"), _chunk(None), _chunk("Log"), _chunk("</h2>")])
    mock_client_instance, mock_completions = _mock_openai(AsyncMock(return_value=stream))
    seen: list[str] = []

    with patch("portfolio.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            client = LLMClient()
            result = await client.stream_chat(
                "qwen/qwen3-4b:free",
                [{"role": "user", "content": "hi"}],
                on_delta=seen.append,
                timeout=30,
            )

    assert result == "<h2>Log</h2>"
    assert seen == ["<h2>", "<h2>Log", "<h2>Log</h2>"]
    kwargs = mock_completions.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["max_tokens"] == 4096
    assert kwargs["temperature"] == 0.7


@pytest.mark.asyncio
async def test_stream_chat_rejects_empty_output():
    mock_client_instance, _ = _mock_openai(AsyncMock(return_value=FakeStream([_chunk("  ")])))

    with patch("portfolio.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            client = LLMClient()
            with pytest.raises(ValueError, match="Empty response"):
                await client.stream_chat("m", [{"role": "user", "content": "hi"}], timeout=30)


@pytest.mark.asyncio
async def test_stream_chat_times_out():
    async def slow_create(**kwargs):
        await asyncio.sleep(1)

    mock_client_instance, _ = _mock_openai(slow_create)

    with patch("portfolio.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            client = LLMClient()
            with pytest.raises(TimeoutError, match="timed out"):
                await client.stream_chat("m", [{"role": "user", "content": "hi"}], timeout=0.01)


@pytest.mark.asyncio
async def test_complete_returns_message_content():
    mock_message = MagicMock()
    mock_message.content = '{"name": "AWS Cloud Practitioner"}'
    mock_choice = MagicMock()
    mock_choice.message = mock_message
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    mock_client_instance, mock_completions = _mock_openai(AsyncMock(return_value=mock_response))

    with patch("portfolio.agent.llm_client.AsyncOpenAI", return_value=mock_client_instance):
        with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            client = LLMClient()
            result = await client.complete("m", [{"role": "user", "content": "hi"}], timeout=60)

    assert result == '{"name": "AWS Cloud Practitioner"}'
    kwargs = mock_completions.create.call_args.kwargs
    assert kwargs["max_tokens"] == 2048
    assert kwargs["temperature"] == 0.3
    assert "stream" not in kwargs


def test_client_disables_sdk_retries_and_sends_attribution_headers():
    with patch("portfolio.agent.llm_client.AsyncOpenAI") as mock_openai:
        with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            LLMClient()

    kwargs = mock_openai.call_args.kwargs
    assert kwargs["max_retries"] == 0
    assert kwargs["api_key"] == "dummy_key"
    assert set(kwargs["default_headers"]) == {"HTTP-Referer", "X-Title"}


def test_missing_api_key_is_a_configuration_error():
    with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", ""):
        with patch("portfolio.agent.llm_client.settings.OPENROUTER_API_KEY", ""):
            with pytest.raises(AIConfigurationError):
                LLMClient()


@pytest.mark.asyncio
async def test_shared_client_is_reused_until_closed():
    first_instance, _ = _mock_openai(AsyncMock())
    second_instance, _ = _mock_openai(AsyncMock())

    with patch("portfolio.agent.llm_client.AsyncOpenAI", side_effect=[first_instance, second_instance]) as mock_openai:
        with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", "dummy_key"):
            first = get_shared_llm_client()
            again = get_shared_llm_client()
            await close_shared_llm_client()
            rebuilt = get_shared_llm_client()

    assert first is again
    assert mock_openai.call_count == 2
    first_instance.close.assert_awaited_once()
    assert rebuilt is not first
    assert rebuilt.client is second_instance


def test_shared_client_is_not_cached_without_a_key():
    with patch("portfolio.agent.llm_client.settings.LLM_API_KEY", ""):
        with patch("portfolio.agent.llm_client.settings.OPENROUTER_API_KEY", ""):
            with pytest.raises(AIConfigurationError):
                get_shared_llm_client()
            with pytest.raises(AIConfigurationError):
                get_shared_llm_client()


@pytest.mark.asyncio
async def test_closing_without_a_shared_client_is_a_no_op():
    await close_shared_llm_client()


def test_extract_json_object_from_fenced_answer():
    answer = 'Sure! ```json\n{"title": "Data Analyst", "tags": ["SQL", "Python"]}\n``` Hope it helps.'
    assert extract_json_object(answer) == {"title": "Data Analyst", "tags": ["SQL", "Python"]}


def test_extract_json_object_without_object_fails():
    with pytest.raises(AIResponseParseError):
        extract_json_object("I could not read the image.")


def test_extract_json_object_spans_from_first_to_last_brace():
    # Two objects in one answer are captured together and do not parse.
    with pytest.raises(AIResponseParseError):
        extract_json_object('{"a": 1} and also {"b": 2}')
