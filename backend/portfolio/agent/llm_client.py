import asyncio
import json
import logging
import re
from collections.abc import Callable
from typing import Any

from openai import AsyncOpenAI

from portfolio.agent.errors import AIConfigurationError, AIResponseParseError
from portfolio.core.config import settings

logger = logging.getLogger(__name__)

# Greedy on purpose: first "{" through the last "}". Multiple or trailing JSON
# blocks in one answer are captured together and then fail to parse.
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict[str, Any]:
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise AIResponseParseError("Invalid JSON response: no object found in model output")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise AIResponseParseError(f"Invalid JSON response: {exc}") from exc
    if not isinstance(data, dict):
        raise AIResponseParseError("Invalid JSON response: expected an object")
    return data


class LLMClient:
    """OpenAI-compatible chat client for the free-tier models (OpenRouter by default).

    Each method issues exactly one request; retry and fallback belong to the orchestrator,
    so the SDK's own retries are disabled.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
    ):
        resolved_api_key = api_key or settings.resolved_llm_api_key
        if not resolved_api_key:
            raise AIConfigurationError(
                "AI API key is not configured. Set LLM_API_KEY (or OPENROUTER_API_KEY)."
            )
        resolved_base_url = base_url or settings.LLM_BASE_URL

        self.client = AsyncOpenAI(
            base_url=resolved_base_url,
            api_key=resolved_api_key,
            max_retries=0,
            default_headers={
                "HTTP-Referer": settings.LLM_APP_URL,
                "X-Title": settings.LLM_APP_TITLE,
            },
        )

    async def stream_chat(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        *,
        on_delta: Callable[[str], None] | None = None,
        timeout: float,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        """
        Stream a completion, reporting the running buffer after every delta.
        The whole exchange, stream included, is bounded by ``timeout`` seconds.
        """

        async def _consume() -> str:
            stream = await self.client.chat.completions.create(
                model=model_id,
                messages=messages,
                stream=True,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout,
            )
            full_content = ""
            async for chunk in stream:
                choices = getattr(chunk, "choices", None) or []
                if not choices:
                    continue
                delta = getattr(choices[0].delta, "content", None)
                if delta:
                    full_content += delta
                    if on_delta:
                        on_delta(full_content)
            return full_content

        logger.info("Issuing streaming request to model %s...", model_id)
        try:
            full_content = await asyncio.wait_for(_consume(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"Request to {model_id} timed out after {timeout:g}s") from exc

        if not full_content.strip():
            raise ValueError("Empty response from model")
        logger.info("Received %s characters from %s.", len(full_content), model_id)
        return full_content

    async def complete(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        *,
        timeout: float,
        max_tokens: int = 2048,
        temperature: float = 0.3,
    ) -> str:
        """Single non-streaming completion; used for image-grounded extraction."""
        logger.info("Issuing request to model %s...", model_id)
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=model_id,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"Request to {model_id} timed out after {timeout:g}s") from exc

        if not getattr(response, "choices", None):
            raise ValueError("Empty response from AI")
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise ValueError("Empty response from AI")
        return content

    async def aclose(self) -> None:
        await self.client.close()


_shared_client: LLMClient | None = None


def get_shared_llm_client() -> LLMClient:
    """Process-wide client so requests reuse one connection pool.

    Nothing is cached until a client is built, so a missing key keeps raising
    AIConfigurationError on every call.
    """
    global _shared_client
    if _shared_client is None:
        _shared_client = LLMClient()
    return _shared_client


async def close_shared_llm_client() -> None:
    global _shared_client
    client, _shared_client = _shared_client, None
    if client is not None:
        await client.aclose()
        logger.info("Closed shared LLM client.")
