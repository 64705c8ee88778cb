import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from portfolio.agent.artifacts import ChatTurn, FreeModel
from portfolio.agent.catalog import FREE_MODELS, vision_first
from portfolio.agent.errors import AIUnavailableError
from portfolio.agent.llm_client import LLMClient, get_shared_llm_client
from portfolio.core.config import settings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class FailureKind(str, Enum):
    INVALID_MODEL = "invalid_model"
    NO_SYSTEM_ROLE = "no_system_role"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


class Action(str, Enum):
    RETRY = "retry"
    NEXT_MODEL = "next_model"


@dataclass(frozen=True)
class AttemptState:
    model: FreeModel
    attempt: int = 0
    no_system_role: bool = False

    @property
    def label(self) -> str:
        if self.attempt:
            return f"{self.model.name} (retry {self.attempt})"
        return self.model.name


@dataclass(frozen=True)
class Decision:
    action: Action
    delay_seconds: float = 0.0
    next_state: AttemptState | None = None


def classify_failure(error: BaseException) -> FailureKind:
    """Map an upstream error onto the retry policy's failure kinds."""
    status = getattr(error, "status_code", None)
    message = str(error)
    if status == 404 or "404" in message or "not a valid model" in message:
        return FailureKind.INVALID_MODEL
    if "Developer instruction" in message or "system role" in message:
        return FailureKind.NO_SYSTEM_ROLE
    if status == 429 or "429" in message:
        return FailureKind.RATE_LIMITED
    return FailureKind.OTHER


def decide(
    state: AttemptState,
    failure: FailureKind,
    *,
    max_retries: int,
    backoff_seconds: float,
) -> Decision:
    """
    Pure transition function of the fallback loop.

    - invalid model: skip to the next model immediately
    - system role rejected: retry once on the same model with instructions merged
      into the first user turn (the retry consumes an attempt)
    - rate limited: linear backoff, (attempt + 1) * backoff_seconds, while attempts remain
    - anything else: next model
    """
    if failure is FailureKind.INVALID_MODEL:
        return Decision(action=Action.NEXT_MODEL)

    if failure is FailureKind.NO_SYSTEM_ROLE and not state.no_system_role:
        return Decision(
            action=Action.RETRY,
            next_state=replace(state, attempt=state.attempt + 1, no_system_role=True),
        )

    if failure is FailureKind.RATE_LIMITED and state.attempt < max_retries:
        return Decision(
            action=Action.RETRY,
            delay_seconds=(state.attempt + 1) * backoff_seconds,
            next_state=replace(state, attempt=state.attempt + 1),
        )

    return Decision(action=Action.NEXT_MODEL)


def build_messages(
    system_prompt: str | None,
    turns: Sequence[ChatTurn],
    *,
    no_system_role: bool = False,
) -> list[dict[str, Any]]:
    messages = [{"role": turn.role, "content": turn.content} for turn in turns]
    if not system_prompt:
        return messages

    if no_system_role:
        first_content = messages[0]["content"] if messages else ""
        merged = f"[INSTRUCTIONS]\n{system_prompt}\n[/INSTRUCTIONS]\n\n{first_content}"
        return [{"role": "user", "content": merged}, *messages[1:]]

    return [{"role": "system", "content": system_prompt}, *messages]


class ModelFallbackOrchestrator:
    """
    Walks the free-model catalogue until one model answers.

    The LLM client is created lazily so that a missing API key surfaces as an
    AIConfigurationError from the first generate call, not at construction.
    """

    def __init__(
        self,
        *,
        llm: LLMClient | None = None,
        models: Sequence[FreeModel] | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        stream_timeout: float | None = None,
        vision_timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._llm = llm
        self.models = list(models if models is not None else FREE_MODELS)
        self.max_retries = settings.AI_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_seconds = (
            settings.AI_RATE_LIMIT_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self.stream_timeout = stream_timeout or settings.AI_STREAM_TIMEOUT_SECONDS
        self.vision_timeout = vision_timeout or settings.AI_VISION_TIMEOUT_SECONDS
        self._sleep = sleep

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = get_shared_llm_client()
        return self._llm

    async def generate_text(
        self,
        turns: Sequence[ChatTurn],
        *,
        system_prompt: str | None = None,
        on_chunk: Callable[[str], None] | None = None,
        on_model: Callable[[str], None] | None = None,
    ) -> str:
        llm = self.llm
        last_error: Exception | None = None

        for model in self.models:
            state = AttemptState(model=model, no_system_role=model.no_system_role)
            while state.attempt <= self.max_retries:
                if on_model:
                    on_model(state.label)
                messages = build_messages(system_prompt, turns, no_system_role=state.no_system_role)
                try:
                    content = await llm.stream_chat(
                        model.id,
                        messages,
                        on_delta=on_chunk,
                        timeout=self.stream_timeout,
                    )
                    logger.info("Model %s answered on attempt %s.", model.id, state.attempt + 1)
                    return content
                except Exception as exc:
                    last_error = exc
                    failure = classify_failure(exc)
                    decision = decide(
                        state,
                        failure,
                        max_retries=self.max_retries,
                        backoff_seconds=self.backoff_seconds,
                    )
                    if decision.action is Action.NEXT_MODEL:
                        logger.warning("Model %s failed (%s): %s", model.id, failure.value, exc)
                        break
                    if decision.delay_seconds:
                        logger.warning(
                            "Model %s rate-limited, retrying in %ss...", model.id, decision.delay_seconds
                        )
                        await self._sleep(decision.delay_seconds)
                    else:
                        logger.info("Model %s rejected the system role, retrying with merged instructions.", model.id)
                    state = decision.next_state

        logger.error("All %s models failed. Last error: %s", len(self.models), last_error)
        raise AIUnavailableError(last_error)

    async def generate_from_image(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_url: str,
    ) -> str:
        """Vision-capable models first, one try each, no streaming."""
        llm = self.llm
        last_error: Exception | None = None
        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": user_prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            },
        ]

        for model in vision_first(self.models):
            try:
                content = await llm.complete(model.id, messages, timeout=self.vision_timeout)
                logger.info("Vision request answered by %s.", model.id)
                return content
            except Exception as exc:
                last_error = exc
                logger.warning("Vision request to %s failed: %s", model.id, exc)

        raise AIUnavailableError(last_error)
