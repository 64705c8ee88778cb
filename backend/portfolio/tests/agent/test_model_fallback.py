import httpx
import openai
import pytest

from portfolio.agent.artifacts import ChatTurn, FreeModel
from portfolio.agent.errors import AIUnavailableError
from portfolio.agent.orchestrator import (
    Action,
    AttemptState,
    FailureKind,
    ModelFallbackOrchestrator,
    build_messages,
    classify_failure,
    decide,
)


class UpstreamError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ScriptedLLM:
    """Plays back one outcome per call for each model id."""

    def __init__(self, script: dict[str, list]):
        self.script = {model_id: list(outcomes) for model_id, outcomes in script.items()}
        self.calls: list[tuple[str, list[dict]]] = []

    async def stream_chat(self, model_id, messages, *, on_delta=None, timeout, **kwargs):
        self.calls.append((model_id, messages))
        outcome = self.script[model_id].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        buffer = ""
        for piece in outcome.split(" "):
            buffer = f"{buffer} {piece}".strip()
            if on_delta:
                on_delta(buffer)
        return outcome

    async def complete(self, model_id, messages, *, timeout, **kwargs):
        self.calls.append((model_id, messages))
        outcome = self.script[model_id].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


MODEL_A = FreeModel(id="vendor/a:free", name="Model A", provider="Vendor")
MODEL_B = FreeModel(id="vendor/b:free", name="Model B", provider="Vendor")
GEMMA = FreeModel(id="google/gemma:free", name="Gemma", provider="Google")
VISION = FreeModel(id="vendor/vision:free", name="Vision", provider="Vendor", vision=True)

TURNS = [ChatTurn(role="user", content="fixed the login bug today")]


def _orchestrator(llm, models, sleep, max_retries=3):
    return ModelFallbackOrchestrator(
        llm=llm,
        models=models,
        max_retries=max_retries,
        backoff_seconds=5.0,
        stream_timeout=30.0,
        vision_timeout=60.0,
        sleep=sleep,
    )


def test_classify_failure_by_status_and_message():
    assert classify_failure(UpstreamError("nope", status_code=404)) is FailureKind.INVALID_MODEL
    assert classify_failure(UpstreamError("x is not a valid model ID")) is FailureKind.INVALID_MODEL
    assert classify_failure(UpstreamError("Developer instruction is not enabled")) is FailureKind.NO_SYSTEM_ROLE
    assert classify_failure(UpstreamError("model does not support system role")) is FailureKind.NO_SYSTEM_ROLE
    assert classify_failure(UpstreamError("slow down", status_code=429)) is FailureKind.RATE_LIMITED
    assert classify_failure(TimeoutError("timed out")) is FailureKind.OTHER


def test_classify_failure_reads_openai_status_errors():
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    error = openai.RateLimitError(
        "Rate limit exceeded",
        response=httpx.Response(429, request=request),
        body=None,
    )
    assert classify_failure(error) is FailureKind.RATE_LIMITED


def test_decide_transitions():
    state = AttemptState(model=MODEL_A)

    assert decide(state, FailureKind.INVALID_MODEL, max_retries=3, backoff_seconds=5).action is Action.NEXT_MODEL
    assert decide(state, FailureKind.OTHER, max_retries=3, backoff_seconds=5).action is Action.NEXT_MODEL

    merged = decide(state, FailureKind.NO_SYSTEM_ROLE, max_retries=3, backoff_seconds=5)
    assert merged.action is Action.RETRY
    assert merged.delay_seconds == 0
    assert merged.next_state == AttemptState(model=MODEL_A, attempt=1, no_system_role=True)

    # Flag already set: no second merge retry.
    again = decide(merged.next_state, FailureKind.NO_SYSTEM_ROLE, max_retries=3, backoff_seconds=5)
    assert again.action is Action.NEXT_MODEL

    backoff = decide(AttemptState(model=MODEL_A, attempt=2), FailureKind.RATE_LIMITED, max_retries=3, backoff_seconds=5)
    assert backoff.action is Action.RETRY
    assert backoff.delay_seconds == 15
    assert backoff.next_state.attempt == 3

    exhausted = decide(AttemptState(model=MODEL_A, attempt=3), FailureKind.RATE_LIMITED, max_retries=3, backoff_seconds=5)
    assert exhausted.action is Action.NEXT_MODEL


def test_build_messages_merges_instructions_when_system_role_is_unsupported():
    turns = [ChatTurn(role="user", content="first"), ChatTurn(role="assistant", content="reply")]

    plain = build_messages("Be brief.", turns)
    assert plain[0] == {"role": "system", "content": "Be brief."}
    assert plain[1:] == [{"role": "user", "content": "first"}, {"role": "assistant", "content": "reply"}]

    merged = build_messages("Be brief.", turns, no_system_role=True)
    assert merged[0] == {"role": "user", "content": "[INSTRUCTIONS]\nBe brief.\n[/INSTRUCTIONS]\n\nfirst"}
    assert merged[1:] == [{"role": "assistant", "content": "reply"}]
    assert all(message["role"] != "system" for message in merged)


@pytest.mark.asyncio
async def test_rate_limited_model_falls_back_after_exactly_one_backoff():
    llm = ScriptedLLM(
        {
            MODEL_A.id: [UpstreamError("429 Too Many Requests", 429), UpstreamError("429 Too Many Requests", 429)],
            MODEL_B.id: ["<h2>Log</h2>"],
        }
    )
    sleep = RecordingSleep()
    orchestrator = _orchestrator(llm, [MODEL_A, MODEL_B], sleep, max_retries=1)

    result = await orchestrator.generate_text(TURNS, system_prompt="system")

    assert result == "<h2>Log</h2>"
    assert sleep.delays == [5.0]
    assert [model_id for model_id, _ in llm.calls] == [MODEL_A.id, MODEL_A.id, MODEL_B.id]


@pytest.mark.asyncio
async def test_invalid_model_fails_without_waiting():
    llm = ScriptedLLM({MODEL_A.id: [UpstreamError("Error code: 404 - No endpoints found", 404)]})
    sleep = RecordingSleep()
    orchestrator = _orchestrator(llm, [MODEL_A], sleep)

    with pytest.raises(AIUnavailableError) as exc_info:
        await orchestrator.generate_text(TURNS, system_prompt="system")

    assert sleep.delays == []
    assert len(llm.calls) == 1
    assert "No endpoints found" in str(exc_info.value)
    assert str(exc_info.value).startswith("All AI models are currently unavailable. Last error:")


@pytest.mark.asyncio
async def test_rate_limit_backoff_grows_linearly_up_to_the_retry_budget():
    llm = ScriptedLLM({MODEL_A.id: [UpstreamError("rate limited", 429)] * 4})
    sleep = RecordingSleep()
    orchestrator = _orchestrator(llm, [MODEL_A], sleep, max_retries=3)

    with pytest.raises(AIUnavailableError):
        await orchestrator.generate_text(TURNS, system_prompt="system")

    assert sleep.delays == [5.0, 10.0, 15.0]
    assert len(llm.calls) == 4


@pytest.mark.asyncio
async def test_system_role_rejection_retries_once_with_merged_instructions():
    llm = ScriptedLLM(
        {
            GEMMA.id: [
                UpstreamError("Developer instruction is not enabled for models/gemma", 400),
                UpstreamError("still broken", 500),
            ],
            MODEL_B.id: ["done"],
        }
    )
    sleep = RecordingSleep()
    orchestrator = _orchestrator(llm, [GEMMA, MODEL_B], sleep)

    result = await orchestrator.generate_text(TURNS, system_prompt="Write HTML.")

    assert result == "done"
    assert sleep.delays == []
    gemma_calls = [messages for model_id, messages in llm.calls if model_id == GEMMA.id]
    assert len(gemma_calls) == 2
    assert gemma_calls[0][0]["role"] == "system"
    assert gemma_calls[1][0]["role"] == "user"
    assert gemma_calls[1][0]["content"].startswith("[INSTRUCTIONS]\nWrite HTML.\n[/INSTRUCTIONS]")


@pytest.mark.asyncio
async def test_catalogued_no_system_role_model_never_gets_a_system_turn():
    no_system = FreeModel(id="google/gemma-3-4b-it:free", name="Gemma 3 4B", provider="Google", no_system_role=True)
    llm = ScriptedLLM({no_system.id: ["ok"]})
    orchestrator = _orchestrator(llm, [no_system], RecordingSleep())

    await orchestrator.generate_text(TURNS, system_prompt="Write HTML.")

    messages = llm.calls[0][1]
    assert [message["role"] for message in messages] == ["user"]


@pytest.mark.asyncio
async def test_progress_callbacks_report_model_labels_and_running_buffer():
    llm = ScriptedLLM({MODEL_A.id: [UpstreamError("429", 429), "one two three"]})
    labels: list[str] = []
    chunks: list[str] = []
    orchestrator = _orchestrator(llm, [MODEL_A], RecordingSleep())

    await orchestrator.generate_text(TURNS, system_prompt="s", on_chunk=chunks.append, on_model=labels.append)

    assert labels == ["Model A", "Model A (retry 1)"]
    assert chunks == ["one", "one two", "one two three"]


@pytest.mark.asyncio
async def test_vision_path_tries_vision_models_first_once_each():
    llm = ScriptedLLM(
        {
            VISION.id: [UpstreamError("429", 429)],
            MODEL_A.id: ['{"name": "AWS"}'],
        }
    )
    sleep = RecordingSleep()
    orchestrator = _orchestrator(llm, [MODEL_A, VISION], sleep)

    result = await orchestrator.generate_from_image(
        system_prompt="Return JSON", user_prompt="Extract", image_url="https://img.example/cert.png"
    )

    assert result == '{"name": "AWS"}'
    assert sleep.delays == []
    assert [model_id for model_id, _ in llm.calls] == [VISION.id, MODEL_A.id]
    user_content = llm.calls[0][1][1]["content"]
    assert user_content[1] == {"type": "image_url", "image_url": {"url": "https://img.example/cert.png"}}


@pytest.mark.asyncio
async def test_vision_path_exhaustion_raises_unavailable():
    llm = ScriptedLLM({VISION.id: [ValueError("Empty response from AI")]})
    orchestrator = _orchestrator(llm, [VISION], RecordingSleep())

    with pytest.raises(AIUnavailableError, match="Empty response from AI"):
        await orchestrator.generate_from_image(system_prompt="s", user_prompt="u", image_url="data:image/png;base64,AA")
