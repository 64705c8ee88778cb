import asyncio
import io
import json
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import Annotated, Any, Literal

import pypdf
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import Field
from sse_starlette.sse import EventSourceResponse

from portfolio import crud
from portfolio.agent.artifacts import ChatTurn, FreeModel, LogTemplate
from portfolio.agent.catalog import FREE_MODELS
from portfolio.agent.daily_log_agent import LOG_TEMPLATES, DailyLogAgent, build_log_post
from portfolio.agent.errors import (
    AIConfigurationError,
    AIError,
    AIResponseParseError,
    AIUnavailableError,
)
from portfolio.agent.extraction_agent import ExtractionAgent
from portfolio.agent.orchestrator import ModelFallbackOrchestrator
from portfolio.api.deps import SessionDep, database_errors
from portfolio.models import CamelModel, PostPublic

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_DOCUMENT_CHARS = 12_000
TEXT_SUFFIXES = (".txt", ".md", ".markdown")

ExtractionKindParam = Literal["experience", "certification", "project"]


class DailyLogRequest(CamelModel):
    messages: list[ChatTurn] = Field(..., min_length=1)


class SaveLogRequest(CamelModel):
    html: str = Field(..., min_length=1)


class ImageExtractionRequest(CamelModel):
    image_url: str = Field(..., min_length=1)
    context: str | None = None


class TextExtractionRequest(CamelModel):
    text: str = Field(..., min_length=1)


def get_orchestrator() -> ModelFallbackOrchestrator:
    return ModelFallbackOrchestrator()


OrchestratorDep = Annotated[ModelFallbackOrchestrator, Depends(get_orchestrator)]


def _ui_event(event: str, **payload: Any) -> str:
    return json.dumps({"status": event, **payload})


@contextmanager
def ai_errors(action: str) -> Iterator[None]:
    """Map AI helper failures onto HTTP statuses."""
    try:
        yield
    except AIConfigurationError as exc:
        logger.error("%s: %s", action, exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except AIUnavailableError as exc:
        logger.error("%s: %s", action, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except AIResponseParseError as exc:
        logger.error("%s: %s", action, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def extract_text_from_file(file: UploadFile, content: bytes) -> str:
    """Extracts text from an uploaded PDF, plain text or Markdown file."""
    filename = (file.filename or "").lower()
    if file.content_type == "application/pdf" or filename.endswith(".pdf"):
        try:
            pdf_reader = pypdf.PdfReader(io.BytesIO(content))
            text = ""
            for page in pdf_reader.pages:
                page_text = page.extract_text()
                if page_text:
                    text += page_text + "\n"
            return text
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Failed to parse PDF: {str(e)}")

    elif file.content_type in ("text/plain", "text/markdown") or filename.endswith(TEXT_SUFFIXES):
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="Text files must be UTF-8 encoded")

    else:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {file.content_type}")


@router.get("/models", response_model=list[FreeModel])
def list_models() -> Any:
    return FREE_MODELS


@router.get("/templates", response_model=list[LogTemplate])
def list_templates() -> Any:
    return LOG_TEMPLATES


async def daily_log_event_stream(agent: DailyLogAgent, turns: list[ChatTurn]) -> AsyncIterator[str]:
    """
    Relay orchestrator progress as SSE payloads:
    model -> chunk* -> (completed | error).
    """
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    def on_model(label: str) -> None:
        queue.put_nowait(_ui_event("model", model=label))

    def on_chunk(content: str) -> None:
        queue.put_nowait(_ui_event("chunk", content=content))

    async def produce() -> None:
        try:
            content = await agent.run(turns, on_chunk=on_chunk, on_model=on_model)
            logger.info("Daily log generated (%s characters)", len(content))
            queue.put_nowait(_ui_event("completed", content=content))
        except AIError as exc:
            logger.error("Daily log generation failed: %s", exc)
            queue.put_nowait(_ui_event("error", message=str(exc)))
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(produce())
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            yield event
    finally:
        if not task.done():
            logger.info("Daily log stream closed by client, cancelling generation")
            task.cancel()


@router.post("/daily-log")
async def generate_daily_log(payload: DailyLogRequest, orchestrator: OrchestratorDep):
    """Stream a daily log generated from the conversation via SSE."""
    logger.info("Generating daily log from %s messages", len(payload.messages))
    with ai_errors("Daily log generation failed"):
        # Fail fast with a 503 before the stream opens when no key is configured.
        orchestrator.llm
    agent = DailyLogAgent(orchestrator)
    return EventSourceResponse(daily_log_event_stream(agent, payload.messages))


@router.post("/daily-log/save", response_model=PostPublic)
def save_daily_log(*, session: SessionDep, payload: SaveLogRequest) -> Any:
    post_in = build_log_post(payload.html)
    logger.info("Saving daily log %r as draft", post_in.title)
    with database_errors(session, "Failed to create post"):
        post = crud.create_post(session=session, post_in=post_in)
    logger.info("Saved daily log id=%s slug=%s", post.id, post.slug)
    return post


@router.post("/extract/{kind}/image")
async def extract_from_image(
    kind: ExtractionKindParam,
    payload: ImageExtractionRequest,
    orchestrator: OrchestratorDep,
) -> Any:
    logger.info("Extracting %s from image", kind)
    agent = ExtractionAgent(kind, orchestrator)
    with ai_errors(f"Extracting {kind} from image failed"):
        result = await agent.run_from_image(payload.image_url, payload.context)
    return result.model_dump(by_alias=True)


@router.post("/extract/{kind}/text")
async def extract_from_text(
    kind: ExtractionKindParam,
    payload: TextExtractionRequest,
    orchestrator: OrchestratorDep,
) -> Any:
    logger.info("Extracting %s from %s characters of text", kind, len(payload.text))
    agent = ExtractionAgent(kind, orchestrator)
    with ai_errors(f"Extracting {kind} from text failed"):
        result = await agent.run(payload.text[:MAX_DOCUMENT_CHARS])
    return result.model_dump(by_alias=True)


@router.post("/extract/{kind}/document")
async def extract_from_document(
    kind: ExtractionKindParam,
    orchestrator: OrchestratorDep,
    file: UploadFile = File(...),
) -> Any:
    """
    Upload a PDF, text or Markdown document and fill the form from its text.
    """
    content = await file.read()
    text = extract_text_from_file(file, content)
    if not text.strip():
        raise HTTPException(status_code=400, detail="Could not extract any text from the document.")

    logger.info("Extracting %s from document %s", kind, file.filename)
    agent = ExtractionAgent(kind, orchestrator)
    with ai_errors(f"Extracting {kind} from document failed"):
        result = await agent.run(text[:MAX_DOCUMENT_CHARS])
    return result.model_dump(by_alias=True)
