import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Annotated

from fastapi import Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from portfolio.core.db import engine

logger = logging.getLogger(__name__)

MAX_SLUG_PARAM_LENGTH = 200
# Ids are stored in 64-bit signed integer columns.
MAX_ID = 2**63 - 1


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


def parse_id(raw: str | int | None) -> int:
    """Positive integer ids only; anything else is a 400."""
    text = str(raw).strip() if raw is not None else ""
    if not (text.isascii() and text.isdigit()) or not 0 < int(text) <= MAX_ID:
        raise HTTPException(status_code=400, detail="Invalid ID")
    return int(text)


def check_slug(slug: str | None) -> str:
    if not slug or len(slug) > MAX_SLUG_PARAM_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid slug")
    return slug


def _rollback_session_safely(session: Session) -> None:
    try:
        session.rollback()
    except Exception as exc:
        logger.warning("Session rollback failed: %s", exc)


@contextmanager
def database_errors(session: Session, failure_message: str) -> Iterator[None]:
    """Turn driver/connection failures into a generic 500 with a fixed message."""
    try:
        yield
    except SQLAlchemyError as exc:
        _rollback_session_safely(session)
        logger.error("%s: %s", failure_message, exc)
        raise HTTPException(status_code=500, detail=failure_message) from exc
