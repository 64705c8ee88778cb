import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from portfolio.core.config import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))


def init_db(bind: Engine | None = None) -> None:
    # Tables are created in place; schema migrations are handled outside the app.
    import portfolio.models  # noqa: F401

    target = bind or engine
    SQLModel.metadata.create_all(target)
    logger.info("Database tables ensured on %s", target.url.render_as_string(hide_password=True))
