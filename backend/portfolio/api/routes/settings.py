import logging
import re
from typing import Any

from fastapi import APIRouter, HTTPException

from portfolio import crud
from portfolio.api.deps import SessionDep, database_errors
from portfolio.models import SettingsBulkUpsert, SettingUpsert

logger = logging.getLogger(__name__)
router = APIRouter()

SETTING_KEY_RE = re.compile(r"^[A-Za-z0-9_]{1,100}$")


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not SETTING_KEY_RE.match(key):
        raise HTTPException(status_code=400, detail="Invalid setting key")
    return key


@router.get("", response_model=dict[str, str])
def read_settings(session: SessionDep) -> Any:
    """
    Stored values merged over the built-in branding/contact defaults.
    """
    logger.info("Reading site settings")
    with database_errors(session, "Failed to fetch settings"):
        return crud.get_site_settings(session=session)


@router.post("", response_model=dict[str, str])
def upsert_setting(*, session: SessionDep, setting_in: SettingUpsert) -> Any:
    key = _check_key(setting_in.key)
    logger.info("Saving setting %s", key)
    with database_errors(session, "Failed to save setting"):
        merged = crud.upsert_setting(session=session, key=key, value=setting_in.value)
    logger.info("Saved setting %s", key)
    return merged


@router.post("/bulk", response_model=dict[str, str])
def upsert_settings(*, session: SessionDep, settings_in: SettingsBulkUpsert) -> Any:
    values = {_check_key(key): value for key, value in settings_in.settings.items()}
    logger.info("Saving %s settings", len(values))
    with database_errors(session, "Failed to save settings"):
        merged = crud.upsert_settings(session=session, values=values)
    logger.info("Saved settings: %s", ", ".join(sorted(values)) or "(none)")
    return merged
