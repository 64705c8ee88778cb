import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from portfolio import crud
from portfolio.api.deps import SessionDep, database_errors, parse_id
from portfolio.models import DeleteResult, ExperiencePublic, ExperienceWrite
from portfolio.sanitize import is_blank

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[ExperiencePublic])
def read_experiences(session: SessionDep) -> Any:
    """
    Timeline entries, most recent start date first.
    """
    logger.info("Listing experiences")
    with database_errors(session, "Failed to fetch experiences"):
        rows = crud.list_experiences(session=session)
    logger.info("Listed %s experiences", len(rows))
    return [ExperiencePublic.from_row(row) for row in rows]


@router.get("/{id}", response_model=ExperiencePublic)
def read_experience(id: str, session: SessionDep) -> Any:
    experience_id = parse_id(id)
    logger.info("Fetching experience id=%s", experience_id)
    with database_errors(session, "Failed to fetch experience"):
        row = crud.get_experience(session=session, experience_id=experience_id)
    if not row:
        raise HTTPException(status_code=404, detail="Experience not found")
    return ExperiencePublic.from_row(row)


@router.post("", response_model=ExperiencePublic)
def create_experience(*, session: SessionDep, experience_in: ExperienceWrite) -> Any:
    if is_blank(experience_in.title):
        raise HTTPException(status_code=400, detail="Title is required")
    try:
        logger.info("Creating experience %r", experience_in.title)
        with database_errors(session, "Failed to create experience"):
            row = crud.create_experience(session=session, experience_in=experience_in)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid start date") from exc
    logger.info("Created experience id=%s", row.id)
    return ExperiencePublic.from_row(row)


@router.put("/{id}", response_model=ExperiencePublic)
def update_experience(*, session: SessionDep, id: str, experience_in: ExperienceWrite) -> Any:
    experience_id = parse_id(id)
    logger.info("Updating experience id=%s", experience_id)
    try:
        with database_errors(session, "Failed to update experience"):
            db_experience = crud.get_experience(session=session, experience_id=experience_id)
            if not db_experience:
                logger.info("Experience id=%s not found for update", experience_id)
                raise HTTPException(status_code=404, detail="Experience not found")
            row = crud.update_experience(
                session=session, db_experience=db_experience, experience_in=experience_in
            )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid start date") from exc
    logger.info("Updated experience id=%s", experience_id)
    return ExperiencePublic.from_row(row)


@router.delete("/{id}", response_model=DeleteResult)
def delete_experience(id: str, session: SessionDep) -> Any:
    experience_id = parse_id(id)
    logger.info("Deleting experience id=%s", experience_id)
    with database_errors(session, "Failed to delete experience"):
        removed = crud.delete_experience(session=session, experience_id=experience_id)
    logger.info("Delete experience id=%s finished (row existed: %s)", experience_id, removed)
    return DeleteResult(success=True)
