import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from portfolio import crud
from portfolio.api.deps import SessionDep, database_errors, parse_id
from portfolio.models import CertificationPublic, CertificationWrite, DeleteResult
from portfolio.sanitize import is_blank

logger = logging.getLogger(__name__)
router = APIRouter()

INVALID_DATE_DETAIL = "Invalid date, expected YYYY-MM"


@router.get("", response_model=list[CertificationPublic])
def read_certifications(session: SessionDep) -> Any:
    """
    Certifications, newest issue month first. ``expired`` is computed per request.
    """
    logger.info("Listing certifications")
    with database_errors(session, "Failed to fetch certifications"):
        rows = crud.list_certifications(session=session)
    logger.info("Listed %s certifications", len(rows))
    return [CertificationPublic.from_row(row) for row in rows]


@router.get("/{id}", response_model=CertificationPublic)
def read_certification(id: str, session: SessionDep) -> Any:
    certification_id = parse_id(id)
    logger.info("Fetching certification id=%s", certification_id)
    with database_errors(session, "Failed to fetch certification"):
        row = crud.get_certification(session=session, certification_id=certification_id)
    if not row:
        raise HTTPException(status_code=404, detail="Certification not found")
    return CertificationPublic.from_row(row)


@router.post("", response_model=CertificationPublic)
def create_certification(*, session: SessionDep, certification_in: CertificationWrite) -> Any:
    if is_blank(certification_in.name):
        raise HTTPException(status_code=400, detail="Name is required")
    logger.info("Creating certification %r", certification_in.name)
    try:
        with database_errors(session, "Failed to create certification"):
            row = crud.create_certification(session=session, certification_in=certification_in)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=INVALID_DATE_DETAIL) from exc
    logger.info("Created certification id=%s", row.id)
    return CertificationPublic.from_row(row)


@router.put("/{id}", response_model=CertificationPublic)
def update_certification(
    *, session: SessionDep, id: str, certification_in: CertificationWrite
) -> Any:
    certification_id = parse_id(id)
    logger.info("Updating certification id=%s", certification_id)
    try:
        with database_errors(session, "Failed to update certification"):
            db_certification = crud.get_certification(
                session=session, certification_id=certification_id
            )
            if not db_certification:
                logger.info("Certification id=%s not found for update", certification_id)
                raise HTTPException(status_code=404, detail="Certification not found")
            row = crud.update_certification(
                session=session,
                db_certification=db_certification,
                certification_in=certification_in,
            )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=INVALID_DATE_DETAIL) from exc
    logger.info("Updated certification id=%s", certification_id)
    return CertificationPublic.from_row(row)


@router.delete("/{id}", response_model=DeleteResult)
def delete_certification(id: str, session: SessionDep) -> Any:
    certification_id = parse_id(id)
    logger.info("Deleting certification id=%s", certification_id)
    with database_errors(session, "Failed to delete certification"):
        removed = crud.delete_certification(session=session, certification_id=certification_id)
    logger.info(
        "Delete certification id=%s finished (row existed: %s)", certification_id, removed
    )
    return DeleteResult(success=True)
