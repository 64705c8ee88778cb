import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from portfolio import crud
from portfolio.api.deps import SessionDep, database_errors, parse_id
from portfolio.models import DeleteResult, ProjectPublic, ProjectWrite
from portfolio.sanitize import is_blank

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[ProjectPublic])
def read_projects(session: SessionDep) -> Any:
    logger.info("Listing projects")
    with database_errors(session, "Failed to fetch projects"):
        projects = crud.list_projects(session=session)
    logger.info("Listed %s projects", len(projects))
    return projects


@router.get("/{id}", response_model=ProjectPublic)
def read_project(id: str, session: SessionDep) -> Any:
    project_id = parse_id(id)
    logger.info("Fetching project id=%s", project_id)
    with database_errors(session, "Failed to fetch project"):
        project = crud.get_project(session=session, project_id=project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", response_model=ProjectPublic)
def create_project(*, session: SessionDep, project_in: ProjectWrite) -> Any:
    if is_blank(project_in.title):
        raise HTTPException(status_code=400, detail="Title is required")
    logger.info("Creating project %r", project_in.title)
    with database_errors(session, "Failed to create project"):
        project = crud.create_project(session=session, project_in=project_in)
    logger.info("Created project id=%s", project.id)
    return project


@router.put("/{id}", response_model=ProjectPublic)
def update_project(*, session: SessionDep, id: str, project_in: ProjectWrite) -> Any:
    project_id = parse_id(id)
    logger.info("Updating project id=%s", project_id)
    with database_errors(session, "Failed to update project"):
        db_project = crud.get_project(session=session, project_id=project_id)
        if not db_project:
            logger.info("Project id=%s not found for update", project_id)
            raise HTTPException(status_code=404, detail="Project not found")
        project = crud.update_project(session=session, db_project=db_project, project_in=project_in)
    logger.info("Updated project id=%s", project_id)
    return project


@router.delete("/{id}", response_model=DeleteResult)
def delete_project(id: str, session: SessionDep) -> Any:
    project_id = parse_id(id)
    logger.info("Deleting project id=%s", project_id)
    with database_errors(session, "Failed to delete project"):
        removed = crud.delete_project(session=session, project_id=project_id)
    logger.info("Delete project id=%s finished (row existed: %s)", project_id, removed)
    return DeleteResult(success=True)
