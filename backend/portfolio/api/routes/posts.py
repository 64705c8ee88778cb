import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import Session

from portfolio import crud
from portfolio.api.deps import SessionDep, check_slug, database_errors, parse_id
from portfolio.models import DeleteResult, PostCreate, PostPublic, PostUpdate
from portfolio.sanitize import is_blank

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[PostPublic] | PostPublic)
def read_posts(
    session: SessionDep,
    id: str | None = None,
    slug: str | None = None,
) -> Any:
    """
    List every post, newest first. ``?slug=`` or ``?id=`` narrows to a single post.
    """
    if slug is not None:
        return _read_post_by_slug(session, slug)
    if id is not None:
        post_id = parse_id(id)
        logger.info("Fetching post id=%s", post_id)
        with database_errors(session, "Failed to fetch post"):
            post = crud.get_post(session=session, post_id=post_id)
        if not post:
            logger.info("Post id=%s not found", post_id)
            raise HTTPException(status_code=404, detail="Post not found")
        return post

    logger.info("Listing posts")
    with database_errors(session, "Failed to fetch posts"):
        posts = crud.list_posts(session=session)
    logger.info("Listed %s posts", len(posts))
    return posts


@router.get("/published", response_model=list[PostPublic])
def read_published_posts(session: SessionDep) -> Any:
    logger.info("Listing published posts")
    with database_errors(session, "Failed to fetch posts"):
        posts = crud.list_posts(session=session, published_only=True)
    logger.info("Listed %s published posts", len(posts))
    return posts


@router.get("/{slug}", response_model=PostPublic)
def read_post(slug: str, session: SessionDep) -> Any:
    return _read_post_by_slug(session, slug)


def _read_post_by_slug(session: Session, slug: str) -> Any:
    slug = check_slug(slug)
    logger.info("Fetching post slug=%s", slug)
    with database_errors(session, "Failed to fetch post"):
        post = crud.get_post_by_slug(session=session, slug=slug)
    if not post:
        logger.info("Post slug=%s not found", slug)
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.post("", response_model=PostPublic)
def create_post(*, session: SessionDep, post_in: PostCreate) -> Any:
    if is_blank(post_in.title):
        raise HTTPException(status_code=400, detail="Title is required")
    logger.info("Creating post %r", post_in.title)
    with database_errors(session, "Failed to create post"):
        post = crud.create_post(session=session, post_in=post_in)
    logger.info("Created post id=%s slug=%s", post.id, post.slug)
    return post


@router.put("", response_model=PostPublic)
def update_post_by_query(*, session: SessionDep, id: str | None = None, post_in: PostUpdate) -> Any:
    if id is None:
        raise HTTPException(status_code=400, detail="Post ID is required (use ?id=)")
    return _update_post(session, id, post_in)


@router.put("/{id}", response_model=PostPublic)
def update_post(*, session: SessionDep, id: str, post_in: PostUpdate) -> Any:
    return _update_post(session, id, post_in)


def _update_post(session: Session, raw_id: str, post_in: PostUpdate) -> Any:
    post_id = parse_id(raw_id)
    logger.info("Updating post id=%s", post_id)
    with database_errors(session, "Failed to update post"):
        db_post = crud.get_post(session=session, post_id=post_id)
        if not db_post:
            logger.info("Post id=%s not found for update", post_id)
            raise HTTPException(status_code=404, detail="Post not found")
        post = crud.update_post(session=session, db_post=db_post, post_in=post_in)
    logger.info("Updated post id=%s", post_id)
    return post


@router.delete("", response_model=DeleteResult)
def delete_post_by_query(session: SessionDep, id: str | None = None) -> Any:
    if id is None:
        raise HTTPException(status_code=400, detail="Post ID is required (use ?id=)")
    return _delete_post(session, id)


@router.delete("/{id}", response_model=DeleteResult)
def delete_post(id: str, session: SessionDep) -> Any:
    return _delete_post(session, id)


def _delete_post(session: Session, raw_id: str) -> DeleteResult:
    post_id = parse_id(raw_id)
    logger.info("Deleting post id=%s", post_id)
    with database_errors(session, "Failed to delete post"):
        removed = crud.delete_post(session=session, post_id=post_id)
    logger.info("Delete post id=%s finished (row existed: %s)", post_id, removed)
    return DeleteResult(success=True)
