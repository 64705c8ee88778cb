from typing import Any

from sqlmodel import Session, col, select

from portfolio.models import (
    DEFAULT_POST_CATEGORY,
    DEFAULT_PROJECT_CATEGORY,
    DEFAULT_SITE_SETTINGS,
    Certification,
    CertificationWrite,
    Experience,
    ExperienceWrite,
    Post,
    PostCreate,
    PostUpdate,
    Project,
    ProjectWrite,
    SiteSetting,
    get_datetime_utc,
)
from portfolio.sanitize import (
    MAX_SLUG_LENGTH,
    cap_images,
    estimate_reading_time,
    is_blank,
    normalize_start_date,
    parse_year_month,
    sanitize_array,
    sanitize_string,
    slugify,
)

FALLBACK_SLUG = "post"


# Posts

def list_posts(*, session: Session, published_only: bool = False) -> list[Post]:
    statement = select(Post)
    if published_only:
        statement = statement.where(Post.status == "published")
    statement = statement.order_by(col(Post.created_at).desc(), col(Post.id).desc())
    return list(session.exec(statement).all())


def get_post(*, session: Session, post_id: int) -> Post | None:
    return session.get(Post, post_id)


def get_post_by_slug(*, session: Session, slug: str) -> Post | None:
    statement = select(Post).where(Post.slug == slug)
    return session.exec(statement).first()


def _unique_slug(session: Session, base: str, *, exclude_id: int | None = None) -> str:
    base = base or FALLBACK_SLUG
    candidate = base
    suffix = 2
    while True:
        existing = get_post_by_slug(session=session, slug=candidate)
        if existing is None or existing.id == exclude_id:
            return candidate
        suffix_text = f"-{suffix}"
        candidate = base[: MAX_SLUG_LENGTH - len(suffix_text)].rstrip("-") + suffix_text
        suffix += 1


def _sanitize_post_fields(data: dict[str, Any]) -> dict[str, Any]:
    clean = dict(data)
    for field in ("title", "content", "excerpt"):
        if field in clean:
            clean[field] = sanitize_string(clean[field])
    return clean


def create_post(*, session: Session, post_in: PostCreate) -> Post:
    raw = post_in.model_dump()
    data = _sanitize_post_fields(raw)

    base_slug = slugify(sanitize_string(raw.get("slug"))) or slugify(raw.get("title") or "")
    data["slug"] = _unique_slug(session, base_slug)
    data["category"] = data.get("category") or DEFAULT_POST_CATEGORY
    data["status"] = data.get("status") or "draft"
    if not data.get("reading_time"):
        data["reading_time"] = estimate_reading_time(raw.get("content") or "")

    db_post = Post.model_validate(data)
    session.add(db_post)
    session.commit()
    session.refresh(db_post)
    return db_post


def update_post(*, session: Session, db_post: Post, post_in: PostUpdate) -> Post:
    raw = post_in.model_dump(exclude_unset=True)
    data = _sanitize_post_fields(raw)

    requested_slug = slugify(sanitize_string(raw.get("slug")))
    if requested_slug:
        data["slug"] = _unique_slug(session, requested_slug, exclude_id=db_post.id)
    elif not is_blank(raw.get("title")):
        # A retitled post without an explicit slug is re-slugged from the new title.
        data["slug"] = _unique_slug(session, slugify(raw["title"]), exclude_id=db_post.id)
    else:
        data.pop("slug", None)

    if "content" in raw and "reading_time" not in raw:
        data["reading_time"] = estimate_reading_time(raw.get("content") or "")

    db_post.sqlmodel_update(data, update={"updated_at": get_datetime_utc()})
    session.add(db_post)
    session.commit()
    session.refresh(db_post)
    return db_post


def delete_post(*, session: Session, post_id: int) -> bool:
    db_post = session.get(Post, post_id)
    if not db_post:
        return False
    session.delete(db_post)
    session.commit()
    return True


# Experiences

def _experience_fields(data: dict[str, Any]) -> dict[str, Any]:
    clean = dict(data)
    for field in ("title", "organization", "period", "description"):
        if field in clean:
            clean[field] = sanitize_string(clean[field])
    if "tags" in clean:
        clean["tags"] = sanitize_array(clean["tags"])
    if "images" in clean:
        clean["images"] = cap_images(clean["images"], data.get("image"))
    if "start_date" in clean:
        clean["start_date"] = normalize_start_date(clean["start_date"])
    if "image" in clean:
        clean["image"] = clean["image"] or None
    return clean


def list_experiences(*, session: Session) -> list[Experience]:
    statement = select(Experience).order_by(
        col(Experience.start_date).desc().nulls_last(),
        col(Experience.sort_order).asc().nulls_last(),
        col(Experience.id).desc(),
    )
    return list(session.exec(statement).all())


def get_experience(*, session: Session, experience_id: int) -> Experience | None:
    return session.get(Experience, experience_id)


def create_experience(*, session: Session, experience_in: ExperienceWrite) -> Experience:
    data = _experience_fields(experience_in.model_dump())
    data["type"] = data.get("type") or "work"

    db_experience = Experience.model_validate(data)
    session.add(db_experience)
    session.commit()
    session.refresh(db_experience)
    return db_experience


def update_experience(
    *, session: Session, db_experience: Experience, experience_in: ExperienceWrite
) -> Experience:
    data = _experience_fields(experience_in.model_dump(exclude_unset=True))
    db_experience.sqlmodel_update(data)
    session.add(db_experience)
    session.commit()
    session.refresh(db_experience)
    return db_experience


def delete_experience(*, session: Session, experience_id: int) -> bool:
    db_experience = session.get(Experience, experience_id)
    if not db_experience:
        return False
    session.delete(db_experience)
    session.commit()
    return True


# Projects

def _project_fields(data: dict[str, Any]) -> dict[str, Any]:
    clean = dict(data)
    for field in ("title", "description"):
        if field in clean:
            clean[field] = sanitize_string(clean[field])
    if "tags" in clean:
        clean["tags"] = sanitize_array(clean["tags"])
    return clean


def list_projects(*, session: Session) -> list[Project]:
    statement = select(Project).order_by(col(Project.id).desc())
    return list(session.exec(statement).all())


def get_project(*, session: Session, project_id: int) -> Project | None:
    return session.get(Project, project_id)


def create_project(*, session: Session, project_in: ProjectWrite) -> Project:
    data = _project_fields(project_in.model_dump())
    data["category"] = data.get("category") or DEFAULT_PROJECT_CATEGORY

    db_project = Project.model_validate(data)
    session.add(db_project)
    session.commit()
    session.refresh(db_project)
    return db_project


def update_project(*, session: Session, db_project: Project, project_in: ProjectWrite) -> Project:
    data = _project_fields(project_in.model_dump(exclude_unset=True))
    db_project.sqlmodel_update(data)
    session.add(db_project)
    session.commit()
    session.refresh(db_project)
    return db_project


def delete_project(*, session: Session, project_id: int) -> bool:
    db_project = session.get(Project, project_id)
    if not db_project:
        return False
    session.delete(db_project)
    session.commit()
    return True


# Certifications

def _certification_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Raises ``ValueError`` when a date is not ``YYYY-MM``."""
    clean = dict(data)
    for field in ("name", "organization"):
        if field in clean:
            clean[field] = sanitize_string(clean[field])
    if "skills" in clean:
        clean["skills"] = sanitize_array(clean["skills"])
    for field in ("issue_date", "expiry_date"):
        if field in clean:
            clean[field] = parse_year_month(clean[field])
    return clean


def list_certifications(*, session: Session) -> list[Certification]:
    statement = select(Certification).order_by(
        col(Certification.issue_date).desc().nulls_last(),
        col(Certification.id).desc(),
    )
    return list(session.exec(statement).all())


def get_certification(*, session: Session, certification_id: int) -> Certification | None:
    return session.get(Certification, certification_id)


def create_certification(
    *, session: Session, certification_in: CertificationWrite
) -> Certification:
    data = _certification_fields(certification_in.model_dump())

    db_certification = Certification.model_validate(data)
    session.add(db_certification)
    session.commit()
    session.refresh(db_certification)
    return db_certification


def update_certification(
    *,
    session: Session,
    db_certification: Certification,
    certification_in: CertificationWrite,
) -> Certification:
    data = _certification_fields(certification_in.model_dump(exclude_unset=True))
    db_certification.sqlmodel_update(data)
    session.add(db_certification)
    session.commit()
    session.refresh(db_certification)
    return db_certification


def delete_certification(*, session: Session, certification_id: int) -> bool:
    db_certification = session.get(Certification, certification_id)
    if not db_certification:
        return False
    session.delete(db_certification)
    session.commit()
    return True


# Site settings

def get_site_settings(*, session: Session) -> dict[str, str]:
    merged = dict(DEFAULT_SITE_SETTINGS)
    for row in session.exec(select(SiteSetting)).all():
        merged[row.key] = row.value
    return merged


def _stage_setting(session: Session, key: str, value: Any) -> None:
    if value is None:
        value = ""
    elif not isinstance(value, str):
        value = str(value)
    clean_value = sanitize_string(value)
    db_setting = session.get(SiteSetting, key)
    if db_setting:
        db_setting.value = clean_value
        db_setting.updated_at = get_datetime_utc()
    else:
        db_setting = SiteSetting(key=key, value=clean_value)
    session.add(db_setting)


def upsert_setting(*, session: Session, key: str, value: Any) -> dict[str, str]:
    _stage_setting(session, key, value)
    session.commit()
    return get_site_settings(session=session)


def upsert_settings(*, session: Session, values: dict[str, Any]) -> dict[str, str]:
    for key, value in values.items():
        _stage_setting(session, key, value)
    session.commit()
    return get_site_settings(session=session)
