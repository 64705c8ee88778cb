from collections.abc import Iterable
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from portfolio.models import DAILY_LOG_CATEGORY, DEFAULT_POST_CATEGORY, CamelModel
from portfolio.sanitize import parse_year_month

MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
UNDATED_GROUP = "Other"


class PostView(BaseModel):
    id: str
    title: str = ""
    slug: str = ""
    content: str = ""
    cover_image_url: str = ""
    category: str = DEFAULT_POST_CATEGORY
    status: str = "draft"
    excerpt: str = ""
    created_at: str = ""
    updated_at: str = ""
    reading_time: int = 0


class ExperienceView(CamelModel):
    id: str
    title: str = ""
    organization: str = ""
    period: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    type: str = "work"
    image: str = ""
    images: list[str] = Field(default_factory=list)
    start_date: str = ""
    sort_order: int | None = None


class ProjectView(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    image: str = ""
    tags: list[str] = Field(default_factory=list)
    link: str = ""
    category: str = ""


class CertificationView(CamelModel):
    id: str
    name: str = ""
    organization: str = ""
    issue_date: str = ""
    expiry_date: str = ""
    credential_id: str = ""
    credential_url: str = ""
    image: str = ""
    skills: list[str] = Field(default_factory=list)
    expired: bool = False


class DashboardStats(BaseModel):
    total_posts: int = 0
    published_posts: int = 0
    draft_posts: int = 0
    daily_logs: int = 0
    total_reading_time: int = 0
    experiences: int = 0
    projects: int = 0
    certifications: int = 0


class DashboardData(BaseModel):
    posts: list[PostView] = Field(default_factory=list)
    experiences: list[ExperienceView] = Field(default_factory=list)
    projects: list[ProjectView] = Field(default_factory=list)
    certifications: list[CertificationView] = Field(default_factory=list)
    stats: DashboardStats = Field(default_factory=DashboardStats)


def _text(row: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = row.get(key)
        if value:
            return str(value)
    return ""


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# Rows arrive as snake_case (posts, projects) or camelCase (experiences,
# certifications); both spellings are read.

def normalize_post(row: dict[str, Any]) -> PostView:
    return PostView(
        id=str(row["id"]),
        title=_text(row, "title"),
        slug=_text(row, "slug"),
        content=_text(row, "content"),
        cover_image_url=_text(row, "cover_image_url", "coverImageUrl"),
        category=_text(row, "category") or DEFAULT_POST_CATEGORY,
        status=_text(row, "status") or "draft",
        excerpt=_text(row, "excerpt"),
        created_at=_text(row, "created_at", "createdAt"),
        updated_at=_text(row, "updated_at", "updatedAt"),
        reading_time=_int(row.get("reading_time", row.get("readingTime"))),
    )


def normalize_experience(row: dict[str, Any]) -> ExperienceView:
    images = _strings(row.get("images"))
    sort_order = row.get("sortOrder", row.get("sort_order"))
    return ExperienceView(
        id=str(row["id"]),
        title=_text(row, "title"),
        organization=_text(row, "organization"),
        period=_text(row, "period"),
        description=_text(row, "description"),
        tags=_strings(row.get("tags")),
        type=_text(row, "type") or "work",
        image=_text(row, "image") or (images[0] if images else ""),
        images=images,
        start_date=_text(row, "startDate", "start_date"),
        sort_order=_int(sort_order) if sort_order is not None else None,
    )


def normalize_project(row: dict[str, Any]) -> ProjectView:
    return ProjectView(
        id=str(row["id"]),
        title=_text(row, "title"),
        description=_text(row, "description"),
        image=_text(row, "image"),
        tags=_strings(row.get("tags")),
        link=_text(row, "link"),
        category=_text(row, "category"),
    )


def normalize_certification(row: dict[str, Any], *, today: date | None = None) -> CertificationView:
    expiry_date = _text(row, "expiryDate", "expiry_date")
    expired = row.get("expired")
    return CertificationView(
        id=str(row["id"]),
        name=_text(row, "name"),
        organization=_text(row, "organization"),
        issue_date=_text(row, "issueDate", "issue_date"),
        expiry_date=expiry_date,
        credential_id=_text(row, "credentialId", "credential_id"),
        credential_url=_text(row, "credentialUrl", "credential_url"),
        image=_text(row, "image"),
        skills=_strings(row.get("skills")),
        expired=bool(expired) if expired is not None else is_expired(expiry_date, today=today),
    )


def is_expired(expiry_date: str | None, *, today: date | None = None) -> bool:
    """A certification expires at the start of its expiry month."""
    try:
        expiry = parse_year_month(expiry_date)
    except ValueError:
        return False
    if expiry is None:
        return False
    return expiry <= (today or date.today())


def format_year_month(value: str | None) -> str:
    """``"2024-01"`` -> ``"Jan 2024"``; unparseable input comes back unchanged."""
    try:
        parsed = parse_year_month(value)
    except ValueError:
        return value or ""
    if parsed is None:
        return ""
    return f"{MONTH_ABBREVIATIONS[parsed.month - 1]} {parsed.year}"


def group_experiences_by_year(experiences: Iterable[ExperienceView]) -> list[tuple[str, list[ExperienceView]]]:
    """Newest first, grouped by start year; undated entries go last under "Other"."""
    items = list(experiences)
    dated = sorted((exp for exp in items if exp.start_date), key=lambda exp: exp.start_date, reverse=True)
    undated = [exp for exp in items if not exp.start_date]

    groups: dict[str, list[ExperienceView]] = {}
    for experience in dated:
        groups.setdefault(experience.start_date[:4], []).append(experience)
    result = list(groups.items())
    if undated:
        result.append((UNDATED_GROUP, undated))
    return result


def group_posts_by_category(posts: Iterable[PostView]) -> dict[str, list[PostView]]:
    groups: dict[str, list[PostView]] = {}
    for post in posts:
        groups.setdefault(post.category or DEFAULT_POST_CATEGORY, []).append(post)
    return groups


def compute_stats(
    posts: list[PostView],
    experiences: list[ExperienceView],
    projects: list[ProjectView],
    certifications: list[CertificationView],
) -> DashboardStats:
    published = sum(1 for post in posts if post.status == "published")
    return DashboardStats(
        total_posts=len(posts),
        published_posts=published,
        draft_posts=len(posts) - published,
        daily_logs=sum(1 for post in posts if post.category == DAILY_LOG_CATEGORY),
        total_reading_time=sum(post.reading_time for post in posts),
        experiences=len(experiences),
        projects=len(projects),
        certifications=len(certifications),
    )
