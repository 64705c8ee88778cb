from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, DateTime, Text
from sqlmodel import Field, SQLModel

from portfolio.sanitize import format_year_month


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


PostCategory = Literal[
    "Data Science",
    "Web Development",
    "IT Audit & COBIT",
    "Jurnal & Catatan",
    "Daily Log",
]
PostStatus = Literal["draft", "published"]
ExperienceType = Literal[
    "work",
    "internship",
    "education",
    "program",
    "organization",
    "volunteer",
]

DEFAULT_POST_CATEGORY = "Jurnal & Catatan"
DAILY_LOG_CATEGORY = "Daily Log"
DEFAULT_PROJECT_CATEGORY = "Web Development"


# Camel-case request/response shapes used by the timeline and certification views.
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Generic payloads
class DeleteResult(SQLModel):
    success: bool = True


class HealthStatus(SQLModel):
    status: str
    timestamp: datetime


# Posts

class PostWrite(SQLModel):
    title: str | None = None
    slug: str | None = None
    content: str | None = None
    excerpt: str | None = None
    cover_image_url: str | None = None
    category: PostCategory | None = None
    status: PostStatus | None = None
    reading_time: int | None = Field(default=None, ge=0)


class PostCreate(PostWrite):
    pass


class PostUpdate(PostWrite):
    pass


class Post(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_type=Text)
    slug: str = Field(unique=True, index=True, max_length=255)
    content: str = Field(default="", sa_type=Text)
    excerpt: str = Field(default="", sa_type=Text)
    cover_image_url: str | None = Field(default=None, sa_type=Text)
    category: str | None = Field(default=DEFAULT_POST_CATEGORY, max_length=100)
    status: str | None = Field(default="draft", max_length=20, index=True)
    reading_time: int | None = Field(default=1)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class PostPublic(SQLModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: str
    cover_image_url: str | None = None
    category: str | None = None
    status: str | None = None
    reading_time: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# Experiences

class ExperienceWrite(CamelModel):
    title: str | None = None
    organization: str | None = None
    period: str | None = None
    description: str | None = None
    type: ExperienceType | None = None
    image: str | None = None
    images: list[Any] | None = None
    tags: list[Any] | None = None
    start_date: str | None = None
    sort_order: int | None = None


class Experience(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_type=Text)
    organization: str = Field(default="", sa_type=Text)
    period: str = Field(default="", sa_type=Text)
    description: str = Field(default="", sa_type=Text)
    type: str | None = Field(default="work", max_length=20)
    image: str | None = Field(default=None, sa_type=Text)
    images: list[str] = Field(default_factory=list, sa_type=JSON)
    tags: list[str] = Field(default_factory=list, sa_type=JSON)
    start_date: str | None = Field(default=None, max_length=7, index=True)
    sort_order: int | None = Field(default=None)


class ExperiencePublic(CamelModel):
    id: int
    title: str
    organization: str
    period: str
    description: str
    type: str | None = None
    image: str
    images: list[str]
    tags: list[str]
    start_date: str | None = None
    sort_order: int | None = None

    @classmethod
    def from_row(cls, row: Experience) -> "ExperiencePublic":
        images = list(row.images or [])
        return cls(
            id=row.id,
            title=row.title,
            organization=row.organization,
            period=row.period,
            description=row.description,
            type=row.type,
            image=row.image or (images[0] if images else ""),
            images=images,
            tags=list(row.tags or []),
            start_date=row.start_date,
            sort_order=row.sort_order,
        )


# Projects

class ProjectWrite(SQLModel):
    title: str | None = None
    description: str | None = None
    image: str | None = None
    tags: list[Any] | None = None
    link: str | None = None
    category: str | None = None


class Project(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_type=Text)
    description: str = Field(default="", sa_type=Text)
    image: str | None = Field(default=None, sa_type=Text)
    tags: list[str] = Field(default_factory=list, sa_type=JSON)
    link: str | None = Field(default=None, sa_type=Text)
    category: str | None = Field(default=DEFAULT_PROJECT_CATEGORY, max_length=100)


class ProjectPublic(SQLModel):
    id: int
    title: str
    description: str
    image: str | None = None
    tags: list[str]
    link: str | None = None
    category: str | None = None


# Certifications

class CertificationWrite(CamelModel):
    name: str | None = None
    organization: str | None = None
    issue_date: str | None = None
    expiry_date: str | None = None
    credential_id: str | None = None
    credential_url: str | None = None
    image: str | None = None
    skills: list[Any] | None = None


class Certification(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(sa_type=Text)
    organization: str = Field(default="", sa_type=Text)
    issue_date: date | None = Field(default=None, index=True)
    expiry_date: date | None = Field(default=None)
    credential_id: str | None = Field(default=None, max_length=255)
    credential_url: str | None = Field(default=None, sa_type=Text)
    image: str | None = Field(default=None, sa_type=Text)
    skills: list[str] = Field(default_factory=list, sa_type=JSON)


class CertificationPublic(CamelModel):
    id: int
    name: str
    organization: str
    issue_date: str
    expiry_date: str
    credential_id: str | None = None
    credential_url: str | None = None
    image: str | None = None
    skills: list[str]
    expired: bool = False

    @classmethod
    def from_row(cls, row: Certification, *, today: date | None = None) -> "CertificationPublic":
        today = today or date.today()
        return cls(
            id=row.id,
            name=row.name,
            organization=row.organization,
            issue_date=format_year_month(row.issue_date),
            expiry_date=format_year_month(row.expiry_date),
            credential_id=row.credential_id,
            credential_url=row.credential_url,
            image=row.image,
            skills=list(row.skills or []),
            expired=row.expiry_date is not None and row.expiry_date <= today,
        )


# Site settings

DEFAULT_SITE_SETTINGS: dict[str, str] = {
    "site_title": "Portfolio",
    "site_tagline": "Data, web and audit notes",
    "owner_name": "",
    "hero_title": "Hi, welcome to my corner of the web",
    "hero_subtitle": "Projects, experiences and daily logs",
    "about": "",
    "email": "",
    "phone": "",
    "location": "",
    "github_url": "",
    "linkedin_url": "",
    "instagram_url": "",
    "resume_url": "",
    "avatar_url": "",
}


class SiteSetting(SQLModel, table=True):
    key: str = Field(primary_key=True, max_length=100)
    value: str = Field(default="", sa_type=Text)
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class SettingUpsert(SQLModel):
    key: str | None = None
    value: Any = None


class SettingsBulkUpsert(SQLModel):
    settings: dict[str, Any] = Field(default_factory=dict)
