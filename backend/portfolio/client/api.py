import asyncio
import logging
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from portfolio.agent.daily_log_agent import build_log_post
from portfolio.client.cache import ResourceCache
from portfolio.client.views import (
    CertificationView,
    DashboardData,
    ExperienceView,
    PostView,
    ProjectView,
    compute_stats,
    normalize_certification,
    normalize_experience,
    normalize_post,
    normalize_project,
)
from portfolio.core.config import settings
from portfolio.models import DEFAULT_SITE_SETTINGS

logger = logging.getLogger(__name__)

View = TypeVar("View")

DEFAULT_TIMEOUT_SECONDS = 10.0
# Anything a broken response can raise while being read or normalized.
CLIENT_ERRORS = (httpx.HTTPError, ValueError, TypeError, KeyError)


class PortfolioClient:
    """
    Async data-access layer over the portfolio REST API.

    List reads go through a ResourceCache; mutations never touch it, so callers
    re-list with ``force_refresh=True`` after a write. No method raises: failures
    are logged and turned into an empty or stale list, ``None`` or ``False``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        cache: ResourceCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.base_url = (base_url or settings.CLIENT_API_BASE_URL).rstrip("/")
        self.cache = cache or ResourceCache()
        self._client = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "PortfolioClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def invalidate(self, kind: str | None = None) -> None:
        self.cache.invalidate(kind)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _object(row: Any) -> dict[str, Any]:
        if not isinstance(row, dict):
            raise ValueError(f"Expected a JSON object, got {type(row).__name__}")
        return row

    async def _cached_list(
        self,
        kind: str,
        path: str,
        normalize: Callable[[dict[str, Any]], View],
        force_refresh: bool,
    ) -> list[View]:
        if not force_refresh:
            cached = self.cache.fresh(kind)
            if cached is not None:
                return list(cached)

        try:
            rows = await self._request("GET", path)
            if not isinstance(rows, list):
                raise ValueError(f"Expected a list from {path}")
            data = [normalize(self._object(row)) for row in rows]
        except CLIENT_ERRORS as exc:
            stale = self.cache.stale(kind)
            logger.error(
                "Failed to fetch %s: %s (%s)", kind, exc, "serving stale copy" if stale is not None else "no cached copy"
            )
            return list(stale) if stale is not None else []

        self.cache.put(kind, data)
        return list(data)

    async def _write(
        self,
        method: str,
        path: str,
        normalize: Callable[[dict[str, Any]], View],
        payload: dict[str, Any],
    ) -> View | None:
        try:
            return normalize(self._object(await self._request(method, path, json=payload)))
        except CLIENT_ERRORS as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            return None

    async def _delete(self, path: str) -> bool:
        try:
            await self._request("DELETE", path)
            return True
        except CLIENT_ERRORS as exc:
            logger.error("DELETE %s failed: %s", path, exc)
            return False

    # Posts

    async def get_all_posts(self, force_refresh: bool = False) -> list[PostView]:
        return await self._cached_list("posts", "/posts", normalize_post, force_refresh)

    async def get_published_posts(self, force_refresh: bool = False) -> list[PostView]:
        return await self._cached_list("published_posts", "/posts/published", normalize_post, force_refresh)

    async def get_post_by_slug(self, slug: str) -> PostView | None:
        path = f"/posts/{quote(slug, safe='')}"
        try:
            return normalize_post(self._object(await self._request("GET", path)))
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != 404:
                logger.error("Failed to fetch post %s: %s", slug, exc)
            return None
        except CLIENT_ERRORS as exc:
            logger.error("Failed to fetch post %s: %s", slug, exc)
            return None

    async def create_post(self, data: dict[str, Any]) -> PostView | None:
        return await self._write("POST", "/posts", normalize_post, data)

    async def update_post(self, post_id: str | int, data: dict[str, Any]) -> PostView | None:
        return await self._write("PUT", f"/posts/{post_id}", normalize_post, data)

    async def delete_post(self, post_id: str | int) -> bool:
        return await self._delete(f"/posts/{post_id}")

    async def save_log_as_post(self, html: str, *, today: date | None = None) -> PostView | None:
        post_in = build_log_post(html, today=today)
        return await self.create_post(post_in.model_dump(exclude_none=True))

    # Experiences

    async def get_all_experiences(self, force_refresh: bool = False) -> list[ExperienceView]:
        return await self._cached_list("experiences", "/experiences", normalize_experience, force_refresh)

    async def create_experience(self, data: dict[str, Any]) -> ExperienceView | None:
        return await self._write("POST", "/experiences", normalize_experience, data)

    async def update_experience(self, experience_id: str | int, data: dict[str, Any]) -> ExperienceView | None:
        return await self._write("PUT", f"/experiences/{experience_id}", normalize_experience, data)

    async def delete_experience(self, experience_id: str | int) -> bool:
        return await self._delete(f"/experiences/{experience_id}")

    # Projects

    async def get_all_projects(self, force_refresh: bool = False) -> list[ProjectView]:
        return await self._cached_list("projects", "/projects", normalize_project, force_refresh)

    async def create_project(self, data: dict[str, Any]) -> ProjectView | None:
        return await self._write("POST", "/projects", normalize_project, data)

    async def update_project(self, project_id: str | int, data: dict[str, Any]) -> ProjectView | None:
        return await self._write("PUT", f"/projects/{project_id}", normalize_project, data)

    async def delete_project(self, project_id: str | int) -> bool:
        return await self._delete(f"/projects/{project_id}")

    # Certifications

    async def get_all_certifications(self, force_refresh: bool = False) -> list[CertificationView]:
        return await self._cached_list("certifications", "/certifications", normalize_certification, force_refresh)

    async def create_certification(self, data: dict[str, Any]) -> CertificationView | None:
        return await self._write("POST", "/certifications", normalize_certification, data)

    async def update_certification(self, certification_id: str | int, data: dict[str, Any]) -> CertificationView | None:
        return await self._write("PUT", f"/certifications/{certification_id}", normalize_certification, data)

    async def delete_certification(self, certification_id: str | int) -> bool:
        return await self._delete(f"/certifications/{certification_id}")

    # Settings and dashboard

    async def get_settings(self) -> dict[str, str]:
        try:
            stored = await self._request("GET", "/settings")
            if not isinstance(stored, dict):
                raise ValueError("Expected an object from /settings")
        except CLIENT_ERRORS as exc:
            logger.error("Failed to fetch settings: %s", exc)
            return dict(DEFAULT_SITE_SETTINGS)
        return {**DEFAULT_SITE_SETTINGS, **{key: str(value) for key, value in stored.items()}}

    async def load_dashboard(self, force_refresh: bool = False) -> DashboardData:
        posts, experiences, projects, certifications = await asyncio.gather(
            self.get_all_posts(force_refresh),
            self.get_all_experiences(force_refresh),
            self.get_all_projects(force_refresh),
            self.get_all_certifications(force_refresh),
        )
        return DashboardData(
            posts=posts,
            experiences=experiences,
            projects=projects,
            certifications=certifications,
            stats=compute_stats(posts, experiences, projects, certifications),
        )
