"""Input sanitization and text helpers shared by the API and the AI save path."""
import math
import re
import unicodedata
from datetime import date
from typing import Any

MAX_STRING_LENGTH = 10_000
MAX_ARRAY_ITEMS = 50
MAX_ARRAY_ITEM_LENGTH = 500
MAX_EXPERIENCE_IMAGES = 10
MAX_SLUG_LENGTH = 200
WORDS_PER_MINUTE = 200

# Ampersands are left alone so stored values do not double-escape on every save.
_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
}
_ESCAPE_RE = re.compile("[<>\"']")
_TAG_RE = re.compile(r"<[^>]*>")
_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


def sanitize_string(value: Any, *, max_length: int = MAX_STRING_LENGTH) -> str:
    if not isinstance(value, str):
        return ""
    escaped = _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], value)
    return escaped[:max_length]


def sanitize_array(
    value: Any,
    *,
    max_items: int = MAX_ARRAY_ITEMS,
    max_item_length: int = MAX_ARRAY_ITEM_LENGTH,
) -> list[str]:
    """Keep string elements only, each truncated, at most ``max_items`` of them."""
    if not isinstance(value, list):
        return []
    items = [item[:max_item_length] for item in value if isinstance(item, str)]
    return items[:max_items]


def cap_images(images: Any, image: str | None) -> list[str]:
    if isinstance(images, list):
        return [item for item in images if isinstance(item, str)][:MAX_EXPERIENCE_IMAGES]
    return [image] if image else []


def is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def slugify(value: str, *, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Lowercase ASCII slug: accents folded, anything else collapsed to single hyphens."""
    folded = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", folded.lower()).strip("-")
    return slug[:max_length].strip("-")


def strip_html(html: str) -> str:
    return _TAG_RE.sub("", html or "")


def estimate_reading_time(html: str) -> int:
    words = [word for word in strip_html(html).split() if word]
    return max(1, math.ceil(len(words) / WORDS_PER_MINUTE))


def parse_year_month(value: Any) -> date | None:
    """Parse ``YYYY-MM`` (or a full ``YYYY-MM-DD``) into the first day of that month.

    Empty values map to ``None``; anything else malformed raises ``ValueError``.
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value.replace(day=1)
    text = str(value).strip()
    if not text:
        return None
    match = _YEAR_MONTH_RE.match(text)
    if not match:
        raise ValueError(f"Invalid year-month value: {text!r}")
    year, month = int(match.group(1)), int(match.group(2))
    return date(year, month, 1)


def format_year_month(value: date | None) -> str:
    return value.strftime("%Y-%m") if value else ""


def normalize_start_date(value: Any) -> str | None:
    parsed = parse_year_month(value)
    return format_year_month(parsed) if parsed else None
