import re
from collections.abc import Callable, Sequence
from datetime import date

from portfolio.agent.artifacts import ChatTurn, LogTemplate
from portfolio.agent.base import BaseAgent
from portfolio.agent.prompts.daily_log import DAILY_LOG_SYSTEM_PROMPT, LOG_TEMPLATE_DEFINITIONS
from portfolio.models import DAILY_LOG_CATEGORY, PostCreate
from portfolio.sanitize import estimate_reading_time, slugify, strip_html

LOG_TEMPLATES: list[LogTemplate] = [LogTemplate(**definition) for definition in LOG_TEMPLATE_DEFINITIONS]

_H2_RE = re.compile(r"<h2[^>]*>(.*?)</h2>", re.IGNORECASE | re.DOTALL)


class DailyLogAgent(BaseAgent[Sequence[ChatTurn], str]):
    """
    Turns a conversation of raw notes into a daily log in HTML.
    Streams through the model fallback orchestrator.
    """

    async def run(
        self,
        input_data: Sequence[ChatTurn],
        *,
        on_chunk: Callable[[str], None] | None = None,
        on_model: Callable[[str], None] | None = None,
    ) -> str:
        if not input_data:
            raise ValueError("DailyLogAgent needs at least one message.")
        return await self.orchestrator.generate_text(
            input_data,
            system_prompt=self.get_system_prompt(),
            on_chunk=on_chunk,
            on_model=on_model,
        )

    def get_system_prompt(self, **kwargs) -> str:
        return DAILY_LOG_SYSTEM_PROMPT


def extract_log_title(html: str) -> str:
    match = _H2_RE.search(html or "")
    if not match:
        return ""
    return strip_html(match.group(1)).strip()


def build_log_post(html: str, *, today: date | None = None) -> PostCreate:
    """Draft post for a generated log; titled after its first <h2>."""
    title = extract_log_title(html)
    if not title:
        day = today or date.today()
        title = f"Daily Log - {day.day:02d}/{day.month:02d}/{day.year}"

    return PostCreate(
        title=title,
        slug=slugify(title),
        content=html,
        excerpt=f"Daily log: {title}",
        category=DAILY_LOG_CATEGORY,
        status="draft",
        reading_time=estimate_reading_time(html),
    )
