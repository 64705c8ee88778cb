import logging
from dataclasses import dataclass
from typing import Literal

from pydantic import ValidationError

from portfolio.agent.artifacts import (
    ChatTurn,
    GeneratedCertification,
    GeneratedExperience,
    GeneratedProject,
)
from portfolio.agent.base import BaseAgent
from portfolio.agent.errors import AIResponseParseError
from portfolio.agent.llm_client import extract_json_object
from portfolio.agent.orchestrator import ModelFallbackOrchestrator
from portfolio.agent.prompts.extraction import (
    CERTIFICATION_SYSTEM_PROMPT,
    EXPERIENCE_SYSTEM_PROMPT,
    IMAGE_USER_PROMPT,
    IMAGE_USER_PROMPT_WITH_CONTEXT,
    PROJECT_SYSTEM_PROMPT,
    TEXT_USER_PROMPT,
)

logger = logging.getLogger(__name__)

ExtractionKind = Literal["experience", "certification", "project"]
FormFill = GeneratedExperience | GeneratedCertification | GeneratedProject


@dataclass(frozen=True)
class ExtractionTarget:
    schema: type[FormFill]
    system_prompt: str
    subject: str
    text_source: str


EXTRACTION_TARGETS: dict[str, ExtractionTarget] = {
    "experience": ExtractionTarget(GeneratedExperience, EXPERIENCE_SYSTEM_PROMPT, "experience", "document"),
    "certification": ExtractionTarget(
        GeneratedCertification, CERTIFICATION_SYSTEM_PROMPT, "certification", "certificate"
    ),
    "project": ExtractionTarget(GeneratedProject, PROJECT_SYSTEM_PROMPT, "project", "project description"),
}


class ExtractionAgent(BaseAgent[str, FormFill]):
    """
    Fills one of the dashboard forms (experience, certification, project)
    from document text or from an image URL.
    """

    def __init__(self, kind: str, orchestrator: ModelFallbackOrchestrator | None = None):
        if kind not in EXTRACTION_TARGETS:
            raise ValueError(f"Unknown extraction kind: {kind}")
        super().__init__(orchestrator)
        self.kind = kind
        self.target = EXTRACTION_TARGETS[kind]

    async def run(self, input_data: str) -> FormFill:
        """Extract from free text (pasted, or read out of an uploaded document)."""
        user_prompt = TEXT_USER_PROMPT.format(
            source=self.target.text_source,
            text=input_data,
            subject=self.target.subject,
        ).strip()
        answer = await self.orchestrator.generate_text(
            [ChatTurn(role="user", content=user_prompt)],
            system_prompt=self.get_system_prompt(),
        )
        return self.parse(answer)

    async def run_from_image(self, image_url: str, user_context: str | None = None) -> FormFill:
        if user_context and user_context.strip():
            user_prompt = IMAGE_USER_PROMPT_WITH_CONTEXT.format(
                context=user_context.strip(), subject=self.target.subject
            )
        else:
            user_prompt = IMAGE_USER_PROMPT.format(subject=self.target.subject)

        answer = await self.orchestrator.generate_from_image(
            system_prompt=self.get_system_prompt(),
            user_prompt=user_prompt,
            image_url=image_url,
        )
        return self.parse(answer)

    def get_system_prompt(self, **kwargs) -> str:
        return self.target.system_prompt.strip()

    def parse(self, answer: str) -> FormFill:
        data = extract_json_object(answer)
        try:
            return self.target.schema.model_validate(data)
        except ValidationError as exc:
            logger.warning("Extracted %s did not match the form schema: %s", self.kind, exc)
            raise AIResponseParseError(f"Invalid {self.kind} data in model response") from exc
