from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = Field(..., min_length=1)


class FreeModel(BaseModel):
    """One entry of the free-tier catalogue the orchestrator walks through."""
    id: str = Field(description="Provider model id, e.g. 'qwen/qwen3-4b:free'")
    name: str = Field(description="Human readable label shown while the model is tried")
    provider: str
    no_system_role: bool = Field(
        default=False,
        description="Model rejects a system turn; instructions are merged into the first user turn.",
    )
    vision: bool = Field(default=False, description="Model accepts an image_url content part")


class _FormFill(BaseModel):
    """Form-fill artifacts accept the camelCase keys the prompts ask the model for."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info) -> Any:
        field = cls.model_fields[info.field_name]
        if value is None:
            return field.get_default(call_default_factory=True)
        return value


class GeneratedExperience(_FormFill):
    title: str = ""
    organization: str = ""
    period: str = Field(default="", description="Display period, e.g. 'Jan 2024 - Present'")
    description: str = ""
    type: Literal["work", "internship", "education", "program", "organization", "volunteer"] = "work"
    tags: list[str] = Field(default_factory=list)


class GeneratedCertification(_FormFill):
    name: str = ""
    organization: str = ""
    issue_date: str = Field(default="", description="YYYY-MM")
    expiry_date: str = Field(default="", description="YYYY-MM or empty when it never expires")
    credential_id: str = ""
    skills: list[str] = Field(default_factory=list)


class GeneratedProject(_FormFill):
    title: str = ""
    description: str = ""
    category: str = "Other"
    tags: list[str] = Field(default_factory=list)


class LogTemplate(BaseModel):
    id: str
    label: str
    emoji: str
    prompt: str
