from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from portfolio.agent.orchestrator import ModelFallbackOrchestrator

InType = TypeVar("InType")
OutType = TypeVar("OutType", bound=BaseModel | str)


class BaseAgent(ABC, Generic[InType, OutType]):
    """Abstract base class for the AI content helpers."""

    def __init__(self, orchestrator: ModelFallbackOrchestrator | None = None):
        self.orchestrator = orchestrator or ModelFallbackOrchestrator()

    @abstractmethod
    async def run(self, input_data: InType) -> OutType:
        """Run the agent on the given input to produce the output artifact."""
        pass

    def get_system_prompt(self, **kwargs) -> str:
        """Optional helper to format the system prompt."""
        return ""
