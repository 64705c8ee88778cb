class AIError(Exception):
    """Base class for failures of the AI content helpers."""


class AIConfigurationError(AIError):
    """The upstream API key is missing."""


class AIUnavailableError(AIError):
    """Every model in the fallback list failed."""

    def __init__(self, last_error: Exception | None):
        self.last_error = last_error
        reason = str(last_error) if last_error else "Unknown"
        super().__init__(f"All AI models are currently unavailable. Last error: {reason}")


class AIResponseParseError(AIError):
    """The model answered, but no JSON object could be read from the answer."""
