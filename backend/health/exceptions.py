class AIServiceError(Exception):
    kind = "ai"


class ConfigurationError(AIServiceError):
    """The AI backend cannot be reached because it is not configured."""

    kind = "configuration"


class NetworkError(AIServiceError):
    """The call to the AI backend did not complete."""

    kind = "network"


class MalformedResponseError(AIServiceError):
    """The call completed but the structured output failed validation."""

    kind = "malformed"

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text
