"""
Assistant module exceptions.
"""

from typing import Optional

from shared.exceptions import ExternalServiceError, RentableError


class AssistantError(RentableError):
    """Base exception for chat assistant errors."""

    pass


class AssistantConfigurationError(AssistantError):
    """Raised when the assistant has no API key configured."""

    def __init__(self):
        super().__init__(
            "Chat assistant is not configured. Set GOOGLE_API_KEY.",
            code="ASSISTANT_NOT_CONFIGURED",
        )


class AssistantRequestError(AssistantError, ExternalServiceError):
    """Raised when the generative-text endpoint fails or returns nothing usable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        ExternalServiceError.__init__(
            self,
            message,
            service="gemini",
            code="ASSISTANT_REQUEST_FAILED",
            details={"status_code": status_code} if status_code else None,
        )
        self.status_code = status_code
