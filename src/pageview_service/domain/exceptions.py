"""Exception hierarchy for page-view retrieval failures."""

from __future__ import annotations

from typing import Any, Mapping


class PageViewServiceError(Exception):
    """Base class for all domain-level errors in the page-view service."""

    default_message = "Page view service error occurred"

    def __init__(
        self, message: str | None = None, *, context: Mapping[str, Any] | None = None
    ):
        self.message = message or self.default_message
        self.context: Mapping[str, Any] = dict(context or {})
        formatted = self._format_message()
        super().__init__(formatted)

    def _format_message(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class InvalidConfigurationError(PageViewServiceError, ValueError):
    """Raised at construction when service configuration is unusable."""

    default_message = "Invalid service configuration"


class InvalidArgumentError(PageViewServiceError, ValueError):
    """Raised when a call-time argument is rejected."""

    default_message = "Invalid argument"


class BackendError(PageViewServiceError):
    """Any failure of a single backend round trip."""

    default_message = "Analytics backend error"


class BackendTransportError(BackendError):
    """Network, auth or quota problems talking to the backend."""

    default_message = "Analytics backend request failed"


class BackendAuthError(BackendTransportError):
    """Backend rejected the supplied credentials."""

    default_message = "Analytics backend authentication failed"


class BackendRateLimitError(BackendTransportError):
    """Backend refused the request because a quota was exhausted."""

    default_message = "Analytics backend quota exceeded"


class BackendUnavailableError(BackendTransportError):
    """Backend service is down or unreachable."""

    default_message = "Analytics backend is unavailable"


class BackendContractViolation(BackendError):
    """Backend response does not have the expected shape."""

    default_message = "Analytics backend returned a malformed response"
