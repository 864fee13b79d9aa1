"""Typed failures raised across the gateway.

Adapters raise these, the usage tracker observes and re-raises them
unchanged, and the gateway turns them into error tool responses.
"""

from typing import Any, Optional


class GatewayError(Exception):
    """Base exception carrying a machine-readable error code."""

    code = "GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def __str__(self) -> str:
        return self.message


class ProviderUnavailableError(GatewayError):
    """Provider credentials are not configured."""
    code = "PROVIDER_UNAVAILABLE"


class ProviderNotFoundError(GatewayError):
    """No provider is registered under the requested name."""
    code = "NOT_FOUND"


class InvalidResponseError(GatewayError):
    """Backend replied without usable text content."""
    code = "INVALID_RESPONSE"


class RequestTimeoutError(GatewayError):
    """Backend call did not finish before the deadline."""
    code = "TIMEOUT"


class BackendError(GatewayError):
    """Wrapped transport, auth or quota failure from a backend SDK."""
    code = "BACKEND_ERROR"


class ToolValidationError(GatewayError):
    """Tool arguments failed schema validation."""
    code = "VALIDATION_ERROR"


def error_message(error: BaseException) -> str:
    """Display message for an arbitrary exception."""
    return str(error) or error.__class__.__name__
