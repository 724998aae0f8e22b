"""Error taxonomy for the chat completion gateway.

ProviderError and its subclasses are raised by adapters and captured by
the fallback orchestrator as attempt records; they never reach the HTTP
layer. RequestValidationError is raised at the request boundary before
any provider is contacted.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway errors."""


class RequestValidationError(GatewayError):
    """Inbound payload is malformed or the message is empty."""


class ProviderError(GatewayError):
    """A contacted provider failed to produce usable text."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderHTTPError(ProviderError):
    """Provider answered with a non-success status."""


class RateLimitError(ProviderHTTPError):
    """Provider answered 429."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = 429,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class AuthenticationError(ProviderHTTPError):
    """Provider rejected the credential (401/403)."""


class EmptyResponseError(ProviderError):
    """Success status, but no usable text in the body.

    Safety-filtered completions land here as well.
    """


class TransportFailure(ProviderError):
    """Timeout, connection failure, or an undecodable body."""
