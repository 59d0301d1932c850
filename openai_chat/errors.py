"""
openai-chat-stream - Error Classes

Closed error taxonomy for chat completion calls.

Every failed call or stream ends in exactly one of these. A clean
``[DONE]`` termination produces no error at all.
"""

from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

import httpx


class OpenAIError(Exception):
    """
    Base exception for the library.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        status_code: HTTP status code if one was received
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: str = "unknown",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class APIErrorKind(IntEnum):
    """HTTP status codes the completion service uses for documented failures."""
    INVALID_API_KEY = 401
    RATE_LIMITED = 429
    SERVER_ERROR = 500
    ENGINE_OVERLOAD = 503


_API_ERROR_MESSAGES = {
    APIErrorKind.INVALID_API_KEY: "Invalid API key",
    APIErrorKind.RATE_LIMITED: "Rate limit exceeded",
    APIErrorKind.SERVER_ERROR: "Server error",
    APIErrorKind.ENGINE_OVERLOAD: "Engine overloaded",
}


class APIError(OpenAIError):
    """
    Recognized API error status.

    Attributes:
        kind: Which documented failure the status code maps to
        retry_after: Seconds suggested by the ``Retry-After`` header (rate limits only)
    """

    def __init__(
        self,
        kind: APIErrorKind,
        message: Optional[str] = None,
        retry_after: Optional[int] = None,
        **kwargs
    ):
        kind = APIErrorKind(kind)
        kwargs.pop("code", None)
        kwargs.pop("status_code", None)
        super().__init__(
            message=message or _API_ERROR_MESSAGES[kind],
            code=kind.name.lower(),
            status_code=int(kind),
            **kwargs
        )
        self.kind = kind
        self.retry_after = retry_after

    @classmethod
    def from_status(
        cls,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None
    ) -> Optional["APIError"]:
        """Build the error for a recognized status code, or None."""
        try:
            kind = APIErrorKind(status_code)
        except ValueError:
            return None

        retry_after = None
        if kind is APIErrorKind.RATE_LIMITED and headers:
            retry_after = _parse_retry_after(headers.get("Retry-After"))

        return cls(kind, retry_after=retry_after)


class TransportError(OpenAIError):
    """Unrecognized non-200 HTTP status."""

    def __init__(self, status_code: int, message: Optional[str] = None, **kwargs):
        kwargs.pop("code", None)
        super().__init__(
            message=message or f"HTTP {status_code}",
            code="transport_error",
            status_code=status_code,
            **kwargs
        )


class NoChoicesError(OpenAIError):
    """A well-formed response or stream event carried zero choices."""

    def __init__(self, message: str = "Response contained no choices", **kwargs):
        kwargs.pop("code", None)
        super().__init__(message=message, code="no_choices", **kwargs)


class DecodeError(OpenAIError):
    """
    Payload did not match the expected JSON shape.

    Attributes:
        raw: The payload that failed to decode
    """

    def __init__(self, message: str, raw: Any = None, **kwargs):
        kwargs.pop("code", None)
        super().__init__(message=message, code="decode_error", **kwargs)
        self.raw = raw


class ConnectionError(OpenAIError):
    """
    Transport failure with no status code (DNS, TLS, socket, timeout).

    Attributes:
        underlying: The original transport exception
    """

    def __init__(
        self,
        message: str = "Failed to connect to API",
        underlying: Optional[BaseException] = None,
        **kwargs
    ):
        kwargs.pop("code", None)
        super().__init__(message=message, code="connection_error", **kwargs)
        self.underlying = underlying


class EncodingError(OpenAIError):
    """Request content could not be serialized."""

    def __init__(self, message: str, **kwargs):
        kwargs.pop("code", None)
        super().__init__(message=message, code="encoding_error", **kwargs)


class InvalidResponseError(OpenAIError):
    """
    One-shot completion returned a non-200 status.

    Attributes:
        body: Raw response body text
    """

    def __init__(self, body: str, status_code: Optional[int] = None, **kwargs):
        kwargs.pop("code", None)
        super().__init__(
            message=f"Invalid response (status={status_code}): {body}",
            code="invalid_response",
            status_code=status_code,
            **kwargs
        )
        self.body = body


class MissingAPIKeyError(OpenAIError):
    """No API key was supplied to the client."""

    def __init__(self, message: str = "API key required", **kwargs):
        kwargs.pop("code", None)
        super().__init__(message=message, code="missing_api_key", **kwargs)


def map_status(
    status_code: int,
    headers: Optional[Mapping[str, str]] = None
) -> Optional[OpenAIError]:
    """
    Map a response status to an error.

    Returns None for 200. Recognized API codes map to ``APIError``,
    every other status to ``TransportError``.
    """
    if status_code == 200:
        return None

    api_error = APIError.from_status(status_code, headers)
    if api_error is not None:
        return api_error

    return TransportError(status_code)


def map_transport_error(error: BaseException) -> ConnectionError:
    """Wrap an httpx transport failure."""
    if isinstance(error, httpx.TimeoutException):
        message = "Request timed out"
    elif isinstance(error, httpx.ConnectError):
        message = "Failed to connect to API"
    else:
        message = f"Request failed: {error}"

    return ConnectionError(message, underlying=error)


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
