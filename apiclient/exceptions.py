"""Custom exception classes and status classification for the API client."""

from enum import Enum
from typing import Any, Optional, Tuple


class APIErrorKind(str, Enum):
    """Closed set of failure kinds a request can end in."""

    INVALID_URL = "invalid_url"
    INVALID_RESPONSE = "invalid_response"
    HTTP_ERROR = "http_error"
    DECODING_FAILED = "decoding_failed"
    NETWORK_ERROR = "network_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"


class APIError(Exception):
    """Base exception class for every terminal request failure.

    Two errors compare equal when they share a kind and the same identifying
    payload, regardless of the diagnostic cause attached to them.
    """

    kind: APIErrorKind

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def _identity(self) -> Tuple[Any, ...]:
        return ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, APIError):
            return NotImplemented
        return self.kind is other.kind and self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash((self.kind, self._identity()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class InvalidURLError(APIError):
    """Raised when base URL and endpoint path do not form a valid URL."""

    kind = APIErrorKind.INVALID_URL

    def __init__(self, detail: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__("Invalid URL", cause)
        self.detail = detail


class InvalidResponseError(APIError):
    """Raised when the transport hands back something that is not an HTTP response."""

    kind = APIErrorKind.INVALID_RESPONSE

    def __init__(self, detail: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__("Invalid response from server", cause)
        self.detail = detail


class HTTPError(APIError):
    """Raised for a non-success status without a dedicated error class."""

    kind = APIErrorKind.HTTP_ERROR

    def __init__(self, status_code: int, body: Optional[bytes] = None):
        super().__init__(f"HTTP error: {status_code}")
        self.status_code = status_code
        self.body = body

    def _identity(self) -> Tuple[Any, ...]:
        # The body is carried for diagnostics only.
        return (self.status_code,)


class DecodingFailedError(APIError):
    """Raised when a successful response body cannot be decoded."""

    kind = APIErrorKind.DECODING_FAILED

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to decode response: {message}", cause)
        self.message = message

    def _identity(self) -> Tuple[Any, ...]:
        return (self.message,)


class NetworkError(APIError):
    """Raised when network-related errors occur."""

    kind = APIErrorKind.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        timed_out: bool = False,
    ):
        super().__init__(f"Network error: {message}", cause)
        self.message = message
        self.timed_out = timed_out

    def _identity(self) -> Tuple[Any, ...]:
        return (self.message,)


class UnauthorizedError(APIError):
    """Raised on HTTP 401."""

    kind = APIErrorKind.UNAUTHORIZED

    def __init__(self):
        super().__init__("Unauthorized - please log in again")


class NotFoundError(APIError):
    """Raised on HTTP 404."""

    kind = APIErrorKind.NOT_FOUND

    def __init__(self):
        super().__init__("Resource not found")


class ServerError(APIError):
    """Raised on any HTTP 5xx status."""

    kind = APIErrorKind.SERVER_ERROR

    def __init__(self, status_code: int):
        super().__init__(f"Server error: {status_code}")
        self.status_code = status_code

    def _identity(self) -> Tuple[Any, ...]:
        return (self.status_code,)


class ConfigurationError(Exception):
    """Raised when there are configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.config_file = config_file
        self.field = field


def classify_status(status_code: int, body: Optional[bytes] = None) -> Optional[APIError]:
    """Map an HTTP status code to the error it represents.

    Args:
      status_code: HTTP status code of the response
      body: Raw response body, attached to generic HTTP errors

    Returns:
      None for 2xx responses, otherwise the matching APIError
    """
    if 200 <= status_code < 300:
        return None
    if status_code == 401:
        return UnauthorizedError()
    if status_code == 404:
        return NotFoundError()
    if 500 <= status_code < 600:
        return ServerError(status_code)
    return HTTPError(status_code, body)
