"""Retrying async HTTP API client."""

from .client import APIClient, APIClientProtocol
from .codec import Codec, JSONCodec
from .config import ClientConfig, ConfigLoader, RetrySettings
from .endpoint import Endpoint, HTTPMethod, Request
from .exceptions import (
    APIError,
    APIErrorKind,
    ConfigurationError,
    DecodingFailedError,
    HTTPError,
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    classify_status,
)
from .http import (
    DEFAULT_POLICY,
    NO_RETRY_POLICY,
    HTTPTransport,
    RetryHandler,
    RetryPolicy,
    RetryableKind,
    Transport,
    TransportResponse,
)

__all__ = [
    "APIClient",
    "APIClientProtocol",
    "APIError",
    "APIErrorKind",
    "ClientConfig",
    "Codec",
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_POLICY",
    "DecodingFailedError",
    "Endpoint",
    "HTTPError",
    "HTTPMethod",
    "HTTPTransport",
    "InvalidResponseError",
    "InvalidURLError",
    "JSONCodec",
    "NO_RETRY_POLICY",
    "NetworkError",
    "NotFoundError",
    "Request",
    "RetryHandler",
    "RetryPolicy",
    "RetrySettings",
    "RetryableKind",
    "ServerError",
    "Transport",
    "TransportResponse",
    "UnauthorizedError",
    "classify_status",
]
