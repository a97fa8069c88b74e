"""HTTP transport and retry infrastructure."""

from apiclient.http.client import HTTPTransport, Transport, TransportResponse
from apiclient.http.retry import (
  DEFAULT_POLICY,
  NO_RETRY_POLICY,
  RetryHandler,
  RetryPolicy,
  RetryableKind,
)

__all__ = [
  "DEFAULT_POLICY",
  "HTTPTransport",
  "NO_RETRY_POLICY",
  "RetryHandler",
  "RetryPolicy",
  "RetryableKind",
  "Transport",
  "TransportResponse",
]
