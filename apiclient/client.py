"""Retrying request executor tying endpoints, transport and codec together."""

import asyncio
import itertools
import time
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Protocol, Type, TypeVar, overload

from apiclient.codec import Codec, default_codec
from apiclient.config.models import ClientConfig
from apiclient.endpoint import Endpoint, Request
from apiclient.exceptions import (
  APIError,
  DecodingFailedError,
  InvalidResponseError,
  NetworkError,
  classify_status,
)
from apiclient.http.client import HTTPTransport, Transport, TransportResponse
from apiclient.http.retry import DEFAULT_POLICY, RetryHandler, RetryPolicy, Sleeper
from apiclient.logging import get_api_logger

T = TypeVar('T')


class APIClientProtocol(Protocol):
  """Contract shared by the live client and its test double."""

  async def send(self, endpoint: Endpoint, response_type: Any = None) -> Any:
    ...


class APIClient:
  """Sends endpoints against a base URL with classification and retries.

  The client only holds configuration fixed at construction time. Every call
  keeps its request, attempt counter and last error local, so one instance
  can serve any number of concurrent tasks.
  """

  def __init__(
    self,
    base_url: str,
    transport: Optional[Transport] = None,
    codec: Optional[Codec] = None,
    retry_policy: RetryPolicy = DEFAULT_POLICY,
    default_headers: Optional[Mapping[str, str]] = None,
    sleep: Sleeper = asyncio.sleep,
  ):
    """Initialize the client.

    Args:
      base_url: Absolute base URL every endpoint path is appended to
      transport: Transport used to send requests, an owned HTTPTransport if omitted
      codec: Codec for response bodies, JSONCodec if omitted
      retry_policy: Policy bounding attempts and retryable failures
      default_headers: Headers applied under each endpoint's own headers
      sleep: Awaitable used for backoff waits
    """
    self.base_url = base_url
    self._owns_transport = transport is None
    self.transport: Transport = transport if transport is not None else HTTPTransport()
    self.codec = default_codec(codec)
    self.retry_policy = retry_policy
    self.default_headers = MappingProxyType(dict(default_headers or {}))
    self.retry_handler = RetryHandler(retry_policy, sleep=sleep)
    self.logger = get_api_logger(__name__, base_url=base_url)

  @classmethod
  def from_config(
    cls,
    config: ClientConfig,
    transport: Optional[Transport] = None,
    codec: Optional[Codec] = None,
    sleep: Sleeper = asyncio.sleep,
  ) -> "APIClient":
    """Create a client from a loaded ClientConfig."""
    owns_transport = transport is None
    if transport is None:
      transport = HTTPTransport(
        max_connections=config.max_connections,
        timeout=config.timeout,
      )

    client = cls(
      config.base_url,
      transport=transport,
      codec=codec,
      retry_policy=config.retry.to_policy(),
      default_headers=config.headers,
      sleep=sleep,
    )
    client._owns_transport = owns_transport
    return client

  @overload
  async def send(self, endpoint: Endpoint) -> None: ...

  @overload
  async def send(self, endpoint: Endpoint, response_type: Type[T]) -> T: ...

  async def send(self, endpoint: Endpoint, response_type: Any = None) -> Any:
    """Send an endpoint and decode the successful response.

    Args:
      endpoint: Description of the request to make
      response_type: Type to decode the body into; None skips decoding

    Returns:
      Decoded body, or None when no response type is requested

    Raises:
      InvalidURLError: If the request URL cannot be built (no attempt is made)
      DecodingFailedError: If a successful body cannot be decoded
      APIError: The classified error of the final attempt
    """
    request = self.build_request(endpoint)
    return await self.retry_handler.execute(
      self._attempt, request, response_type, itertools.count()
    )

  def build_request(self, endpoint: Endpoint) -> Request:
    if self.default_headers:
      merged = {**self.default_headers, **(endpoint.headers or {})}
      endpoint = Endpoint(
        path=endpoint.path,
        method=endpoint.method,
        headers=merged,
        query=endpoint.query,
        body=endpoint.body,
      )
    return endpoint.build_request(self.base_url)

  async def _attempt(
    self,
    request: Request,
    response_type: Any,
    counter: Iterator[int],
  ) -> Any:
    """Make a single attempt: send, classify, then decode on success."""
    attempt = next(counter)
    self.logger.log_request(
      request.method.value,
      request.url,
      attempt,
      headers=request.headers,
      body_size=len(request.body or b""),
    )

    started = time.monotonic()
    try:
      response = await self.transport.execute(request)
    except APIError:
      raise
    except Exception as e:
      raise NetworkError(
        str(e) or type(e).__name__,
        cause=e,
        timed_out=isinstance(e, asyncio.TimeoutError),
      ) from e

    if not isinstance(response, TransportResponse) or not isinstance(response.status, int):
      raise InvalidResponseError(f"Transport returned {type(response).__name__}")

    self.logger.log_response(
      response.status,
      request.url,
      int((time.monotonic() - started) * 1000),
      attempt,
      body_size=len(response.body),
    )

    error = classify_status(response.status, response.body)
    if error is not None:
      raise error

    if response_type is None:
      return None

    try:
      return self.codec.decode(response.body, response_type)
    except APIError:
      raise
    except Exception as e:
      raise DecodingFailedError(str(e), cause=e) from e

  async def close(self) -> None:
    """Close the transport if this client created it."""
    if self._owns_transport:
      close = getattr(self.transport, "close", None)
      if close is not None:
        await close()

  async def __aenter__(self) -> "APIClient":
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    await self.close()
