"""HTTP transport with connection pooling built on aiohttp."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

import aiohttp
from aiohttp import ClientTimeout, TCPConnector
from aiohttp.client_exceptions import ClientConnectorError, ClientError
from yarl import URL

from apiclient.endpoint import Request
from apiclient.exceptions import NetworkError


@dataclass(frozen=True)
class TransportResponse:
  """Raw HTTP response as returned by a transport."""

  status: int
  headers: Mapping[str, str] = field(default_factory=dict)
  body: bytes = b""


class Transport(Protocol):
  """Capability that sends a Request and returns the raw response."""

  async def execute(self, request: Request) -> TransportResponse:
    ...


class HTTPTransport:
  """aiohttp-backed transport with a lazily created pooled session."""

  def __init__(
    self,
    max_connections: int = 100,
    timeout: float = 30
  ):
    """Initialize HTTP transport with connection pooling.

    Args:
      max_connections: Maximum number of connections in the pool
      timeout: Total per-request timeout in seconds
    """
    self.max_connections = max_connections
    self.timeout = timeout
    self.session: Optional[aiohttp.ClientSession] = None

  async def _get_session(self) -> aiohttp.ClientSession:
    """Get or create aiohttp session with connection pooling.

    Returns:
      Configured ClientSession instance
    """
    if self.session is None:
      connector = TCPConnector(limit=self.max_connections)
      timeout = ClientTimeout(total=self.timeout)

      self.session = aiohttp.ClientSession(
        connector=connector,
        timeout=timeout
      )

    return self.session

  async def execute(self, request: Request) -> TransportResponse:
    """Send the request and read the full response body.

    Args:
      request: Request produced by Endpoint.build_request

    Returns:
      Status, headers and body of the response

    Raises:
      NetworkError: For connection failures, client errors and timeouts
    """
    session = await self._get_session()

    try:
      async with session.request(
        request.method.value,
        URL(request.url, encoded=True),
        headers=dict(request.headers),
        data=request.body,
      ) as response:
        body = await response.read()
        return TransportResponse(
          status=response.status,
          headers=dict(response.headers),
          body=body,
        )
    except asyncio.TimeoutError as e:
      raise NetworkError(f"Request timeout: {str(e)}", cause=e, timed_out=True) from e
    except ClientConnectorError as e:
      raise NetworkError(f"Connection failed: {str(e)}", cause=e) from e
    except ClientError as e:
      raise NetworkError(f"HTTP request failed: {str(e)}", cause=e) from e

  async def close(self) -> None:
    """Close the HTTP session and clean up resources."""
    if self.session is not None:
      await self.session.close()
      self.session = None

  async def __aenter__(self) -> "HTTPTransport":
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    await self.close()
