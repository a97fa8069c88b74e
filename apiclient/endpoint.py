"""Declarative endpoint descriptions and the request builder."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from yarl import URL

from apiclient.codec import Codec, default_codec
from apiclient.exceptions import InvalidURLError

JSON_CONTENT_TYPE = "application/json"

QueryPairs = Sequence[Tuple[str, Any]]


class HTTPMethod(str, Enum):
  GET = "GET"
  POST = "POST"
  PUT = "PUT"
  PATCH = "PATCH"
  DELETE = "DELETE"


@dataclass(frozen=True)
class Request:
  """Transport-ready request built from an Endpoint and a base URL."""

  url: str
  method: HTTPMethod
  headers: Mapping[str, str]
  body: Optional[bytes] = None

  @property
  def path(self) -> str:
    return URL(self.url).path


@dataclass(frozen=True)
class Endpoint:
  """Description of one logical HTTP request.

  Query parameters are kept as ordered (name, value) pairs so the generated
  query string is reproducible. Instances are immutable; headers are copied
  into a read-only mapping on construction.
  """

  path: str
  method: Union[HTTPMethod, str] = HTTPMethod.GET
  headers: Optional[Mapping[str, str]] = None
  query: Optional[QueryPairs] = None
  body: Optional[bytes] = None

  def __post_init__(self):
    if not isinstance(self.method, HTTPMethod):
      try:
        method = HTTPMethod(str(self.method).upper())
      except ValueError:
        raise ValueError(f"Unsupported HTTP method: {self.method!r}")
      object.__setattr__(self, "method", method)

    if self.headers is not None:
      object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    if self.query is not None:
      pairs = tuple((str(name), str(value)) for name, value in self.query)
      object.__setattr__(self, "query", pairs)

  @classmethod
  def json(
    cls,
    path: str,
    payload: Any,
    method: Union[HTTPMethod, str] = HTTPMethod.POST,
    headers: Optional[Mapping[str, str]] = None,
    query: Optional[QueryPairs] = None,
    codec: Optional[Codec] = None,
  ) -> "Endpoint":
    """Create an endpoint whose body is ``payload`` encoded with the codec."""
    body = default_codec(codec).encode(payload)
    return cls(path=path, method=method, headers=headers, query=query, body=body)

  def build_request(self, base_url: Union[str, URL]) -> Request:
    """Build a transport-ready request against ``base_url``.

    The endpoint path is appended to the base URL's path, query pairs are
    encoded in the order given, and a JSON Content-Type is added for
    non-empty bodies unless the caller set one.

    Args:
      base_url: Absolute base URL of the API

    Returns:
      Request with absolute URL and merged headers

    Raises:
      InvalidURLError: If base URL and path do not form an absolute URL
    """
    if not base_url:
      raise InvalidURLError("Base URL is missing")

    try:
      base = base_url if isinstance(base_url, URL) else URL(base_url)
      if not base.is_absolute() or not base.host:
        raise InvalidURLError(f"Base URL is not absolute: {base_url}")

      joined = base.path.rstrip("/") + "/" + self.path.lstrip("/")
      url = base.with_path(joined)
      if self.query:
        url = url.with_query(list(self.query))
    except (ValueError, TypeError) as e:
      raise InvalidURLError(str(e), cause=e) from e

    headers = dict(self.headers or {})
    # Key match is case-sensitive.
    if self.body and "Content-Type" not in headers:
      headers["Content-Type"] = JSON_CONTENT_TYPE

    return Request(
      url=str(url),
      method=self.method,
      headers=MappingProxyType(headers),
      body=self.body,
    )
