"""Test doubles for code that depends on the API client."""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union, get_origin

from apiclient.codec import Codec, default_codec
from apiclient.endpoint import Endpoint, Request
from apiclient.exceptions import APIError, NotFoundError
from apiclient.http.client import TransportResponse

Outcome = Union[TransportResponse, BaseException]


class StubTransport:
  """Transport returning canned outcomes keyed by request path.

  Each path holds a sequence of outcomes served one per request; once the
  sequence is used up its last outcome keeps being served. Unknown paths get
  an empty 404 response.
  """

  def __init__(self):
    self._routes: Dict[str, List[Outcome]] = {}
    self._served: Dict[str, int] = {}
    self.requests: List[Request] = []
    self.closed = False

  def stub(
    self,
    path: str,
    status: int = 200,
    body: bytes = b"",
    headers: Optional[Mapping[str, str]] = None,
  ) -> None:
    self.stub_sequence(path, [TransportResponse(status, dict(headers or {}), body)])

  def stub_json(
    self,
    path: str,
    payload: Any,
    status: int = 200,
    codec: Optional[Codec] = None,
  ) -> None:
    body = default_codec(codec).encode(payload)
    self.stub(path, status=status, body=body, headers={"Content-Type": "application/json"})

  def stub_error(self, path: str, exception: BaseException) -> None:
    self.stub_sequence(path, [exception])

  def stub_sequence(self, path: str, outcomes: Sequence[Outcome]) -> None:
    if not outcomes:
      raise ValueError("At least one outcome is required")
    self._routes[path] = list(outcomes)
    self._served[path] = 0

  def call_count(self, path: str) -> int:
    return sum(1 for request in self.requests if request.path == path)

  def reset(self) -> None:
    self._routes.clear()
    self._served.clear()
    self.requests.clear()

  async def execute(self, request: Request) -> TransportResponse:
    self.requests.append(request)
    path = request.path

    outcomes = self._routes.get(path)
    if not outcomes:
      return TransportResponse(404)

    served = self._served[path]
    self._served[path] = served + 1
    outcome = outcomes[min(served, len(outcomes) - 1)]

    if isinstance(outcome, BaseException):
      raise outcome
    return outcome

  async def close(self) -> None:
    self.closed = True


class MockAPIClient:
  """In-memory stand-in for APIClient with stubbed results per path."""

  def __init__(self):
    self.responses: Dict[str, Any] = {}
    self.errors: Dict[str, APIError] = {}
    self.request_history: List[Endpoint] = []

  async def send(self, endpoint: Endpoint, response_type: Any = None) -> Any:
    self.request_history.append(endpoint)

    error = self.errors.get(endpoint.path)
    if error is not None:
      raise error

    if response_type is None:
      return None

    if endpoint.path not in self.responses:
      raise NotFoundError()

    response = self.responses[endpoint.path]
    expected = get_origin(response_type) or response_type
    if (
      expected is not Any
      and isinstance(expected, type)
      and not isinstance(response, expected)
    ):
      raise NotFoundError()
    return response

  def stub(self, path: str, response: Any) -> None:
    self.responses[path] = response

  def stub_error(self, path: str, error: APIError) -> None:
    self.errors[path] = error

  def reset(self) -> None:
    self.responses.clear()
    self.errors.clear()
    self.request_history.clear()

  def did_request(self, path: str) -> bool:
    return any(endpoint.path == path for endpoint in self.request_history)
