"""Unit tests for retry policy and exponential backoff loop."""

import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from apiclient.exceptions import (
  ConfigurationError,
  DecodingFailedError,
  HTTPError,
  InvalidResponseError,
  InvalidURLError,
  NetworkError,
  NotFoundError,
  ServerError,
  UnauthorizedError,
)
from apiclient.http.retry import (
  DEFAULT_POLICY,
  NO_RETRY_POLICY,
  RetryHandler,
  RetryPolicy,
  RetryableKind,
)


class RecordingSleeper:
  """Async sleep replacement that records requested delays."""

  def __init__(self):
    self.delays = []

  async def __call__(self, delay):
    self.delays.append(delay)


class TestRetryPolicy:
  """Test cases for RetryPolicy."""

  def test_default_policy(self):
    """Test default policy retries every kind three times from one second."""
    assert DEFAULT_POLICY.max_retries == 3
    assert DEFAULT_POLICY.base_delay == 1.0
    assert DEFAULT_POLICY.retryable == frozenset(
      {RetryableKind.NETWORK_ERROR, RetryableKind.SERVER_ERROR, RetryableKind.TIMEOUT}
    )
    assert RetryPolicy.DEFAULT is DEFAULT_POLICY

  def test_no_retry_policy(self):
    """Test the no-retry policy allows a single attempt and no kinds."""
    assert NO_RETRY_POLICY.max_retries == 0
    assert NO_RETRY_POLICY.max_attempts == 1
    assert NO_RETRY_POLICY.retryable == frozenset()
    assert not NO_RETRY_POLICY.should_retry(NetworkError("down"))
    assert not NO_RETRY_POLICY.should_retry(ServerError(500))

  def test_policy_is_immutable(self):
    """Test that a policy cannot be mutated after construction."""
    with pytest.raises(AttributeError):
      DEFAULT_POLICY.max_retries = 10

  def test_negative_max_retries_rejected(self):
    """Test that negative retry budgets are rejected."""
    with pytest.raises(ConfigurationError, match="cannot be negative"):
      RetryPolicy(max_retries=-1)

  def test_non_positive_base_delay_rejected(self):
    """Test that base delay must be positive."""
    with pytest.raises(ConfigurationError, match="must be positive"):
      RetryPolicy(base_delay=0)

  def test_of_accepts_kind_names(self):
    """Test building a policy from plain kind names."""
    policy = RetryPolicy.of(max_retries=2, base_delay=0.5, retryable=["server_error"])

    assert policy.max_retries == 2
    assert policy.base_delay == 0.5
    assert policy.retryable == frozenset({RetryableKind.SERVER_ERROR})

  def test_of_rejects_unknown_kind(self):
    """Test that unknown kind names raise ValueError."""
    with pytest.raises(ValueError):
      RetryPolicy.of(retryable=["teapot"])

  def test_backoff_delays_double(self):
    """Test delay before attempt n is base * 2^(n-1)."""
    policy = RetryPolicy(base_delay=1.0)

    assert policy.delay(1) == 1.0
    assert policy.delay(2) == 2.0
    assert policy.delay(3) == 4.0
    assert policy.delay(4) == 8.0

  def test_backoff_scales_with_base_delay(self):
    """Test delays scale linearly with the base delay."""
    policy = RetryPolicy(base_delay=0.25)

    assert [policy.delay(n) for n in (1, 2, 3)] == [0.25, 0.5, 1.0]

  def test_should_retry_network_error(self):
    """Test network errors follow the NETWORK_ERROR kind."""
    error = NetworkError("Connection refused")

    assert RetryPolicy.of(retryable=["network_error"]).should_retry(error)
    assert not RetryPolicy.of(retryable=["server_error", "timeout"]).should_retry(error)

  def test_should_retry_server_error(self):
    """Test server errors follow the SERVER_ERROR kind."""
    error = ServerError(503)

    assert RetryPolicy.of(retryable=["server_error"]).should_retry(error)
    assert not RetryPolicy.of(retryable=["network_error", "timeout"]).should_retry(error)

  def test_timed_out_network_error_ignores_timeout_kind(self):
    """Test timeouts are governed by the network error kind only."""
    error = NetworkError("Request timeout", timed_out=True)

    assert not RetryPolicy.of(retryable=["timeout"]).should_retry(error)
    assert RetryPolicy.of(retryable=["network_error"]).should_retry(error)

  @pytest.mark.parametrize("error", [
    UnauthorizedError(),
    NotFoundError(),
    HTTPError(400, b"bad"),
    HTTPError(302),
    DecodingFailedError("bad json"),
    InvalidResponseError(),
    InvalidURLError(),
    ValueError("not an api error"),
  ])
  def test_other_errors_never_retried(self, error):
    """Test non-transient errors are never eligible."""
    assert not DEFAULT_POLICY.should_retry(error)


class TestRetryHandler:
  """Test cases for RetryHandler class."""

  @pytest.fixture
  def sleeper(self):
    return RecordingSleeper()

  @pytest.fixture
  def retry_handler(self, sleeper):
    """Create RetryHandler instance for testing."""
    return RetryHandler(RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleeper)

  @pytest.fixture
  def mock_async_func(self):
    """Create mock async function for testing."""
    return AsyncMock()

  def test_retry_handler_initialization(self):
    """Test RetryHandler initialization with default parameters."""
    handler = RetryHandler()
    assert handler.policy is DEFAULT_POLICY
    assert handler.sleep is asyncio.sleep

  @pytest.mark.asyncio
  async def test_execute_success_on_first_attempt(self, retry_handler, mock_async_func, sleeper):
    """Test successful execution on first attempt."""
    mock_async_func.return_value = "success"

    result = await retry_handler.execute(mock_async_func, "arg1", kwarg1="value1")

    assert result == "success"
    mock_async_func.assert_called_once_with("arg1", kwarg1="value1")
    assert sleeper.delays == []

  @pytest.mark.asyncio
  async def test_execute_success_after_retries(self, retry_handler, mock_async_func, sleeper):
    """Test successful execution after some retries."""
    mock_async_func.side_effect = [
      NetworkError("Connection failed"),
      ServerError(502),
      "success",
    ]

    result = await retry_handler.execute(mock_async_func)

    assert result == "success"
    assert mock_async_func.call_count == 3
    assert sleeper.delays == [1.0, 2.0]

  @pytest.mark.asyncio
  async def test_execute_retries_exhausted_raises_last_error(self, retry_handler, mock_async_func, sleeper):
    """Test that exhaustion surfaces the last observed error."""
    mock_async_func.side_effect = [
      NetworkError("first"),
      NetworkError("second"),
      ServerError(500),
      ServerError(503),
    ]

    with pytest.raises(ServerError) as exc_info:
      await retry_handler.execute(mock_async_func)

    assert exc_info.value == ServerError(503)
    assert mock_async_func.call_count == 4
    assert sleeper.delays == [1.0, 2.0, 4.0]

  @pytest.mark.asyncio
  async def test_exhaustion_reraises_final_attempt_error(self, retry_handler, mock_async_func, sleeper):
    """Test the last attempt's own exception object ends the loop."""
    final = NetworkError("final")
    mock_async_func.side_effect = [ServerError(500), ServerError(500), ServerError(500), final]

    with patch("apiclient.http.retry.logger") as mock_logger:
      with pytest.raises(NetworkError) as exc_info:
        await retry_handler.execute(mock_async_func)

    assert exc_info.value is final
    retries = [c.args[:2] for c in mock_logger.log_retry.call_args_list]
    assert retries == [(1, 1.0), (2, 2.0), (3, 4.0)]
    mock_logger.error.assert_called_once()

  @pytest.mark.asyncio
  async def test_non_retryable_error_raised_immediately(self, retry_handler, mock_async_func, sleeper):
    """Test that non-retryable errors do not consume the retry budget."""
    mock_async_func.side_effect = NotFoundError()

    with pytest.raises(NotFoundError):
      await retry_handler.execute(mock_async_func)

    assert mock_async_func.call_count == 1
    assert sleeper.delays == []

  @pytest.mark.asyncio
  async def test_non_retryable_after_retryable(self, retry_handler, mock_async_func, sleeper):
    """Test a terminal error after a retry ends the loop with that error."""
    mock_async_func.side_effect = [ServerError(500), UnauthorizedError()]

    with pytest.raises(UnauthorizedError):
      await retry_handler.execute(mock_async_func)

    assert mock_async_func.call_count == 2
    assert sleeper.delays == [1.0]

  @pytest.mark.asyncio
  async def test_non_api_exceptions_propagate(self, retry_handler, mock_async_func):
    """Test that exceptions outside the APIError tree are not retried."""
    for exception in [ValueError("Invalid parameter"), KeyError("Missing key")]:
      mock_async_func.reset_mock()
      mock_async_func.side_effect = exception

      with pytest.raises(type(exception)):
        await retry_handler.execute(mock_async_func)

      assert mock_async_func.call_count == 1

  @pytest.mark.asyncio
  async def test_zero_max_retries(self, mock_async_func, sleeper):
    """Test behavior with zero max retries."""
    handler = RetryHandler(RetryPolicy(max_retries=0), sleep=sleeper)
    mock_async_func.side_effect = NetworkError("Connection failed")

    with pytest.raises(NetworkError):
      await handler.execute(mock_async_func)

    assert mock_async_func.call_count == 1
    assert sleeper.delays == []

  @pytest.mark.asyncio
  async def test_kind_not_whitelisted(self, mock_async_func, sleeper):
    """Test that a retryable kind missing from the policy is terminal."""
    handler = RetryHandler(RetryPolicy.of(retryable=["server_error"]), sleep=sleeper)
    mock_async_func.side_effect = NetworkError("Connection failed")

    with pytest.raises(NetworkError):
      await handler.execute(mock_async_func)

    assert mock_async_func.call_count == 1

  @pytest.mark.asyncio
  async def test_real_sleep_is_used_for_backoff(self, mock_async_func):
    """Test that the default sleeper performs real suspensions."""
    handler = RetryHandler(RetryPolicy(max_retries=2, base_delay=0.01))
    mock_async_func.side_effect = [ServerError(500), ServerError(500), "success"]

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await handler.execute(mock_async_func)

    assert result == "success"
    assert loop.time() - started >= 0.03 - 0.005

  @pytest.mark.asyncio
  async def test_cancellation_during_backoff_aborts_call(self, mock_async_func):
    """Test cancelling during a backoff wait stops further attempts."""
    handler = RetryHandler(RetryPolicy(max_retries=3, base_delay=10.0))
    mock_async_func.side_effect = ServerError(500)

    task = asyncio.ensure_future(handler.execute(mock_async_func))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
      await task

    assert mock_async_func.call_count == 1

  @pytest.mark.asyncio
  async def test_concurrent_executions(self, retry_handler):
    """Test multiple concurrent executions share no attempt state."""
    call_counts = {}

    async def flaky(name, fail_count):
      call_counts[name] = call_counts.get(name, 0) + 1
      if call_counts[name] <= fail_count:
        raise NetworkError(f"{name} failed")
      await asyncio.sleep(0)
      return f"success_{name}"

    results = await asyncio.gather(
      retry_handler.execute(flaky, "a", 1),
      retry_handler.execute(flaky, "b", 2),
      retry_handler.execute(flaky, "c", 0),
    )

    assert results == ["success_a", "success_b", "success_c"]
    assert call_counts == {"a": 2, "b": 3, "c": 1}
