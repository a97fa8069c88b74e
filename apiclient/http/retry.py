"""Retry policy and exponential backoff loop for API requests."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, FrozenSet, Iterable, Optional, TypeVar

from apiclient.exceptions import APIError, ConfigurationError, NetworkError, ServerError
from apiclient.logging import get_api_logger

T = TypeVar('T')

Sleeper = Callable[[float], Awaitable[Any]]

logger = get_api_logger(__name__)


class RetryableKind(str, Enum):
  NETWORK_ERROR = "network_error"
  SERVER_ERROR = "server_error"
  # Part of the policy vocabulary; transport timeouts surface as NetworkError.
  TIMEOUT = "timeout"


ALL_RETRYABLE_KINDS = frozenset(RetryableKind)


@dataclass(frozen=True)
class RetryPolicy:
  """Immutable retry configuration.

  Attributes:
    max_retries: Additional attempts after the first one
    base_delay: Delay in seconds before the first retry
    retryable: Failure kinds that qualify for another attempt
  """

  max_retries: int = 3
  base_delay: float = 1.0
  retryable: FrozenSet[RetryableKind] = field(default=ALL_RETRYABLE_KINDS)

  DEFAULT: ClassVar["RetryPolicy"]
  NONE: ClassVar["RetryPolicy"]

  def __post_init__(self):
    if self.max_retries < 0:
      raise ConfigurationError("Max retries cannot be negative", field="max_retries")
    if self.base_delay <= 0:
      raise ConfigurationError("Base delay must be positive", field="base_delay")
    object.__setattr__(self, "retryable", frozenset(RetryableKind(k) for k in self.retryable))

  @classmethod
  def of(
    cls,
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: Optional[Iterable[Any]] = None,
  ) -> "RetryPolicy":
    """Build a policy accepting kind names such as ``"server_error"``."""
    kinds = ALL_RETRYABLE_KINDS if retryable is None else frozenset(RetryableKind(k) for k in retryable)
    return cls(max_retries=max_retries, base_delay=base_delay, retryable=kinds)

  @property
  def max_attempts(self) -> int:
    return self.max_retries + 1

  def delay(self, attempt: int) -> float:
    """Backoff delay before ``attempt`` (1-based retry index).

    Args:
      attempt: Attempt index, 1 for the first retry

    Returns:
      ``base_delay * 2 ** (attempt - 1)`` seconds
    """
    return self.base_delay * (2.0 ** (attempt - 1))

  def should_retry(self, error: BaseException) -> bool:
    """Determine if an error is eligible for another attempt under this policy."""
    if isinstance(error, NetworkError):
      return RetryableKind.NETWORK_ERROR in self.retryable
    if isinstance(error, ServerError):
      return RetryableKind.SERVER_ERROR in self.retryable
    return False


RetryPolicy.DEFAULT = RetryPolicy()
RetryPolicy.NONE = RetryPolicy(max_retries=0, retryable=frozenset())

DEFAULT_POLICY = RetryPolicy.DEFAULT
NO_RETRY_POLICY = RetryPolicy.NONE


class RetryHandler:
  """Drives attempts of an async operation under a RetryPolicy."""

  def __init__(
    self,
    policy: RetryPolicy = DEFAULT_POLICY,
    sleep: Sleeper = asyncio.sleep,
  ):
    """Initialize retry handler.

    Args:
      policy: Retry policy bounding attempts and eligible failures
      sleep: Awaitable used for backoff waits
    """
    self.policy = policy
    self.sleep = sleep

  async def execute(
    self,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any
  ) -> T:
    """Execute function with retry logic on transient failures.

    Args:
      func: Async function to execute
      *args: Positional arguments to pass to function
      **kwargs: Keyword arguments to pass to function

    Returns:
      Result of the first successful attempt

    Raises:
      APIError: The first non-retryable error, or the last error once the
        retry budget is exhausted
      Exception: Anything that is not an APIError is re-raised immediately
    """
    max_retries = self.policy.max_retries
    attempt = 0

    while True:
      try:
        return await func(*args, **kwargs)
      except APIError as e:
        if not self.policy.should_retry(e):
          logger.error(
            "API request failed with non-retryable error",
            attempt=attempt,
            error_type=type(e).__name__,
            error=str(e),
          )
          raise

        if attempt == max_retries:
          logger.error(
            "API request retries exhausted",
            attempt=attempt,
            max_retries=max_retries,
            error_type=type(e).__name__,
            error=str(e),
          )
          raise

        attempt += 1
        delay = self.policy.delay(attempt)
        logger.log_retry(attempt, delay, e, max_retries=max_retries)

      # Cancellation here aborts the call before the next attempt is made
      await self.sleep(delay)
