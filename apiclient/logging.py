"""Structured logging support for the API client."""

import logging
import os
import sys
from typing import Any, Dict, Mapping, Optional

import structlog


class SensitiveDataFilter:
  """Filter to prevent credentials from being logged."""

  SENSITIVE_KEYS = {
    "api_key", "api_token", "authorization", "bearer", "password", "secret",
    "token", "auth", "credential", "x_api_key", "cookie", "set_cookie",
  }

  @classmethod
  def filter_sensitive_data(cls, data: Any) -> Any:
    """Recursively filter sensitive data from mappings and sequences.

    Args:
      data: Data structure to filter

    Returns:
      Filtered data structure with sensitive values replaced
    """
    if isinstance(data, Mapping):
      filtered = {}
      for key, value in data.items():
        if isinstance(key, str) and cls._is_sensitive_key(key):
          filtered[key] = cls._mask_sensitive_value(value)
        else:
          filtered[key] = cls.filter_sensitive_data(value)
      return filtered
    elif isinstance(data, list):
      return [cls.filter_sensitive_data(item) for item in data]
    elif isinstance(data, tuple):
      return tuple(cls.filter_sensitive_data(item) for item in data)
    else:
      return data

  @classmethod
  def _is_sensitive_key(cls, key: str) -> bool:
    key_lower = key.lower().replace("-", "_").replace(" ", "_")
    return any(sensitive in key_lower for sensitive in cls.SENSITIVE_KEYS)

  @classmethod
  def _mask_sensitive_value(cls, value: Any) -> str:
    if value is None:
      return "[NONE]"

    value_str = str(value)
    if len(value_str) <= 8:
      return "[REDACTED]"
    # First and last four characters stay visible
    return f"{value_str[:4]}...{value_str[-4:]}"


def configure_logging(
  debug_mode: bool = False,
  log_level: Optional[str] = None,
  log_file: Optional[str] = None,
  structured: bool = True,
) -> None:
  """Configure structured logging for the API client.

  Args:
    debug_mode: Enable debug mode with detailed logging
    log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    log_file: Optional file path for log output
    structured: Use structured JSON logging format
  """
  if log_level:
    level = getattr(logging, log_level.upper(), logging.INFO)
  elif debug_mode:
    level = logging.DEBUG
  else:
    level = logging.INFO

  processors = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    _add_process_context,
    _filter_sensitive_processor,
  ]

  if structured:
    processors.append(structlog.processors.JSONRenderer())
  else:
    processors.append(structlog.dev.ConsoleRenderer())

  structlog.configure(
    processors=processors,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
  )

  handlers = []

  console_handler = logging.StreamHandler(sys.stderr)
  console_handler.setLevel(level)
  handlers.append(console_handler)

  if log_file:
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    handlers.append(file_handler)

  logging.basicConfig(
    level=level,
    handlers=handlers,
    format="%(message)s" if structured else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,
  )

  logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _add_process_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  event_dict["process_id"] = os.getpid()
  return event_dict


def _filter_sensitive_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  return SensitiveDataFilter.filter_sensitive_data(event_dict)


class APILogger:
  """Logger for request pipeline events with bound context."""

  def __init__(self, name: str, **context: Any):
    """Initialize API logger with context.

    Args:
      name: Logger name
      **context: Context bound to every event
    """
    self.name = name
    self.context = dict(context)
    self.logger = structlog.get_logger(name)
    if self.context:
      self.logger = self.logger.bind(**self.context)

  def bind(self, **kwargs: Any) -> "APILogger":
    """Return a new logger with additional bound context."""
    return APILogger(self.name, **{**self.context, **kwargs})

  def debug(self, message: str, **kwargs: Any) -> None:
    self.logger.debug(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def info(self, message: str, **kwargs: Any) -> None:
    self.logger.info(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def warning(self, message: str, **kwargs: Any) -> None:
    self.logger.warning(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def error(self, message: str, **kwargs: Any) -> None:
    self.logger.error(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def log_request(
    self,
    method: str,
    url: str,
    attempt: int,
    headers: Optional[Mapping[str, str]] = None,
    body_size: int = 0,
    **kwargs: Any
  ) -> None:
    """Log an outgoing request attempt.

    Args:
      method: HTTP method
      url: Absolute request URL
      attempt: Zero-based attempt index
      headers: Request headers (filtered for credentials)
      body_size: Size of the request body in bytes
      **kwargs: Additional context
    """
    context = {
      "event_type": "api_request",
      "method": method,
      "url": url,
      "attempt": attempt,
      "body_size": body_size,
      **kwargs
    }

    if headers and is_debug_enabled():
      context["headers"] = dict(headers)

    self.debug("API request dispatched", **context)

  def log_response(
    self,
    status_code: int,
    url: str,
    latency_ms: int,
    attempt: int,
    body_size: int = 0,
    **kwargs: Any
  ) -> None:
    """Log a received response; statuses >= 400 are logged as warnings."""
    context = {
      "event_type": "api_response",
      "status_code": status_code,
      "url": url,
      "latency_ms": latency_ms,
      "attempt": attempt,
      "body_size": body_size,
      **kwargs
    }

    if status_code >= 400:
      self.warning("API request returned error status", **context)
    else:
      self.info("API request completed", **context)

  def log_retry(
    self,
    attempt: int,
    delay: float,
    error: BaseException,
    **kwargs: Any
  ) -> None:
    """Log a scheduled retry.

    Args:
      attempt: Index of the attempt about to be made
      delay: Backoff delay in seconds before that attempt
      error: Error that triggered the retry
      **kwargs: Additional context
    """
    context = {
      "event_type": "api_retry",
      "attempt": attempt,
      "delay_seconds": delay,
      "error_type": type(error).__name__,
      "error": str(error),
      **kwargs
    }

    self.warning("Retrying API request", **context)


def get_api_logger(name: str, **context: Any) -> APILogger:
  return APILogger(name, **context)


def is_debug_enabled() -> bool:
  return logging.getLogger().isEnabledFor(logging.DEBUG)
