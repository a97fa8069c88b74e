"""Data models for API client configuration."""

from dataclasses import dataclass, field
from typing import Any, Optional

from yarl import URL

from apiclient.exceptions import ConfigurationError
from apiclient.http.retry import RetryableKind, RetryPolicy


@dataclass
class RetrySettings:
    """Retry section of a client configuration."""

    max_retries: int = 3
    base_delay: float = 1.0
    retryable: list[str] = field(
        default_factory=lambda: [kind.value for kind in RetryableKind]
    )

    def __post_init__(self):
        """Validate retry settings after initialization."""
        if not isinstance(self.max_retries, int) or isinstance(self.max_retries, bool):
            raise ConfigurationError(
                "Max retries must be an integer", field="retry.max_retries"
            )

        if self.max_retries < 0:
            raise ConfigurationError(
                "Max retries cannot be negative", field="retry.max_retries"
            )

        if not isinstance(self.base_delay, (int, float)) or self.base_delay <= 0:
            raise ConfigurationError(
                "Base delay must be a positive number", field="retry.base_delay"
            )

        valid = {kind.value for kind in RetryableKind}
        for kind in self.retryable:
            if kind not in valid:
                raise ConfigurationError(
                    f"Unknown retryable kind '{kind}'. Valid kinds: {sorted(valid)}",
                    field="retry.retryable",
                )

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy.of(
            max_retries=self.max_retries,
            base_delay=float(self.base_delay),
            retryable=self.retryable,
        )


@dataclass
class ClientConfig:
    """Complete configuration for one API client."""

    base_url: str
    timeout: float = 30
    max_connections: int = 100
    headers: dict[str, str] = field(default_factory=dict)
    retry: RetrySettings = field(default_factory=RetrySettings)

    def __post_init__(self):
        """Validate client configuration after initialization."""
        if not self.base_url:
            raise ConfigurationError("Base URL cannot be empty", field="base_url")

        url = URL(self.base_url)
        if not url.is_absolute() or not url.host:
            raise ConfigurationError(
                f"Base URL must be absolute: {self.base_url}", field="base_url"
            )

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive", field="timeout")

        if self.max_connections <= 0:
            raise ConfigurationError(
                "Max connections must be positive", field="max_connections"
            )

        if not isinstance(self.headers, dict):
            raise ConfigurationError("Headers must be a dictionary", field="headers")

    @classmethod
    def from_dict(
        cls, config_dict: dict[str, Any], config_file: Optional[str] = None
    ) -> "ClientConfig":
        """Create ClientConfig from dictionary.

        Args:
          config_dict: Configuration dictionary
          config_file: Source file path for error reporting

        Returns:
          ClientConfig instance

        Raises:
          ConfigurationError: If configuration is invalid
        """
        if "base_url" not in config_dict:
            raise ConfigurationError(
                "Missing required field 'base_url'",
                config_file=config_file,
                field="base_url",
            )

        retry_dict = config_dict.get("retry") or {}
        if not isinstance(retry_dict, dict):
            raise ConfigurationError(
                "Retry section must be a dictionary",
                config_file=config_file,
                field="retry",
            )

        headers = config_dict.get("headers") or {}
        if not isinstance(headers, dict):
            raise ConfigurationError(
                "Headers must be a dictionary",
                config_file=config_file,
                field="headers",
            )

        try:
            retry = RetrySettings(**retry_dict)
            return cls(
                base_url=config_dict["base_url"],
                timeout=config_dict.get("timeout", 30),
                max_connections=config_dict.get("max_connections", 100),
                headers={str(k): str(v) for k, v in headers.items()},
                retry=retry,
            )
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid configuration field: {e}", config_file=config_file
            ) from e
        except ConfigurationError as e:
            e.config_file = config_file
            raise
