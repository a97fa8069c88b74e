"""Configuration management for the API client."""

from .loader import ConfigLoader
from .models import ClientConfig, RetrySettings

__all__ = ["ConfigLoader", "ClientConfig", "RetrySettings"]
