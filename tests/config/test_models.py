"""Unit tests for configuration data models."""

import pytest

from apiclient.config.models import ClientConfig, RetrySettings
from apiclient.exceptions import ConfigurationError
from apiclient.http.retry import DEFAULT_POLICY


class TestRetrySettings:
  """Test cases for RetrySettings."""

  def test_defaults_match_default_policy(self):
    assert RetrySettings().to_policy() == DEFAULT_POLICY

  @pytest.mark.parametrize("kwargs,message", [
    ({"max_retries": -1}, "cannot be negative"),
    ({"max_retries": 1.5}, "must be an integer"),
    ({"base_delay": 0}, "positive number"),
    ({"retryable": ["sometimes"]}, "Unknown retryable kind"),
  ])
  def test_invalid_settings(self, kwargs, message):
    with pytest.raises(ConfigurationError, match=message):
      RetrySettings(**kwargs)

  def test_empty_retryable_disables_retries(self):
    policy = RetrySettings(retryable=[]).to_policy()

    assert policy.retryable == frozenset()


class TestClientConfig:
  """Test cases for ClientConfig."""

  def test_defaults(self):
    config = ClientConfig(base_url="https://api.example.com")

    assert config.timeout == 30
    assert config.max_connections == 100
    assert config.headers == {}
    assert config.retry == RetrySettings()

  @pytest.mark.parametrize("base_url", ["", "api.example.com", "/v1"])
  def test_invalid_base_url(self, base_url):
    with pytest.raises(ConfigurationError, match="Base URL"):
      ClientConfig(base_url=base_url)

  def test_invalid_timeout(self):
    with pytest.raises(ConfigurationError, match="Timeout must be positive"):
      ClientConfig(base_url="https://api.example.com", timeout=0)

  def test_invalid_max_connections(self):
    with pytest.raises(ConfigurationError, match="Max connections"):
      ClientConfig(base_url="https://api.example.com", max_connections=0)

  def test_from_dict_stringifies_headers(self):
    config = ClientConfig.from_dict({
      "base_url": "https://api.example.com",
      "headers": {"X-Version": 2},
    })

    assert config.headers == {"X-Version": "2"}

  def test_from_dict_rejects_non_dict_sections(self):
    with pytest.raises(ConfigurationError, match="Retry section"):
      ClientConfig.from_dict({"base_url": "https://api.example.com", "retry": [1]})
    with pytest.raises(ConfigurationError, match="Headers must be a dictionary"):
      ClientConfig.from_dict({"base_url": "https://api.example.com", "headers": ["a"]})
