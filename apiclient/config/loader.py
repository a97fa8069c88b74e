"""Configuration loader with YAML parsing and environment variable resolution."""

import os
import re
from pathlib import Path
from typing import Any, Union

import yaml

from apiclient.config.models import ClientConfig
from apiclient.exceptions import ConfigurationError

ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')


class ConfigLoader:
  """Loads client configuration files from a directory.

  Files are YAML documents named ``<name>.yaml`` (or ``.yml``); string values
  may reference environment variables as ``${VAR}``.
  """

  def __init__(self, config_dir: Union[str, Path]):
    self.config_dir = Path(config_dir)

  def get_config_file_path(self, config_name: str) -> Path:
    yaml_path = self.config_dir / f"{config_name}.yaml"
    if yaml_path.exists():
      return yaml_path
    yml_path = self.config_dir / f"{config_name}.yml"
    if yml_path.exists():
      return yml_path
    return yaml_path

  def load_config(self, config_name: str = "default") -> ClientConfig:
    """Load configuration from specified file.

    Args:
      config_name: Name of configuration file without extension

    Returns:
      ClientConfig instance with resolved environment variables

    Raises:
      ConfigurationError: If file not found, invalid YAML, or environment variables missing
    """
    config_file = self.get_config_file_path(config_name)

    if not config_file.exists():
      raise ConfigurationError(
        f"Configuration file not found: {config_file}",
        config_file=str(config_file)
      )

    try:
      with open(config_file, 'r', encoding='utf-8') as f:
        config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
      raise ConfigurationError(
        f"Invalid YAML in configuration file: {e}",
        config_file=str(config_file)
      )
    except OSError as e:
      raise ConfigurationError(
        f"Error reading configuration file: {e}",
        config_file=str(config_file)
      )

    if config_dict is None:
      raise ConfigurationError(
        "Configuration file is empty",
        config_file=str(config_file)
      )

    if not isinstance(config_dict, dict):
      raise ConfigurationError(
        "Configuration file must contain a YAML dictionary",
        config_file=str(config_file)
      )

    try:
      resolved_config = self._resolve_environment_variables(config_dict)
    except ConfigurationError as e:
      e.config_file = str(config_file)
      raise e

    return ClientConfig.from_dict(resolved_config, str(config_file))

  def list_available_configs(self) -> list[str]:
    """List configuration names available in the config directory.

    Raises:
      ConfigurationError: If config directory doesn't exist
    """
    if not self.config_dir.exists():
      raise ConfigurationError(
        f"Configuration directory not found: {self.config_dir}"
      )

    if not self.config_dir.is_dir():
      raise ConfigurationError(
        f"Configuration path is not a directory: {self.config_dir}"
      )

    names = set()
    for pattern in ("*.yaml", "*.yml"):
      for file_path in self.config_dir.glob(pattern):
        if file_path.is_file():
          names.add(file_path.stem)

    return sorted(names)

  def _resolve_environment_variables(self, config_dict: dict[str, Any]) -> dict[str, Any]:
    """Resolve ${VAR} patterns in configuration with environment variables.

    Raises:
      ConfigurationError: If a referenced environment variable is not set
    """
    def resolve_value(value: Any, path: str = "") -> Any:
      if isinstance(value, str):
        matches = ENV_VAR_PATTERN.findall(value)
        if not matches:
          return value

        resolved_value = value
        for var_name in matches:
          env_value = os.getenv(var_name)
          if env_value is None:
            error_path = f" at {path}" if path else ""
            raise ConfigurationError(
              f"Environment variable '{var_name}' is not set{error_path}",
              field=path or None,
            )
          resolved_value = resolved_value.replace(f"${{{var_name}}}", env_value)

        return resolved_value

      elif isinstance(value, dict):
        resolved_dict = {}
        for key, val in value.items():
          new_path = f"{path}.{key}" if path else str(key)
          resolved_dict[key] = resolve_value(val, new_path)
        return resolved_dict

      elif isinstance(value, list):
        return [
          resolve_value(item, f"{path}[{i}]" if path else f"[{i}]")
          for i, item in enumerate(value)
        ]

      # int, float, bool, None
      return value

    return resolve_value(config_dict)
