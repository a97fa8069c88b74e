"""Command-line interface for sending a single API request."""

import asyncio
import json
import sys
from typing import Any, List, Optional, Tuple

import click

from apiclient.client import APIClient
from apiclient.config import ClientConfig, ConfigLoader, RetrySettings
from apiclient.endpoint import Endpoint, HTTPMethod
from apiclient.exceptions import APIError, ConfigurationError
from apiclient.logging import configure_logging


def _parse_query(values: Tuple[str, ...]) -> List[Tuple[str, str]]:
  pairs = []
  for value in values:
    name, sep, item = value.partition("=")
    if not sep or not name:
      raise click.BadParameter(f"expected NAME=VALUE, got {value!r}", param_hint="--query")
    pairs.append((name, item))
  return pairs


def _parse_headers(values: Tuple[str, ...]) -> dict:
  headers = {}
  for value in values:
    name, sep, item = value.partition(":")
    if not sep or not name.strip():
      raise click.BadParameter(f"expected 'Name: value', got {value!r}", param_hint="--header")
    headers[name.strip()] = item.strip()
  return headers


def _load_config(
  base_url: Optional[str],
  config_dir: Optional[str],
  config_name: str,
  max_retries: Optional[int],
  base_delay: Optional[float],
  timeout: Optional[float],
) -> ClientConfig:
  if config_dir:
    config = ConfigLoader(config_dir).load_config(config_name)
  elif base_url:
    config = ClientConfig(base_url=base_url)
  else:
    raise click.UsageError("Either --base-url or --config-dir is required")

  if base_url:
    config.base_url = base_url
  if timeout is not None:
    config.timeout = timeout
  if max_retries is not None or base_delay is not None:
    config.retry = RetrySettings(
      max_retries=config.retry.max_retries if max_retries is None else max_retries,
      base_delay=config.retry.base_delay if base_delay is None else base_delay,
      retryable=config.retry.retryable,
    )
  return config


async def _send(config: ClientConfig, endpoint: Endpoint) -> Any:
  async with APIClient.from_config(config) as client:
    return await client.send(endpoint, Any)


@click.command()
@click.argument("path")
@click.option("--base-url", help="Base URL of the API, overrides the configured one")
@click.option(
  "--config-dir",
  type=click.Path(exists=True, file_okay=False),
  help="Directory containing client configuration files",
)
@click.option(
  "--config",
  "config_name",
  default="default",
  help="Configuration to use (filename without .yaml, defaults to 'default')",
)
@click.option(
  "--method",
  "-X",
  type=click.Choice([m.value for m in HTTPMethod], case_sensitive=False),
  default="GET",
  help="HTTP method",
)
@click.option("--query", "-q", multiple=True, help="Query parameter as NAME=VALUE, repeatable")
@click.option("--header", "-H", multiple=True, help="Header as 'Name: value', repeatable")
@click.option("--data", "-d", help="JSON request body")
@click.option("--max-retries", type=click.IntRange(min=0), help="Override retry budget")
@click.option("--base-delay", type=click.FloatRange(min=0, min_open=True), help="Override backoff base delay in seconds")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Request timeout in seconds")
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def main(
  path,
  base_url,
  config_dir,
  config_name,
  method,
  query,
  header,
  data,
  max_retries,
  base_delay,
  timeout,
  verbose,
):
  """Send one request to PATH and print the decoded JSON response."""
  configure_logging(
    debug_mode=verbose,
    log_level=None if verbose else "WARNING",
    structured=False,
  )

  try:
    config = _load_config(base_url, config_dir, config_name, max_retries, base_delay, timeout)
  except ConfigurationError as e:
    raise click.ClickException(str(e))

  body = None
  if data is not None:
    try:
      json.loads(data)
    except ValueError as e:
      raise click.BadParameter(f"invalid JSON: {e}", param_hint="--data")
    body = data.encode("utf-8")

  endpoint = Endpoint(
    path=path,
    method=method,
    headers=_parse_headers(header) or None,
    query=_parse_query(query) or None,
    body=body,
  )

  try:
    result = asyncio.run(_send(config, endpoint))
  except APIError as e:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)

  click.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
  main()
