"""Command-line interface for invoking Okta operations."""

import asyncio
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from okta_connector.clients.dispatch import DispatchClient, format_value
from okta_connector.clients.exceptions import (
    ApiError,
    ConfigurationError,
    OktaConnectorError,
)
from okta_connector.config.loader import ConfigLoader, find_config_file
from okta_connector.config.models import ConnectorSettings
from okta_connector.operations.catalogue import BASE_URI, build_default_registry
from okta_connector.operations.descriptor import FROM_BODY, OperationDescriptor
from okta_connector.retry import with_retry
from okta_connector.security.validation import mask_secret, sanitize_log_input

app = typer.Typer(
    name="okta-connector",
    help="Invoke Okta Users and Sessions API operations.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)
logger = structlog.get_logger(__name__)

# Canonical decimal integers only; "00123" or "²" stay text
INTEGER_PATTERN = re.compile(r"0|[1-9][0-9]*")


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Setup structured logging.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json or text).
    """
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level.upper())

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format.lower() == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_settings(config_file: Optional[Path] = None) -> ConnectorSettings:
    """Load settings from a YAML file, or from the environment when none is found.

    Raises:
        typer.Exit: If configuration loading fails
    """
    try:
        if config_file is None:
            config_file = find_config_file()
        if config_file is None:
            return ConnectorSettings.from_env()
        return ConfigLoader().load_config(config_file)
    except (ConfigurationError, ValueError) as e:
        err_console.print(f"[red]Error loading configuration: {sanitize_log_input(str(e))}[/red]")
        raise typer.Exit(1)


def parse_arguments(pairs: List[str]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs. ``true``/``false`` and canonical integers become bool/int."""
    arguments: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--arg")
        if value.lower() in ("true", "false"):
            arguments[key] = value.lower() == "true"
        elif INTEGER_PATTERN.fullmatch(value):
            arguments[key] = int(value)
        else:
            arguments[key] = value
    return arguments


def read_body(body: Optional[str]) -> Optional[str]:
    """``@path`` reads the payload from a file, ``-`` from stdin."""
    if body is None:
        return None
    if body == "-":
        return sys.stdin.read()
    if body.startswith("@"):
        return Path(body[1:]).read_text(encoding="utf-8")
    return body


def _describe_arguments(descriptor: OperationDescriptor) -> str:
    parts = []
    for param in descriptor.path_params:
        parts.append(f"{param.name}*" if param.default is not FROM_BODY else f"{param.name} (body)")
    for param in descriptor.query_params:
        if param.has_default:
            parts.append(f"{param.name}={format_value(param.default)}")
        else:
            parts.append(f"[{param.name}]")
    if descriptor.body_argument:
        parts.append(f"<{descriptor.body_argument}>")
    return ", ".join(parts)


@app.command()
def operations() -> None:
    """List the operations the connector can invoke."""
    for descriptor in build_default_registry():
        path = descriptor.uri_template.replace(BASE_URI, "", 1)
        console.print(
            f"[cyan]{descriptor.name:<24}[/cyan]{descriptor.method.value:<7}{path}"
            f"  [dim]{_describe_arguments(descriptor)}[/dim]",
            soft_wrap=True,
            highlight=False,
        )


@app.command()
def invoke(
    name: str = typer.Argument(..., help="Operation name, e.g. getUser"),
    arg: List[str] = typer.Option([], "--arg", "-a", help="Argument as key=value (repeatable)"),
    body: Optional[str] = typer.Option(
        None, "--body", "-b", help="Request payload: JSON text, @file, or - for stdin"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file"
    ),
    retries: int = typer.Option(0, "--retries", min=0, help="Retry transient failures N times"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the request instead of sending it"),
) -> None:
    """Invoke one operation and print the raw response body."""
    settings = load_settings(config_file)
    setup_logging(settings.logging.level, settings.logging.format)

    arguments = parse_arguments(arg)
    payload = read_body(body)

    async def run() -> str:
        async with DispatchClient(settings.okta) as client:
            if dry_run:
                request = client.build_request(name, arguments, payload=payload)
                return f"{request.method} {request.url}"
            return await with_retry(
                name,
                lambda: client.invoke(name, arguments, payload=payload),
                max_retries=retries,
            )

    try:
        result = asyncio.run(run())
    except ApiError as e:
        message = f"{name} failed with status {e.status_code}"
        if e.error_summary:
            message += f": {e.error_summary}"
        err_console.print(f"[red]{escape(sanitize_log_input(message))}[/red]")
        typer.echo(e.response_text)
        raise typer.Exit(1)
    except OktaConnectorError as e:
        err_console.print(f"[red]{escape(sanitize_log_input(str(e)))}[/red]")
        raise typer.Exit(1)

    typer.echo(result)


@app.command()
def validate(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file"
    ),
) -> None:
    """Validate configuration and show a summary."""
    settings = load_settings(config_file)
    okta = settings.okta
    token = okta.authorization_header.split(" ", 1)[1]

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("host", okta.host)
    table.add_row("api_version", okta.api_version)
    table.add_row("api_token", f"SSWS {mask_secret(token)}")
    table.add_row("timeout_seconds", str(okta.timeout_seconds))
    table.add_row("rate_limit_per_minute", str(okta.rate_limit_per_minute))
    table.add_row("base_url", okta.base_url)
    table.add_row("logging", json.dumps(settings.logging.model_dump()))
    console.print(table)
    console.print("[green]✓ Configuration is valid[/green]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
