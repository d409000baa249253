"""CLI commands for the mock patients service."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import requests

from poco_records.mock_server.app import run_server
from poco_records.mock_server.config import load_mock_config

logger = logging.getLogger(__name__)


def format_uptime(seconds: int) -> str:
    """Format uptime in human-readable format.

    Example:
        >>> format_uptime(3725)
        '1h 2m 5s'
    """
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@click.group(name="mock")
def mock_group():
    """Run the mock patients service.

    The mock service provides:
    - /health - Health check endpoint
    - /api/v1/patients - In-memory patients resource
    """


@mock_group.command(name="start")
@click.option("--host", default=None, help="Host address (overrides config file)")
@click.option("--port", type=int, help="Server port (overrides config file)")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (default: mocks/config.json)",
)
@click.option("--debug", is_flag=True, help="Enable debug mode")
def start_server(
    host: Optional[str], port: Optional[int], config: Optional[Path], debug: bool
):
    """Start the mock patients service in the foreground.

    Examples:

        # Start on the configured port\n
        poco-records mock start

        # Start on a custom port\n
        poco-records mock start --port 9090
    """
    try:
        mock_config = load_mock_config(config)
    except (ValueError, FileNotFoundError) as e:
        click.secho(f"Error loading mock configuration: {e}", fg="red", err=True)
        sys.exit(1)

    try:
        run_server(host=host, port=port, config=mock_config, debug=debug)
    except OSError as e:
        click.secho(f"Could not start mock server: {e}", fg="red", err=True)
        logger.error(f"Mock server failed to start: {e}")
        sys.exit(1)


@mock_group.command(name="status")
@click.option(
    "--url",
    default="http://127.0.0.1:8080",
    show_default=True,
    help="Base URL of the mock service",
)
@click.option("--json", "output_json", is_flag=True, help="Output status as JSON")
def server_status(url: str, output_json: bool):
    """Query the health endpoint of a running mock service."""
    health_url = f"{url.rstrip('/')}/health"
    try:
        response = requests.get(health_url, timeout=5)
        health_data = response.json() if response.status_code == 200 else {}
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"Health check failed: {e}")
        health_data = {}

    if not health_data:
        if output_json:
            click.echo(json.dumps({"running": False}))
        else:
            click.echo("Mock Server Status")
            click.echo("=" * 50)
            click.echo("Status: Stopped")
            click.echo("")
            click.echo("Start the server with: poco-records mock start")
        sys.exit(1)

    if output_json:
        click.echo(json.dumps(dict(health_data, running=True), indent=2))
    else:
        click.echo("Mock Server Status")
        click.echo("=" * 50)
        click.echo("Status: Running ✓")
        click.echo(f"URL: {url}")
        click.echo(f"Uptime: {format_uptime(int(health_data.get('uptime_seconds', 0)))}")
        click.echo(f"Patients: {health_data.get('patient_count', 0)}")
        click.echo(f"Requests Handled: {health_data.get('request_count', 0)}")
        click.echo("")
        click.echo("Available Endpoints:")
        for endpoint in health_data.get("endpoints", []):
            click.echo(f"  - {endpoint}")
