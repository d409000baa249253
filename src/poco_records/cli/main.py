"""Entry point of the poco-records command line client."""

from pathlib import Path
from typing import Optional

import click

from poco_records import __version__
from poco_records.cli.mock_commands import mock_group
from poco_records.cli.patient_commands import patients
from poco_records.config import Config, load_config
from poco_records.logging_audit import configure_logging
from poco_records.logging_audit.logger import configure_operation_logging_from_config
from poco_records.utils.exceptions import ConfigurationError


def _setup_logging(
    config: Config, verbose: bool, log_file: Optional[Path], redact_pii: bool
) -> None:
    """Apply logging settings; command line flags win over the config file."""
    configure_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_file=log_file or config.logging.log_file,
        redact_pii=redact_pii or config.logging.redact_pii,
    )
    if not verbose:
        configure_operation_logging_from_config(config.operation_logging)


@click.group()
@click.version_option(version=__version__, prog_name="poco-records")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact emails, phone numbers, birth dates and names from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """Patient records client.

    Lists, shows, creates, updates and deletes records on a patients REST
    service.

    Examples:

        poco-records patients list --search doe

        poco-records patients create new_patient.json --height-unit imperial

        poco-records --config custom/config.json patients list
    """
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        click.secho(f"Error loading configuration: {e}", fg="red", err=True)
        ctx.exit(1)

    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    _setup_logging(config, verbose, log_file, redact_pii)


cli.add_command(mock_group)
cli.add_command(patients)


def _config_sections(config: Config) -> dict[str, list[tuple[str, object]]]:
    transport = config.transport
    return {
        "API": [
            ("Base URL", config.api.base_url),
            ("Environment", config.api.environment),
        ],
        "Transport": [
            ("Verify TLS", transport.verify_tls),
            ("Timeouts", f"{transport.timeout_connect}s connect, {transport.timeout_read}s read"),
            ("Retries", transport.max_retries),
        ],
        "Pagination": [
            ("Page size", config.pagination.default_page_size),
            ("Debounce", f"{config.pagination.search_debounce_ms} ms"),
        ],
        "Forms": [
            ("Country", config.forms.default_country),
            (
                "Units",
                f"height {config.forms.height_unit.value}, "
                f"weight {config.forms.weight_unit.value}",
            ),
        ],
        "Logging": [
            ("Level", config.logging.level),
            ("Log file", config.logging.log_file),
            ("Redact PII", config.logging.redact_pii),
        ],
    }


@cli.group("config")
def config_group() -> None:
    """Configuration management commands."""


@config_group.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file and print the effective settings.

    Example:
        poco-records config validate config/config.json
    """
    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
    click.echo(f"\nConfiguration file: {config_file}")
    for section, rows in _config_sections(config).items():
        click.echo(f"\n{section}:")
        for label, value in rows:
            click.echo(f"  {label + ':':<13}{value}")


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"poco-records version {__version__}")


if __name__ == "__main__":
    cli()
