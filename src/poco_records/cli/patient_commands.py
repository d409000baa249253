"""Patient CLI commands.

This module provides list/show/create/update/delete commands against the
configured patients service. Form files are JSON objects keyed by form field
name (first_name, date_of_birth, postal_code, ...).
"""

import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

import click

from poco_records.api.patients import PatientApi
from poco_records.config.schema import Config
from poco_records.models.patient import Gender, PaginatedPatients, Patient, UnitSystem
from poco_records.models.responses import MutationOutcome, MutationStatus
from poco_records.mutations import MutationOrchestrator, PatientForm, RecordingNavigator
from poco_records.query import PatientRecordQuery, QueryCache
from poco_records.transport import RequestGateway, RequestsExecutor, get_default_session
from poco_records.utils.exceptions import GatewayError, InvalidInputError

logger = logging.getLogger(__name__)

UNIT_CHOICE = click.Choice([unit.value for unit in UnitSystem])


class ClickNotifier:
    """Notifier that prints notifications to the terminal."""

    def success(self, message: str) -> None:
        click.secho(message, fg="green")

    def error(self, message: str) -> None:
        click.secho(f"Error: {message}", fg="red", err=True)


def _get_config(ctx: click.Context) -> Config:
    return ctx.obj.get("config") or Config()


def _get_api(ctx: click.Context) -> PatientApi:
    """Build the resource client once per invocation.

    An executor placed in ``ctx.obj["executor"]`` is used instead of the
    HTTP executor built from configuration.
    """
    if "api" not in ctx.obj:
        config = _get_config(ctx)
        executor = ctx.obj.get("executor") or RequestsExecutor.from_config(config)
        session = get_default_session()
        if session.get_token() is None:
            session.load_from_env(config.auth.token_env_var)
        gateway = RequestGateway(executor, session.token_provider())
        ctx.obj["api"] = PatientApi(gateway)
    return ctx.obj["api"]


def _get_cache(ctx: click.Context) -> QueryCache:
    return ctx.obj.setdefault("cache", QueryCache())


def _coerce_form_value(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name == "date_of_birth":
        return date.fromisoformat(str(value))
    if name == "gender":
        return Gender(str(value).lower())
    if name in ("height", "weight"):
        return float(value)
    return value


def load_form_values(form_file: Path) -> dict[str, Any]:
    """Read a JSON form file into typed form values.

    Raises:
        InvalidInputError: If the file is not a JSON object or a value cannot
            be converted
    """
    try:
        with open(form_file, encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidInputError(
            f"Invalid JSON in form file {form_file}: {e.msg} at line {e.lineno}"
        ) from e
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"Form file {form_file} is not valid UTF-8") from e

    if not isinstance(raw, dict):
        raise InvalidInputError(f"Form file {form_file} must contain a JSON object")

    values: dict[str, Any] = {}
    for name, value in raw.items():
        try:
            values[name] = _coerce_form_value(name, value)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid value for {name}: {value!r}") from e
    return values


def _apply_units(
    form: PatientForm,
    values: dict[str, Any],
    height_unit: Optional[str],
    weight_unit: Optional[str],
) -> None:
    """Set the display unit of each measurement the form file supplies.

    A unit flag is ignored for a measurement missing from the file, so a
    value prefilled from the stored record stays in centimeters or kilograms.
    """
    if height_unit and values.get("height") is not None:
        form.set_height_unit(UnitSystem(height_unit))
    if weight_unit and values.get("weight") is not None:
        form.set_weight_unit(UnitSystem(weight_unit))


def _apply_values(form: PatientForm, values: dict[str, Any]) -> None:
    for name, value in values.items():
        try:
            form.set_value(name, value)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e


def _report_outcome(outcome: MutationOutcome) -> None:
    """Print field errors and exit non-zero for any unsuccessful outcome."""
    if outcome.is_success:
        if outcome.patient is not None:
            click.echo(f"ID: {outcome.patient.id}")
        return

    if outcome.status in (MutationStatus.CLIENT_INVALID, MutationStatus.SERVER_INVALID):
        source = "server" if outcome.status == MutationStatus.SERVER_INVALID else "form"
        click.secho(f"Validation failed ({source}):", fg="red", err=True)
        for field, message in sorted(outcome.field_errors.items()):
            click.secho(f"  {field}: {message}", fg="red", err=True)
    sys.exit(1)


def _format_page(page: PaginatedPatients) -> str:
    lines = [
        f"Page {page.current_page} of {page.total_pages} "
        f"({page.total_count} patients)",
        "",
    ]
    if not page.patients:
        lines.append("No patients found")
    for patient in page.patients:
        lines.append(
            f"{patient.id:<38} {patient.full_name:<32} "
            f"{patient.date_of_birth.isoformat()}  {patient.gender.value}"
        )
    return "\n".join(lines)


def _format_patient(patient: Patient) -> str:
    lines = [
        f"ID:            {patient.id}",
        f"Name:          {patient.full_name}",
        f"Date of birth: {patient.date_of_birth.isoformat()} (age {patient.age()})",
        f"Gender:        {patient.gender.value}",
        f"Email:         {patient.email}",
        f"Phone:         {patient.phone_number}",
    ]
    if patient.address is not None:
        a = patient.address
        lines.append(
            f"Address:       {a.street}, {a.city}, {a.state} {a.postal_code}, {a.country}"
        )
    if patient.height is not None:
        lines.append(f"Height:        {patient.height} cm")
    if patient.weight is not None:
        lines.append(f"Weight:        {patient.weight} kg")
    return "\n".join(lines)


@click.group()
def patients() -> None:
    """Patient record operations."""
    pass


@patients.command("list")
@click.option("--page", type=click.IntRange(min=1), default=1, help="1-based page number")
@click.option(
    "--page-size",
    type=click.IntRange(min=1),
    default=None,
    help="Rows per page (default: pagination.default_page_size)",
)
@click.option("--search", default="", help="Search text")
@click.option("--json", "json_output", is_flag=True, help="Output the page as JSON")
@click.pass_context
def list_command(
    ctx: click.Context,
    page: int,
    page_size: Optional[int],
    search: str,
    json_output: bool,
) -> None:
    """List patients, one page at a time.

    Examples:

        poco-records patients list

        poco-records patients list --search doe --page 2
    """
    config = _get_config(ctx)
    size = page_size or config.pagination.default_page_size
    if size > config.pagination.max_page_size:
        click.secho(
            f"Page size {size} exceeds maximum {config.pagination.max_page_size}",
            fg="red",
            err=True,
        )
        sys.exit(1)

    try:
        result = _get_api(ctx).list_patients(page=page, page_size=size, search=search.strip())
    except GatewayError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        logger.error(f"Listing patients failed: {e}")
        sys.exit(1)

    if json_output:
        payload = {
            "patients": [
                {"id": p.id, "name": p.full_name, "dateOfBirth": p.date_of_birth.isoformat()}
                for p in result.patients
            ],
            "totalCount": result.total_count,
            "currentPage": result.current_page,
            "pageSize": result.page_size,
            "totalPages": result.total_pages,
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(_format_page(result))


@patients.command("show")
@click.argument("patient_id")
@click.pass_context
def show_command(ctx: click.Context, patient_id: str) -> None:
    """Show one patient record."""
    query = PatientRecordQuery(_get_api(ctx), _get_cache(ctx))
    try:
        patient = query.get(patient_id)
    except GatewayError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)
    click.echo(_format_patient(patient))


def _unit_options(func):
    func = click.option(
        "--weight-unit", type=UNIT_CHOICE, default=None, help="Unit of the weight in the form file"
    )(func)
    func = click.option(
        "--height-unit", type=UNIT_CHOICE, default=None, help="Unit of the height in the form file"
    )(func)
    return func


def _orchestrator(ctx: click.Context) -> MutationOrchestrator:
    return MutationOrchestrator(
        _get_api(ctx), _get_cache(ctx), RecordingNavigator(), ClickNotifier()
    )


@patients.command("create")
@click.argument("form_file", type=click.Path(exists=True, path_type=Path))
@_unit_options
@click.pass_context
def create_command(
    ctx: click.Context,
    form_file: Path,
    height_unit: Optional[str],
    weight_unit: Optional[str],
) -> None:
    """Create a patient from a JSON form file.

    Example:

        poco-records patients create new_patient.json --weight-unit imperial
    """
    config = _get_config(ctx)
    try:
        form = PatientForm.from_config(config.forms)
        values = load_form_values(form_file)
        _apply_values(form, values)
    except InvalidInputError as e:
        click.secho(f"Invalid form file: {e}", fg="red", err=True)
        sys.exit(1)
    _apply_units(form, values, height_unit, weight_unit)

    _report_outcome(_orchestrator(ctx).create(form))


@patients.command("update")
@click.argument("patient_id")
@click.argument("form_file", type=click.Path(exists=True, path_type=Path))
@_unit_options
@click.pass_context
def update_command(
    ctx: click.Context,
    patient_id: str,
    form_file: Path,
    height_unit: Optional[str],
    weight_unit: Optional[str],
) -> None:
    """Update a patient with values from a JSON form file.

    The stored record is loaded first; fields missing from the file keep
    their current values.
    """
    try:
        values = load_form_values(form_file)
    except InvalidInputError as e:
        click.secho(f"Invalid form file: {e}", fg="red", err=True)
        sys.exit(1)

    query = PatientRecordQuery(_get_api(ctx), _get_cache(ctx))
    try:
        form = PatientForm.from_patient(query.get(patient_id))
    except GatewayError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)

    try:
        _apply_values(form, values)
    except InvalidInputError as e:
        click.secho(f"Invalid form file: {e}", fg="red", err=True)
        sys.exit(1)
    _apply_units(form, values, height_unit, weight_unit)

    _report_outcome(_orchestrator(ctx).update(patient_id, form))


@patients.command("delete")
@click.argument("patient_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_command(ctx: click.Context, patient_id: str, yes: bool) -> None:
    """Delete a patient."""
    if not yes:
        click.confirm(f"Delete patient {patient_id}?", abort=True)
    _report_outcome(_orchestrator(ctx).delete(patient_id))
