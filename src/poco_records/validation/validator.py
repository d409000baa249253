"""Client-side validation for patient forms.

Every field has an ordered list of rules; the first failing rule supplies the
field's message. All fields are always checked so the user sees every problem
at once. An empty result means the form may be submitted.
"""

import re
from datetime import date
from typing import Any, Callable, Optional

from poco_records.codec.units import wire_height, wire_weight
from poco_records.logging_audit import get_logger
from poco_records.models.patient import DisplayUnits, Gender, PatientFormData
from poco_records.utils.exceptions import ClientValidationError

logger = get_logger(__name__)

# Validation regex patterns
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")

# Bounds on the rounded wire values (exclusive lower, inclusive upper)
MAX_HEIGHT_CM = 300
MAX_WEIGHT_KG = 500

Rule = Callable[[PatientFormData, DisplayUnits, date], Optional[str]]


def _required(field: str, message: str) -> Rule:
    def rule(form: PatientFormData, units: DisplayUnits, today: date) -> Optional[str]:
        value: Any = getattr(form, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return message
        return None

    return rule


def _matches(field: str, pattern: re.Pattern[str], message: str) -> Rule:
    def rule(form: PatientFormData, units: DisplayUnits, today: date) -> Optional[str]:
        value = (getattr(form, field) or "").strip()
        if value and not pattern.match(value):
            return message
        return None

    return rule


def _dob_not_in_future(form: PatientFormData, units: DisplayUnits, today: date) -> Optional[str]:
    if form.date_of_birth is not None and form.date_of_birth > today:
        return "Date of birth cannot be in the future"
    return None


def _known_gender(form: PatientFormData, units: DisplayUnits, today: date) -> Optional[str]:
    try:
        Gender(form.gender)
    except ValueError:
        return "Gender must be one of: male, female, other, unknown"
    return None


def _height_in_range(form: PatientFormData, units: DisplayUnits, today: date) -> Optional[str]:
    if form.height is None:
        return None
    height_cm = wire_height(form.height, units.height)
    if height_cm <= 0 or height_cm > MAX_HEIGHT_CM:
        return f"Height must be greater than 0 and at most {MAX_HEIGHT_CM} cm"
    return None


def _weight_in_range(form: PatientFormData, units: DisplayUnits, today: date) -> Optional[str]:
    if form.weight is None:
        return None
    weight_kg = wire_weight(form.weight, units.weight)
    if weight_kg <= 0 or weight_kg > MAX_WEIGHT_KG:
        return f"Weight must be greater than 0 and at most {MAX_WEIGHT_KG} kg"
    return None


FIELD_RULES: dict[str, list[Rule]] = {
    "first_name": [_required("first_name", "First name is required")],
    "last_name": [_required("last_name", "Last name is required")],
    "date_of_birth": [
        _required("date_of_birth", "Date of birth is required"),
        _dob_not_in_future,
    ],
    "gender": [_required("gender", "Gender is required"), _known_gender],
    "email": [
        _required("email", "Email is required"),
        _matches("email", EMAIL_PATTERN, "Invalid email format"),
    ],
    "phone_number": [
        _required("phone_number", "Phone number is required"),
        _matches("phone_number", PHONE_PATTERN, "Invalid phone number format"),
    ],
    "postal_code": [
        _matches(
            "postal_code",
            ZIP_PATTERN,
            "Invalid ZIP code format (e.g., 12345 or 12345-6789)",
        )
    ],
    "height": [_height_in_range],
    "weight": [_weight_in_range],
}


def validate_form(
    form_data: PatientFormData,
    display_units: Optional[DisplayUnits] = None,
    today: Optional[date] = None,
) -> dict[str, str]:
    """Validate patient form data.

    Args:
        form_data: Current form values
        display_units: Units height and weight were entered in (metric if None)
        today: Reference date for the future-birth-date check (defaults to today)

    Returns:
        Mapping of form field name to error message; empty when valid

    Example:
        >>> errors = validate_form(PatientFormData(first_name="Ann"))
        >>> errors["last_name"]
        'Last name is required'
    """
    units = display_units or DisplayUnits()
    today = today or date.today()

    errors: dict[str, str] = {}
    for field, rules in FIELD_RULES.items():
        for rule in rules:
            message = rule(form_data, units, today)
            if message:
                errors[field] = message
                break

    if errors:
        logger.debug("Form validation failed for fields: %s", ", ".join(errors))
    return errors


def ensure_valid(
    form_data: PatientFormData,
    display_units: Optional[DisplayUnits] = None,
    today: Optional[date] = None,
) -> None:
    """Validate and raise when any field is invalid.

    Raises:
        ClientValidationError: With the full field error mapping
    """
    errors = validate_form(form_data, display_units, today)
    if errors:
        raise ClientValidationError(errors)


def merge_errors(
    client_errors: dict[str, str], server_errors: dict[str, str]
) -> dict[str, str]:
    """Combine client and server field errors; server messages win per field."""
    merged = dict(client_errors)
    merged.update(server_errors)
    return merged
