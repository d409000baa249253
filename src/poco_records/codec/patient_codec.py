"""Translation between Patient records, form data and wire payloads.

``to_api_data`` is the only place where UI-shaped data becomes wire-shaped
data: strings are trimmed, the birth date is serialized, height and weight
are converted to metric and the flat address fields are composed.
"""

from typing import Optional

from poco_records.codec.address import compose_address, decompose_address
from poco_records.codec.units import wire_height, wire_weight
from poco_records.logging_audit import get_logger
from poco_records.models.patient import (
    DisplayUnits,
    Gender,
    Patient,
    PatientApiData,
    PatientFormData,
)
from poco_records.utils.exceptions import InvalidInputError

logger = get_logger(__name__)

# Server error keys that do not follow the plain camelCase -> snake_case rule
_WIRE_FIELD_ALIASES = {
    "phone": "phone_number",
    "zipCode": "postal_code",
    "address": "street",
    "address.street": "street",
    "address.city": "city",
    "address.state": "state",
    "address.postalCode": "postal_code",
    "address.country": "country",
}

_WIRE_TO_FORM_FIELD = {
    "firstName": "first_name",
    "lastName": "last_name",
    "middleName": "middle_name",
    "dateOfBirth": "date_of_birth",
    "gender": "gender",
    "email": "email",
    "phoneNumber": "phone_number",
    "street": "street",
    "city": "city",
    "state": "state",
    "postalCode": "postal_code",
    "country": "country",
    "height": "height",
    "weight": "weight",
}


def to_form_data(patient: Patient) -> PatientFormData:
    """Create an editable form copy of a fetched patient.

    Height and weight are carried unchanged, which matches the default
    metric display units of a new form.
    """
    flat_address = decompose_address(patient.address)
    return PatientFormData(
        first_name=patient.first_name,
        last_name=patient.last_name,
        middle_name=patient.middle_name or "",
        date_of_birth=patient.date_of_birth,
        gender=patient.gender,
        email=patient.email,
        phone_number=patient.phone_number,
        country=patient.address.country if patient.address else None,
        height=patient.height,
        weight=patient.weight,
        **flat_address,
    )


def to_api_data(
    form_data: PatientFormData, display_units: Optional[DisplayUnits] = None
) -> PatientApiData:
    """Translate form data into the create/update payload.

    Args:
        form_data: Current form values
        display_units: Units height and weight were entered in (metric if None)

    Returns:
        Wire payload with metric measurements and a composed address

    Raises:
        InvalidInputError: If the date of birth or gender is still empty
    """
    units = display_units or DisplayUnits()
    if form_data.date_of_birth is None:
        raise InvalidInputError("Date of birth is required")
    if form_data.gender is None:
        raise InvalidInputError("Gender is required")

    height = None
    if form_data.height is not None:
        height = wire_height(form_data.height, units.height)
    weight = None
    if form_data.weight is not None:
        weight = wire_weight(form_data.weight, units.weight)

    api_data = PatientApiData(
        first_name=form_data.first_name.strip(),
        last_name=form_data.last_name.strip(),
        middle_name=form_data.middle_name.strip() or None,
        date_of_birth=form_data.date_of_birth.isoformat(),
        gender=Gender(form_data.gender),
        email=form_data.email.strip(),
        phone_number=form_data.phone_number.strip(),
        address=compose_address(
            form_data.street,
            form_data.city,
            form_data.state,
            form_data.postal_code,
            form_data.country,
        ),
        height=height,
        weight=weight,
    )
    logger.debug(
        "Built wire payload (address=%s, height=%s, weight=%s)",
        "yes" if api_data.address else "no",
        height,
        weight,
    )
    return api_data


def form_field_for(wire_field: str) -> str:
    """Map a server error key to the form field it belongs to.

    Unknown keys are returned unchanged so no server message is lost.

    Example:
        >>> form_field_for("phoneNumber")
        'phone_number'
        >>> form_field_for("address.postalCode")
        'postal_code'
    """
    if wire_field in _WIRE_FIELD_ALIASES:
        return _WIRE_FIELD_ALIASES[wire_field]
    return _WIRE_TO_FORM_FIELD.get(wire_field, wire_field)
