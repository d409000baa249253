"""Codec module.

This module converts between patient records, form data and wire payloads.
"""

from poco_records.codec.address import (
    DEFAULT_COUNTRY,
    compose_address,
    decompose_address,
)
from poco_records.codec.patient_codec import form_field_for, to_api_data, to_form_data
from poco_records.codec.units import (
    to_canonical_height,
    to_canonical_weight,
    to_display_height,
    to_display_weight,
    wire_height,
    wire_weight,
)

__all__ = [
    "DEFAULT_COUNTRY",
    "compose_address",
    "decompose_address",
    "form_field_for",
    "to_api_data",
    "to_canonical_height",
    "to_canonical_weight",
    "to_display_height",
    "to_display_weight",
    "to_form_data",
    "wire_height",
    "wire_weight",
]
