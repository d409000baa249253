"""Height and weight unit conversion.

Canonical units are centimeters and kilograms. Conversion is applied once,
when form data is translated into wire data; toggling a form's display unit
re-interprets the number already typed and never rewrites it.
"""

from poco_records.models.patient import UnitSystem

CM_PER_INCH = 2.54
KG_PER_POUND = 0.453592

# Decimal places kept for canonical values on the wire
CANONICAL_PRECISION = 2


def to_canonical_height(value: float, unit: UnitSystem) -> float:
    """Convert a displayed height to centimeters.

    Example:
        >>> round_canonical(to_canonical_height(70, UnitSystem.IMPERIAL))
        177.8
    """
    if unit == UnitSystem.IMPERIAL:
        return value * CM_PER_INCH
    return value


def to_display_height(value: float, unit: UnitSystem) -> float:
    """Convert a height in centimeters to the display unit."""
    if unit == UnitSystem.IMPERIAL:
        return value / CM_PER_INCH
    return value


def to_canonical_weight(value: float, unit: UnitSystem) -> float:
    """Convert a displayed weight to kilograms."""
    if unit == UnitSystem.IMPERIAL:
        return value * KG_PER_POUND
    return value


def to_display_weight(value: float, unit: UnitSystem) -> float:
    """Convert a weight in kilograms to the display unit."""
    if unit == UnitSystem.IMPERIAL:
        return value / KG_PER_POUND
    return value


def round_canonical(value: float) -> float:
    return round(value, CANONICAL_PRECISION)


def wire_height(value: float, unit: UnitSystem) -> float:
    """Height in centimeters exactly as it is sent to the server."""
    return round_canonical(to_canonical_height(value, unit))


def wire_weight(value: float, unit: UnitSystem) -> float:
    """Weight in kilograms exactly as it is sent to the server."""
    return round_canonical(to_canonical_weight(value, unit))
