"""Composition of flat address inputs into a structured address."""

from typing import Optional

from poco_records.models.patient import Address

DEFAULT_COUNTRY = "US"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def compose_address(
    street: Optional[str],
    city: Optional[str],
    state: Optional[str],
    postal_code: Optional[str],
    country: Optional[str] = None,
) -> Optional[Address]:
    """Merge flat address fields into an Address.

    Returns None when street, city, state and postal code are all blank.
    Otherwise every part is trimmed and a blank country becomes
    DEFAULT_COUNTRY.

    Example:
        >>> compose_address(" 1 Main St ", "", "", "")
        Address(street='1 Main St', city='', state='', postal_code='', country='US')
        >>> compose_address("  ", None, "", "") is None
        True
    """
    parts = [_clean(street), _clean(city), _clean(state), _clean(postal_code)]
    if not any(parts):
        return None
    return Address(
        street=parts[0],
        city=parts[1],
        state=parts[2],
        postal_code=parts[3],
        country=_clean(country) or DEFAULT_COUNTRY,
    )


def decompose_address(address: Optional[Address]) -> dict[str, str]:
    """Split an Address back into the flat fields used by edit forms."""
    if address is None:
        return {"street": "", "city": "", "state": "", "postal_code": ""}
    return {
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
    }
