"""Patient data models.

This module defines the server-owned Patient record, the editable form copy,
the wire payload sent on create/update, and the paginated list envelope.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


class Gender(Enum):
    """Administrative gender accepted by the patients service."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class UnitSystem(Enum):
    """Display unit system for height and weight inputs."""

    METRIC = "metric"
    IMPERIAL = "imperial"


@dataclass(frozen=True)
class Address:
    """Structured postal address.

    Attributes:
        street: Street line
        city: City
        state: State or province
        postal_code: ZIP or postal code
        country: Country code
    """

    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Address":
        return cls(
            street=data.get("street") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            postal_code=data.get("postalCode") or "",
            country=data.get("country") or "",
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "country": self.country,
        }

    @property
    def is_empty(self) -> bool:
        return not any((self.street, self.city, self.state, self.postal_code))


def parse_wire_date(value: str) -> date:
    """Parse a date of birth sent by the server.

    Accepts plain ``YYYY-MM-DD`` and full RFC 3339 timestamps; only the
    calendar date is kept.

    Raises:
        ValueError: If the value matches neither format
    """
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class Patient:
    """Patient record as returned by the server.

    Records are immutable once fetched; a new fetch replaces them.

    Attributes:
        id: Opaque, stable identifier
        first_name: Given name
        last_name: Family name
        date_of_birth: Calendar date of birth
        gender: Administrative gender
        email: Contact email
        phone_number: Contact phone number
        middle_name: Middle name (optional)
        address: Structured address (optional)
        height: Height in centimeters (optional)
        weight: Weight in kilograms (optional)
        created_at: Server creation timestamp (read-only)
        updated_at: Server update timestamp (read-only)
    """

    id: str
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    email: str = ""
    phone_number: str = ""
    middle_name: Optional[str] = None
    address: Optional[Address] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Patient":
        """Build a Patient from its JSON representation.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a date or enum value is malformed
        """
        address_data = data.get("address")
        address = Address.from_dict(address_data) if address_data else None
        if address is not None and address.is_empty:
            address = None
        return cls(
            id=str(data["id"]),
            first_name=data["firstName"],
            last_name=data["lastName"],
            middle_name=data.get("middleName") or None,
            date_of_birth=parse_wire_date(data["dateOfBirth"]),
            gender=Gender(data.get("gender") or Gender.UNKNOWN.value),
            email=data.get("email") or "",
            phone_number=data.get("phoneNumber") or data.get("phone") or "",
            address=address,
            height=_optional_float(data.get("height")),
            weight=_optional_float(data.get("weight")),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )

    @property
    def full_name(self) -> str:
        if self.middle_name:
            return f"{self.first_name} {self.middle_name} {self.last_name}"
        return f"{self.first_name} {self.last_name}"

    def age(self, today: Optional[date] = None) -> int:
        """Age in whole years on ``today`` (defaults to the current date)."""
        today = today or date.today()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (
            self.date_of_birth.month,
            self.date_of_birth.day,
        ):
            years -= 1
        return years


@dataclass
class DisplayUnits:
    """Units the user is currently typing height and weight in.

    Session-local UI state; never persisted or sent to the server.
    """

    height: UnitSystem = UnitSystem.METRIC
    weight: UnitSystem = UnitSystem.METRIC


@dataclass
class PatientFormData:
    """Editable working copy of a patient.

    Address parts are kept flat for editing; height and weight are in the
    form's display units and are only converted when the form is submitted.
    """

    first_name: str = ""
    last_name: str = ""
    middle_name: str = ""
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = Gender.UNKNOWN
    email: str = ""
    phone_number: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None


@dataclass(frozen=True)
class PatientApiData:
    """Create/update payload in wire shape.

    ``date_of_birth`` is already an ISO date string and height/weight are
    always metric.
    """

    first_name: str
    last_name: str
    date_of_birth: str
    gender: Gender
    email: str
    phone_number: str
    middle_name: Optional[str] = None
    address: Optional[Address] = None
    height: Optional[float] = None
    weight: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON body for POST/PUT /patients. Absent optionals are omitted."""
        body: dict[str, Any] = {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender.value,
            "email": self.email,
            "phoneNumber": self.phone_number,
        }
        if self.middle_name:
            body["middleName"] = self.middle_name
        if self.address is not None:
            body["address"] = self.address.to_dict()
        if self.height is not None:
            body["height"] = self.height
        if self.weight is not None:
            body["weight"] = self.weight
        return body


@dataclass(frozen=True)
class PaginatedPatients:
    """One page of the patient list.

    Attributes:
        patients: Patients in server-defined order
        total_count: Number of patients matching the search
        current_page: 1-based page number
        page_size: Requested page size
        total_pages: ceil(total_count / page_size)
    """

    patients: list[Patient] = field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    page_size: int = 10
    total_pages: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaginatedPatients":
        """Build a page from the list response.

        Also accepts the older ``{items, total, page, pageSize}`` envelope.
        """
        records = data.get("patients")
        if records is None:
            records = data.get("items", [])
        total_count = int(data.get("totalCount", data.get("total", len(records))))
        page_size = int(data.get("pageSize") or len(records) or 1)
        current_page = int(data.get("currentPage", data.get("page", 1)))
        total_pages = data.get("totalPages")
        if total_pages is None:
            total_pages = compute_total_pages(total_count, page_size)
        return cls(
            patients=[Patient.from_dict(record) for record in records],
            total_count=total_count,
            current_page=current_page,
            page_size=page_size,
            total_pages=int(total_pages),
        )


def compute_total_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed to show ``total_count`` rows."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return math.ceil(total_count / page_size)
