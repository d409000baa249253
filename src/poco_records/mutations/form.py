"""Editable patient form state.

A PatientForm holds the values being edited, the units height and weight are
typed in, the per-field error messages shown next to inputs and a guard that
allows one submission at a time.
"""

from contextlib import contextmanager
from dataclasses import fields
from threading import Lock
from typing import TYPE_CHECKING, Any, Iterator, Optional

from poco_records.codec.patient_codec import to_form_data
from poco_records.models.patient import (
    DisplayUnits,
    Patient,
    PatientFormData,
    UnitSystem,
)
from poco_records.utils.exceptions import SubmissionInProgressError

if TYPE_CHECKING:
    from poco_records.config.schema import FormConfig

_FORM_FIELDS = frozenset(f.name for f in fields(PatientFormData))


class PatientForm:
    """Working state of a create or edit form.

    Attributes:
        values: Current field values
        units: Display units for height and weight
        errors: Form field name to the message displayed for it

    Example:
        >>> form = PatientForm()
        >>> form.set_value("first_name", "Ann")
        >>> form.set_height_unit(UnitSystem.IMPERIAL)
        >>> form.values.height is None
        True
    """

    def __init__(
        self,
        values: Optional[PatientFormData] = None,
        units: Optional[DisplayUnits] = None,
    ) -> None:
        self.values = values or PatientFormData()
        self.units = units or DisplayUnits()
        self.errors: dict[str, str] = {}
        self._submit_lock = Lock()

    @classmethod
    def from_patient(
        cls, patient: Patient, units: Optional[DisplayUnits] = None
    ) -> "PatientForm":
        """Create an edit form prefilled from a fetched record.

        Stored measurements are metric, so the form starts in metric units
        unless ``units`` says otherwise.
        """
        return cls(to_form_data(patient), units)

    @classmethod
    def from_config(cls, config: "FormConfig", **values: Any) -> "PatientForm":
        """Create a new-record form using configured defaults.

        Args:
            config: Form section of the application configuration
            **values: Initial field values

        Raises:
            ValueError: If a value names an unknown field
        """
        form = cls(
            PatientFormData(country=config.default_country),
            DisplayUnits(height=config.height_unit, weight=config.weight_unit),
        )
        for name, value in values.items():
            form.set_value(name, value)
        return form

    def set_value(self, name: str, value: Any) -> None:
        """Set one field value; the field's displayed error is cleared."""
        if name not in _FORM_FIELDS:
            raise ValueError(f"Unknown form field: {name}")
        setattr(self.values, name, value)
        self.errors.pop(name, None)

    # Units are re-interpreted, never converted: the number stays as typed.

    def set_height_unit(self, unit: UnitSystem) -> None:
        self.units.height = UnitSystem(unit)

    def set_weight_unit(self, unit: UnitSystem) -> None:
        self.units.weight = UnitSystem(unit)

    def set_field_error(self, name: str, message: str) -> None:
        self.errors[name] = message

    def set_errors(self, errors: dict[str, str]) -> None:
        """Write messages into their slots, overwriting existing ones."""
        self.errors.update(errors)

    def clear_errors(self) -> None:
        self.errors.clear()

    @property
    def is_submitting(self) -> bool:
        return self._submit_lock.locked()

    @contextmanager
    def submission(self) -> Iterator["PatientForm"]:
        """Hold the single submission slot for the duration of the block.

        Raises:
            SubmissionInProgressError: If another submission is pending
        """
        if not self._submit_lock.acquire(blocking=False):
            raise SubmissionInProgressError("Form is already being submitted")
        try:
            yield self
        finally:
            self._submit_lock.release()
