"""Models module.

This module provides data models and dataclasses for the application.
"""

from poco_records.models.patient import (
    Address,
    DisplayUnits,
    Gender,
    PaginatedPatients,
    Patient,
    PatientApiData,
    PatientFormData,
    UnitSystem,
)
from poco_records.models.responses import (
    ExecutorResponse,
    MutationOutcome,
    MutationStatus,
)

__all__ = [
    "Address",
    "DisplayUnits",
    "ExecutorResponse",
    "Gender",
    "MutationOutcome",
    "MutationStatus",
    "PaginatedPatients",
    "Patient",
    "PatientApiData",
    "PatientFormData",
    "UnitSystem",
]
