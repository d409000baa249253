"""API module.

This module provides the typed client for the patients REST resource.
"""

from poco_records.api.patients import PatientApi

__all__ = [
    "PatientApi",
]
