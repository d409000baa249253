"""Mutations module.

This module provides patient form state and the create/update/delete
orchestrator.
"""

from poco_records.mutations.form import PatientForm
from poco_records.mutations.orchestrator import (
    LoggingNotifier,
    MutationOrchestrator,
    Navigator,
    Notifier,
    RecordingNavigator,
)

__all__ = [
    "LoggingNotifier",
    "MutationOrchestrator",
    "Navigator",
    "Notifier",
    "PatientForm",
    "RecordingNavigator",
]
