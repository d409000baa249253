"""Create, update and delete orchestration for patient records.

Every mutation follows the same sequence: validate locally, translate the
form into the wire payload, send it, then react to the outcome. Server field
errors are written back into the form; any other failure becomes a single
error notification. On success the affected cache entries are invalidated
first, then the user is notified, then navigation happens.
"""

import time
from typing import Callable, Optional, Protocol

from poco_records.api.patients import PatientApi
from poco_records.codec.patient_codec import form_field_for, to_api_data
from poco_records.logging_audit import get_operation_logger, log_audit_event
from poco_records.models.patient import Patient
from poco_records.models.responses import MutationOutcome, MutationStatus
from poco_records.mutations.form import PatientForm
from poco_records.query.cache import QueryCache
from poco_records.query.list_controller import LIST_CACHE_FAMILY
from poco_records.query.record_query import record_key
from poco_records.utils.exceptions import (
    GatewayError,
    InvalidInputError,
    ServerValidationError,
    user_message,
)
from poco_records.validation.validator import validate_form

logger = get_operation_logger("mutation")

LIST_PATH = "/patients"
SAVE_FAILED_MESSAGE = "Failed to save patient"
DELETE_FAILED_MESSAGE = "Failed to delete patient"
CREATED_MESSAGE = "Patient created successfully"
UPDATED_MESSAGE = "Patient updated successfully"
DELETED_MESSAGE = "Patient deleted successfully"


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes notifications to the mutation log."""

    def success(self, message: str) -> None:
        logger.info("Notification: %s", message)

    def error(self, message: str) -> None:
        logger.error("Notification: %s", message)


class RecordingNavigator:
    """Navigator that remembers every path it was sent to."""

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def current(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def navigate(self, path: str) -> None:
        logger.debug("Navigating to %s", path)
        self.history.append(path)


def detail_path(patient_id: str) -> str:
    return PatientApi.record_path(patient_id)


class MutationOrchestrator:
    """Runs patient mutations and applies their side effects.

    The orchestrator keeps no per-call state; everything that belongs to one
    submission lives on the PatientForm passed in.

    Example:
        >>> orchestrator = MutationOrchestrator(api, cache, navigator, notifier)
        >>> outcome = orchestrator.create(form)
        >>> outcome.status
        <MutationStatus.SUCCESS: 'SUCCESS'>
        >>> navigator.current
        '/patients'
    """

    def __init__(
        self,
        api: PatientApi,
        cache: QueryCache,
        navigator: Navigator,
        notifier: Notifier,
    ) -> None:
        self.api = api
        self.cache = cache
        self.navigator = navigator
        self.notifier = notifier

    def create(self, form: PatientForm) -> MutationOutcome:
        """Create a patient from ``form``.

        Raises:
            SubmissionInProgressError: If the form is already being submitted
        """
        return self._save(
            form,
            send=self.api.create_patient,
            event="PATIENT_CREATE",
            patient_id=None,
        )

    def update(self, patient_id: str, form: PatientForm) -> MutationOutcome:
        """Replace patient ``patient_id`` with the values of ``form``.

        Raises:
            SubmissionInProgressError: If the form is already being submitted
        """
        return self._save(
            form,
            send=lambda data: self.api.update_patient(patient_id, data),
            event="PATIENT_UPDATE",
            patient_id=patient_id,
        )

    def delete(self, patient_id: str) -> MutationOutcome:
        """Delete patient ``patient_id``."""
        start = time.time()
        try:
            self.api.delete_patient(patient_id)
        except GatewayError as e:
            return self._fail("PATIENT_DELETE", patient_id, e, DELETE_FAILED_MESSAGE, start)

        self.cache.invalidate(record_key(patient_id))
        self.cache.invalidate((LIST_CACHE_FAMILY,))
        self.notifier.success(DELETED_MESSAGE)
        self.navigator.navigate(LIST_PATH)

        log_audit_event(
            "PATIENT_DELETE",
            {"status": "success", "patient_id": patient_id, "duration": time.time() - start},
        )
        return MutationOutcome(status=MutationStatus.SUCCESS, message=DELETED_MESSAGE)

    def _save(
        self,
        form: PatientForm,
        send: Callable,
        event: str,
        patient_id: Optional[str],
    ) -> MutationOutcome:
        with form.submission():
            start = time.time()
            form.clear_errors()

            client_errors = validate_form(form.values, form.units)
            if client_errors:
                form.set_errors(client_errors)
                logger.info(
                    "%s blocked by %d invalid field(s): %s",
                    event,
                    len(client_errors),
                    ", ".join(client_errors),
                )
                return MutationOutcome(
                    status=MutationStatus.CLIENT_INVALID,
                    field_errors=dict(client_errors),
                )

            try:
                payload = to_api_data(form.values, form.units)
                saved: Patient = send(payload)
            except ServerValidationError as e:
                server_errors = {
                    form_field_for(field): message
                    for field, message in e.first_messages().items()
                }
                form.set_errors(server_errors)
                log_audit_event(
                    f"{event}_REJECTED",
                    {
                        "status": "rejected",
                        "patient_id": patient_id,
                        "duration": time.time() - start,
                        "error_count": len(server_errors),
                    },
                )
                return MutationOutcome(
                    status=MutationStatus.SERVER_INVALID,
                    field_errors=dict(form.errors),
                )
            except (GatewayError, InvalidInputError) as e:
                return self._fail(event, patient_id, e, SAVE_FAILED_MESSAGE, start)

        if patient_id is None:
            self.cache.invalidate((LIST_CACHE_FAMILY,))
            message, target = CREATED_MESSAGE, LIST_PATH
        else:
            self.cache.invalidate(record_key(patient_id))
            self.cache.invalidate((LIST_CACHE_FAMILY,))
            message, target = UPDATED_MESSAGE, detail_path(patient_id)

        self.notifier.success(message)
        self.navigator.navigate(target)

        log_audit_event(
            event,
            {
                "status": "success",
                "patient_id": saved.id,
                "duration": time.time() - start,
            },
        )
        return MutationOutcome(
            status=MutationStatus.SUCCESS, patient=saved, message=message
        )

    def _fail(
        self,
        event: str,
        patient_id: Optional[str],
        error: Exception,
        fallback: str,
        start: float,
    ) -> MutationOutcome:
        message = user_message(error, fallback)
        self.notifier.error(message)
        log_audit_event(
            event,
            {
                "status": "failure",
                "patient_id": patient_id,
                "duration": time.time() - start,
                "error_message": message,
            },
        )
        return MutationOutcome(status=MutationStatus.FAILED, message=message)
