"""Cached single-record reads."""

from poco_records.api.patients import PatientApi
from poco_records.logging_audit import get_logger
from poco_records.models.patient import Patient
from poco_records.query.cache import QueryCache, QueryKey

logger = get_logger(__name__)

RECORD_CACHE_FAMILY = "patient"


def record_key(patient_id: str) -> QueryKey:
    return (RECORD_CACHE_FAMILY, str(patient_id))


class PatientRecordQuery:
    """Reads one patient, serving repeated reads from the shared cache.

    Entries live under ``("patient", id)`` and are dropped by update and
    delete mutations.
    """

    def __init__(self, api: PatientApi, cache: QueryCache) -> None:
        self.api = api
        self.cache = cache

    def get(self, patient_id: str, force: bool = False) -> Patient:
        """Return the record for ``patient_id``.

        Args:
            patient_id: Server-assigned identifier
            force: Skip the cache and refetch

        Raises:
            NotFoundError: If the record does not exist
            GatewayError: For any other request failure
        """
        key = record_key(patient_id)
        if not force:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Serving patient %s from cache", patient_id)
                return cached

        patient = self.api.get_patient(patient_id)
        self.cache.set(key, patient)
        return patient
