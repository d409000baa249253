"""Client for the /patients REST resource.

Thin layer over the request gateway that builds paths and query parameters
and parses response bodies into models.
"""

from typing import Any, Callable, TypeVar
from urllib.parse import quote

from poco_records.logging_audit import get_logger
from poco_records.models.patient import PaginatedPatients, Patient, PatientApiData
from poco_records.transport.gateway import RequestGateway
from poco_records.utils.exceptions import ServerError

logger = get_logger(__name__)

RESOURCE_PATH = "/patients"
INVALID_BODY_MESSAGE = "Invalid response from server"

T = TypeVar("T")


def _parse(body: Any, parser: Callable[[dict[str, Any]], T]) -> T:
    """Parse a 2xx body, reporting malformed bodies as server errors."""
    if not isinstance(body, dict):
        raise ServerError(INVALID_BODY_MESSAGE)
    try:
        return parser(body)
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Could not parse response body: %s", e)
        raise ServerError(INVALID_BODY_MESSAGE) from e


class PatientApi:
    """Typed operations on the patients resource.

    Example:
        >>> api = PatientApi(gateway)
        >>> page = api.list_patients(page=2, page_size=10, search="doe")
        >>> page.total_pages
        2
    """

    def __init__(self, gateway: RequestGateway) -> None:
        self.gateway = gateway

    @staticmethod
    def record_path(patient_id: str) -> str:
        return f"{RESOURCE_PATH}/{quote(str(patient_id), safe='')}"

    def list_patients(
        self, page: int = 1, page_size: int = 10, search: str = ""
    ) -> PaginatedPatients:
        """GET /patients?page=&pageSize=&search="""
        params: dict[str, Any] = {"page": page, "pageSize": page_size}
        if search:
            params["search"] = search
        body = self.gateway.get(RESOURCE_PATH, params=params)
        return _parse(body, PaginatedPatients.from_dict)

    def get_patient(self, patient_id: str) -> Patient:
        """GET /patients/{id}

        Raises:
            NotFoundError: If the record does not exist
        """
        body = self.gateway.get(self.record_path(patient_id))
        return _parse(body, Patient.from_dict)

    def create_patient(self, data: PatientApiData) -> Patient:
        """POST /patients"""
        body = self.gateway.post(RESOURCE_PATH, data.to_dict())
        return _parse(body, Patient.from_dict)

    def update_patient(self, patient_id: str, data: PatientApiData) -> Patient:
        """PUT /patients/{id}"""
        body = self.gateway.put(self.record_path(patient_id), data.to_dict())
        return _parse(body, Patient.from_dict)

    def delete_patient(self, patient_id: str) -> None:
        """DELETE /patients/{id}"""
        self.gateway.delete(self.record_path(patient_id))
