"""In-memory patient store backing the mock service."""

import math
import uuid
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Optional

SAMPLE_PATIENT = {
    "firstName": "John",
    "lastName": "Doe",
    "dateOfBirth": "1990-01-01",
    "gender": "male",
    "email": "john.doe@example.com",
    "phoneNumber": "+1 555-0100",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PatientStore:
    """Thread-safe dictionary of wire-format patient records, in insertion order."""

    def __init__(self, seed: bool = True) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = RLock()
        if seed:
            self.create(dict(SAMPLE_PATIENT))

    def __len__(self) -> int:
        return len(self._records)

    def list_page(self, page: int, page_size: int, search: str = "") -> dict[str, Any]:
        """Return one page of records matching ``search`` in the paginated shape."""
        term = search.strip().lower()
        with self._lock:
            matches = [
                record
                for record in self._records.values()
                if not term or term in _search_text(record)
            ]
        total = len(matches)
        start = (page - 1) * page_size
        return {
            "patients": matches[start : start + page_size],
            "totalCount": total,
            "currentPage": page,
            "pageSize": page_size,
            "totalPages": math.ceil(total / page_size),
        }

    def get(self, patient_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            return self._records.get(patient_id)

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        now = _now()
        record = dict(data, id=str(uuid.uuid4()), createdAt=now, updatedAt=now)
        with self._lock:
            self._records[record["id"]] = record
        return record

    def update(self, patient_id: str, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Replace a record's fields, keeping its id and creation time."""
        with self._lock:
            current = self._records.get(patient_id)
            if current is None:
                return None
            record = dict(
                data,
                id=patient_id,
                createdAt=current["createdAt"],
                updatedAt=_now(),
            )
            self._records[patient_id] = record
            return record

    def delete(self, patient_id: str) -> bool:
        with self._lock:
            return self._records.pop(patient_id, None) is not None


def _search_text(record: dict[str, Any]) -> str:
    full_name = f"{record.get('firstName') or ''} {record.get('lastName') or ''}"
    parts = [full_name, record.get("middleName") or "", record.get("email") or ""]
    return "\n".join(parts).lower()
