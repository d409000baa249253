"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests): a manually advanced scheduler, a submitter whose
futures are resolved by the test, and sample patient records.
"""

import json
import logging
from concurrent.futures import Future
from datetime import date
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest

import poco_records.logging_audit.logger as logger_module

from poco_records.models.patient import Gender, PaginatedPatients, PatientFormData
from poco_records.transport.session import reset_default_session


class ManualTimer:
    """Handle returned by ManualScheduler.call_later."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when the test calls advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward and fire every timer that came due."""
        self.now += seconds
        due = sorted(
            (t for t in self.pending if t.due <= self.now), key=lambda t: t.due
        )
        for timer in due:
            self.timers.remove(timer)
            timer.callback()


class PendingSubmitter:
    """Submit function that parks work until the test resolves it.

    Every submitted callable gets a Future that stays pending until the test
    calls run(), complete() or fail() for it, in any order.
    """

    def __init__(self) -> None:
        self.submitted: list[tuple[Callable[[], Any], Future]] = []

    def __call__(self, fn: Callable[[], Any]) -> Future:
        future: Future = Future()
        self.submitted.append((fn, future))
        return future

    def __len__(self) -> int:
        return len(self.submitted)

    def __bool__(self) -> bool:
        return True

    def run(self, index: int = -1) -> None:
        """Execute the parked callable and resolve its future with the outcome."""
        fn, future = self.submitted[index]
        try:
            result = fn()
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    def complete(self, index: int, value: Any) -> None:
        self.submitted[index][1].set_result(value)

    def fail(self, index: int, error: Exception) -> None:
        self.submitted[index][1].set_exception(error)


def make_patient_dict(
    patient_id: str = "p-1",
    first_name: str = "John",
    last_name: str = "Doe",
    **overrides: Any,
) -> dict[str, Any]:
    """Wire-format patient record."""
    record = {
        "id": patient_id,
        "firstName": first_name,
        "lastName": last_name,
        "dateOfBirth": "1990-01-01",
        "gender": "male",
        "email": "john.doe@example.com",
        "phoneNumber": "+1 555-0100",
        "createdAt": "2024-01-01T10:00:00Z",
        "updatedAt": "2024-01-01T10:00:00Z",
    }
    record.update(overrides)
    return record


def make_page(
    page: int = 1,
    total: int = 15,
    page_size: int = 10,
    prefix: str = "p",
) -> PaginatedPatients:
    """Page of generated patients consistent with ``total`` and ``page_size``."""
    start = (page - 1) * page_size
    count = max(0, min(page_size, total - start))
    return PaginatedPatients.from_dict({
        "patients": [
            make_patient_dict(f"{prefix}-{start + i + 1}", first_name=f"Name{start + i + 1}")
            for i in range(count)
        ],
        "totalCount": total,
        "currentPage": page,
        "pageSize": page_size,
    })


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def pending_submitter() -> PendingSubmitter:
    return PendingSubmitter()


@pytest.fixture
def page_factory() -> Callable[..., PaginatedPatients]:
    return make_page


@pytest.fixture
def patient_dict_factory() -> Callable[..., dict[str, Any]]:
    return make_patient_dict


@pytest.fixture
def sample_patient_dict() -> dict[str, Any]:
    """Wire-format patient with address and measurements."""
    return make_patient_dict(
        "b7c1",
        first_name="Jane",
        last_name="Smith",
        middleName="Q",
        gender="female",
        email="jane.smith@example.com",
        phoneNumber="(555) 010-2030",
        address={
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "postalCode": "62701",
            "country": "US",
        },
        height=165.0,
        weight=60.5,
    )


@pytest.fixture
def valid_form_data() -> PatientFormData:
    """Form values that pass every client-side rule."""
    return PatientFormData(
        first_name="Jane",
        last_name="Smith",
        date_of_birth=date(1985, 6, 15),
        gender=Gender.FEMALE,
        email="jane.smith@example.com",
        phone_number="+1 555-0100",
    )


@pytest.fixture(autouse=True)
def clean_default_session() -> Generator[None, None, None]:
    """Isolate the process-wide session store between tests."""
    reset_default_session()
    yield
    reset_default_session()


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Callable[[Optional[dict[str, Any]]], Path]:
    """
    Factory writing a configuration file into a temporary directory.

    Returns:
        Callable taking the configuration dictionary and returning its path.
    """
    def _write(data: Optional[dict[str, Any]] = None) -> Path:
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(data or {}))
        return config_file

    return _write


@pytest.fixture
def restore_root_logger() -> Generator[logging.Logger, None, None]:
    """Put the root logger back the way the test found it.

    configure_logging() replaces root handlers, which would otherwise leak
    into later tests.
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    installed = list(logger_module._installed_handlers)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logger_module._installed_handlers[:] = installed
