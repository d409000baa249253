"""Query module.

This module provides the query cache, the patient list controller and cached
record reads.
"""

from poco_records.query.cache import QueryCache
from poco_records.query.list_controller import (
    LIST_CACHE_FAMILY,
    ListQueryController,
    ListQueryKey,
)
from poco_records.query.record_query import (
    RECORD_CACHE_FAMILY,
    PatientRecordQuery,
    record_key,
)
from poco_records.query.scheduler import Scheduler, ThreadingScheduler

__all__ = [
    "LIST_CACHE_FAMILY",
    "ListQueryController",
    "ListQueryKey",
    "PatientRecordQuery",
    "QueryCache",
    "RECORD_CACHE_FAMILY",
    "Scheduler",
    "ThreadingScheduler",
    "record_key",
]
