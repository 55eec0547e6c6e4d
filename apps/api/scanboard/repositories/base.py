"""Job record persistence contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any

from scanboard.schemas.job import JobStatus

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "source_name", "submitted_at"})
MUTABLE_FIELDS = frozenset(
    {
        "title",
        "status",
        "completed_at",
        "model_url",
        "thumbnail_url",
        "error_message",
    }
)


def mutable_updates(job_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only keys a merge may write; immutable keys are logged and dropped."""
    updates: dict[str, Any] = {}
    for key, value in fields.items():
        if key in IMMUTABLE_FIELDS:
            if key != "source_name":
                logger.warning("store.immutable_field_ignored job_id=%s field=%s", job_id, key)
            continue
        # Unknown keys are ignored deterministically.
        if key not in MUTABLE_FIELDS:
            continue
        updates[key] = value
    return updates


class StoreError(Exception):
    """Raised when the backing store cannot complete a read or write."""


@dataclass(slots=True)
class JobRecord:
    id: str
    source_name: str
    status: JobStatus
    submitted_at: datetime
    updated_at: datetime
    title: str | None = None
    completed_at: datetime | None = None
    model_url: str | None = None
    thumbnail_url: str | None = None
    error_message: str | None = None


class JobRecordStore(ABC):
    """Keyed store of job records addressed by vendor job id.

    Every operation on a single key is atomic. No cross-key transactions are offered.
    """

    @abstractmethod
    def upsert(
        self,
        job_id: str,
        fields: Mapping[str, Any],
        *,
        defaults_on_insert: Mapping[str, Any] | None = None,
    ) -> JobRecord:
        """Create the record if absent, otherwise merge ``fields``; always stamps ``updated_at``."""

    @abstractmethod
    def merge(
        self,
        job_id: str,
        fields: Mapping[str, Any],
        *,
        only_if_status_in: Collection[JobStatus] | None = None,
    ) -> tuple[JobRecord, bool] | None:
        """Merge into an existing record and return ``(record, written)``.

        Returns ``None`` if the record does not exist. When ``only_if_status_in`` is given and
        the stored status is outside it, nothing is written and ``(stored_record, False)`` is
        returned.
        """

    @abstractmethod
    def get_by_id(self, job_id: str) -> JobRecord | None:
        """Return the record or ``None``."""

    @abstractmethod
    def list_all(self) -> list[JobRecord]:
        """Return all records, newest ``submitted_at`` first."""


__all__ = [
    "IMMUTABLE_FIELDS",
    "MUTABLE_FIELDS",
    "JobRecord",
    "JobRecordStore",
    "StoreError",
    "mutable_updates",
]
