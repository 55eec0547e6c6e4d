"""In-memory job record store used for local development and tests."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from threading import Lock
from typing import Any

from scanboard.repositories.base import JobRecord, JobRecordStore, StoreError, mutable_updates
from scanboard.schemas.job import JobStatus


@dataclass
class InMemoryJobStore(JobRecordStore):
    """Simple, deterministic persistence layer for scaffolding and tests.

    A single lock serializes every operation, which gives the per-key atomicity the
    store contract requires. Callers always receive copies of the stored records.
    """

    jobs: dict[str, JobRecord] = field(default_factory=dict)
    job_write_count: int = 0
    write_failure_message: str | None = None
    _lock: Lock = field(default_factory=Lock, repr=False)

    def upsert(
        self,
        job_id: str,
        fields: Mapping[str, Any],
        *,
        defaults_on_insert: Mapping[str, Any] | None = None,
    ) -> JobRecord:
        with self._lock:
            self._maybe_raise_write_failure()
            now = datetime.now(UTC)
            existing = self.jobs.get(job_id)
            if existing is None:
                record = self._build_record(job_id, fields, defaults_on_insert or {}, now)
            else:
                record = replace(existing, **mutable_updates(job_id, fields), updated_at=now)
            self.jobs[job_id] = record
            self.job_write_count += 1
            return replace(record)

    def merge(
        self,
        job_id: str,
        fields: Mapping[str, Any],
        *,
        only_if_status_in: Collection[JobStatus] | None = None,
    ) -> tuple[JobRecord, bool] | None:
        with self._lock:
            existing = self.jobs.get(job_id)
            if existing is None:
                return None
            if only_if_status_in is not None and existing.status not in only_if_status_in:
                return replace(existing), False
            self._maybe_raise_write_failure()
            record = replace(existing, **mutable_updates(job_id, fields), updated_at=datetime.now(UTC))
            self.jobs[job_id] = record
            self.job_write_count += 1
            return replace(record), True

    def get_by_id(self, job_id: str) -> JobRecord | None:
        with self._lock:
            record = self.jobs.get(job_id)
            return replace(record) if record is not None else None

    def list_all(self) -> list[JobRecord]:
        with self._lock:
            records = [replace(record) for record in self.jobs.values()]
        records.sort(key=lambda record: record.submitted_at, reverse=True)
        return records

    @staticmethod
    def _build_record(
        job_id: str,
        fields: Mapping[str, Any],
        defaults_on_insert: Mapping[str, Any],
        now: datetime,
    ) -> JobRecord:
        values: dict[str, Any] = {"submitted_at": now}
        for key in ("submitted_at", "source_name", "status", "title"):
            if key in defaults_on_insert:
                values[key] = defaults_on_insert[key]
        if "source_name" in fields:
            values["source_name"] = fields["source_name"]
        values.update(mutable_updates(job_id, fields))
        if "source_name" not in values or "status" not in values:
            raise ValueError("source_name and status are required to create a job record")
        return JobRecord(id=job_id, updated_at=now, **values)

    def _maybe_raise_write_failure(self) -> None:
        if self.write_failure_message is None:
            return
        message = self.write_failure_message
        self.write_failure_message = None
        raise StoreError(message)
