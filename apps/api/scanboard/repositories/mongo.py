"""MongoDB-backed job record store."""

from __future__ import annotations

from collections.abc import Collection, Mapping
import dataclasses
from datetime import UTC, datetime
import logging
from typing import Any

from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection as MongoCollection
from pymongo.errors import PyMongoError

from scanboard.repositories.base import JobRecord, JobRecordStore, StoreError, mutable_updates
from scanboard.schemas.job import JobStatus

logger = logging.getLogger(__name__)

_RECORD_FIELDS = tuple(record_field.name for record_field in dataclasses.fields(JobRecord))
_TIMESTAMP_FIELDS = ("submitted_at", "updated_at", "completed_at")


class MongoJobStore(JobRecordStore):
    """Stores one document per vendor job id in a single collection.

    Each write is a single ``find_one_and_update``, which MongoDB applies atomically
    per document, so the status guard of ``merge`` cannot interleave with another writer.
    """

    def __init__(self, collection: MongoCollection) -> None:
        self._collection = collection

    @classmethod
    def from_uri(cls, uri: str, database: str, collection: str) -> MongoJobStore:
        client: MongoClient = MongoClient(uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        return cls(client[database][collection])

    def ensure_indexes(self) -> None:
        try:
            self._collection.create_index("id", unique=True)
            self._collection.create_index([("submitted_at", DESCENDING)])
        except PyMongoError as exc:
            raise StoreError(f"Failed to create job indexes: {exc}") from exc

    def upsert(
        self,
        job_id: str,
        fields: Mapping[str, Any],
        *,
        defaults_on_insert: Mapping[str, Any] | None = None,
    ) -> JobRecord:
        now = datetime.now(UTC)
        to_set = self._to_document(mutable_updates(job_id, fields))
        to_set["updated_at"] = now
        # Immutable keys are only ever written when the document is created.
        on_insert: dict[str, Any] = {"id": job_id, "submitted_at": now}
        if "source_name" in fields:
            on_insert["source_name"] = fields["source_name"]
        for key, value in self._to_document(defaults_on_insert or {}).items():
            if key in to_set or key == "id" or key not in _RECORD_FIELDS:
                continue
            on_insert[key] = value

        try:
            document = self._collection.find_one_and_update(
                {"id": job_id},
                {"$set": to_set, "$setOnInsert": on_insert},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to upsert job {job_id}: {exc}") from exc
        if document is None:
            raise StoreError(f"Upsert of job {job_id} returned no document")
        return self._to_record(document)

    def merge(
        self,
        job_id: str,
        fields: Mapping[str, Any],
        *,
        only_if_status_in: Collection[JobStatus] | None = None,
    ) -> tuple[JobRecord, bool] | None:
        to_set = self._to_document(mutable_updates(job_id, fields))
        to_set["updated_at"] = datetime.now(UTC)
        query: dict[str, Any] = {"id": job_id}
        if only_if_status_in is not None:
            query["status"] = {"$in": sorted(status.value for status in only_if_status_in)}

        try:
            document = self._collection.find_one_and_update(
                query,
                {"$set": to_set},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to update job {job_id}: {exc}") from exc
        if document is not None:
            return self._to_record(document), True
        if only_if_status_in is None:
            return None
        # Guard did not match: the record is absent or already outside the allowed statuses.
        stored = self.get_by_id(job_id)
        return (stored, False) if stored is not None else None

    def get_by_id(self, job_id: str) -> JobRecord | None:
        try:
            document = self._collection.find_one({"id": job_id})
        except PyMongoError as exc:
            raise StoreError(f"Failed to read job {job_id}: {exc}") from exc
        return self._to_record(document) if document is not None else None

    def list_all(self) -> list[JobRecord]:
        try:
            documents = list(self._collection.find({}).sort("submitted_at", DESCENDING))
        except PyMongoError as exc:
            raise StoreError(f"Failed to list jobs: {exc}") from exc

        records: list[JobRecord] = []
        for document in documents:
            try:
                records.append(self._to_record(document))
            except (TypeError, ValueError) as exc:
                # A malformed document must not hide the rest of the listing.
                logger.error("store.document_skipped document_id=%s reason=%s", document.get("_id"), exc)
        return records

    @staticmethod
    def _to_document(values: Mapping[str, Any]) -> dict[str, Any]:
        return {key: value.value if isinstance(value, JobStatus) else value for key, value in values.items()}

    @staticmethod
    def _to_record(document: Mapping[str, Any]) -> JobRecord:
        values = {key: document.get(key) for key in _RECORD_FIELDS}
        if not isinstance(values["id"], str) or not isinstance(values["source_name"], str):
            raise ValueError("job document is missing id or source_name")
        values["status"] = JobStatus(values["status"])
        for key in _TIMESTAMP_FIELDS:
            stamp = values[key]
            if isinstance(stamp, datetime) and stamp.tzinfo is None:
                values[key] = stamp.replace(tzinfo=UTC)
        return JobRecord(**values)
