"""Reconciliation engine convergence tests."""

from __future__ import annotations

from datetime import UTC, datetime
import unittest

from scanboard.domain.job_fsm import NON_TERMINAL_STATES
from scanboard.errors import JobNotFoundLocally
from scanboard.repositories.base import JobRecord, StoreError
from scanboard.repositories.memory import InMemoryJobStore
from scanboard.schemas.job import JobStatus
from scanboard.services.reconciliation import DEFAULT_FAILURE_MESSAGE, ReconciliationEngine

_MODEL_URL = "https://cdn.example.com/models/job-1.zip"


def _store_with_job(status: JobStatus = JobStatus.QUEUING) -> InMemoryJobStore:
    store = InMemoryJobStore()
    store.upsert(
        "job-1",
        {"source_name": "chair.mp4", "title": "Chair", "status": status},
        defaults_on_insert={"submitted_at": datetime(2026, 3, 1, 12, 0, tzinfo=UTC)},
    )
    return store


class _TerminalRaceStore(InMemoryJobStore):
    """Lets a competing terminal write land between the engine's read and its write."""

    competing_fields: dict = {"status": JobStatus.COMPLETED, "model_url": _MODEL_URL}

    def merge(self, job_id, fields, *, only_if_status_in=None):  # type: ignore[no-untyped-def]
        competing = self.jobs[job_id]
        if competing.status in NON_TERMINAL_STATES:
            super().merge(job_id, self.competing_fields)
        return super().merge(job_id, fields, only_if_status_in=only_if_status_in)


class ReconciliationEngineTests(unittest.TestCase):
    def _snapshot(self, store: InMemoryJobStore) -> JobRecord:
        record = store.get_by_id("job-1")
        assert record is not None
        return record

    def test_completed_observation_sets_model_url_and_completion_time(self) -> None:
        store = _store_with_job()
        engine = ReconciliationEngine(store)

        result = engine.apply_observation("job-1", 2, model_url=_MODEL_URL, thumbnail_url="https://cdn/t.png")

        self.assertTrue(result.applied)
        self.assertEqual(result.previous_status, JobStatus.QUEUING)
        record = self._snapshot(store)
        self.assertEqual(record.status, JobStatus.COMPLETED)
        self.assertEqual(record.model_url, _MODEL_URL)
        self.assertEqual(record.thumbnail_url, "https://cdn/t.png")
        self.assertIsNotNone(record.completed_at)
        self.assertEqual(record.submitted_at, datetime(2026, 3, 1, 12, 0, tzinfo=UTC))

    def test_failed_observation_records_error_message(self) -> None:
        store = _store_with_job()
        engine = ReconciliationEngine(store)

        engine.apply_observation("job-1", 1, error_message="Not enough frames")

        record = self._snapshot(store)
        self.assertEqual(record.status, JobStatus.FAILED)
        self.assertEqual(record.error_message, "Not enough frames")
        self.assertIsNone(record.completed_at)

    def test_failed_observation_without_message_uses_default(self) -> None:
        store = _store_with_job()
        ReconciliationEngine(store).apply_observation("job-1", 1)
        self.assertEqual(self._snapshot(store).error_message, DEFAULT_FAILURE_MESSAGE)

    def test_unknown_local_job_raises_and_creates_nothing(self) -> None:
        store = InMemoryJobStore()
        engine = ReconciliationEngine(store)

        with self.assertRaises(JobNotFoundLocally) as context:
            engine.apply_observation("ghost", 2, model_url=_MODEL_URL, source="webhook")

        self.assertEqual(context.exception.job_id, "ghost")
        self.assertEqual(store.jobs, {})

    def test_terminal_record_is_never_changed(self) -> None:
        for terminal_code in (1, 2, 4):
            for later_code in (-1, 0, 1, 2, 3, 4, 77):
                with self.subTest(terminal_code=terminal_code, later_code=later_code):
                    store = _store_with_job()
                    engine = ReconciliationEngine(store)
                    engine.apply_observation("job-1", terminal_code, model_url=_MODEL_URL, error_message="boom")
                    before = self._snapshot(store)
                    writes = store.job_write_count

                    result = engine.apply_observation(
                        "job-1",
                        later_code,
                        model_url="https://cdn/other.zip",
                        error_message="other",
                    )

                    self.assertFalse(result.applied)
                    self.assertEqual(self._snapshot(store), before)
                    self.assertEqual(store.job_write_count, writes)

    def test_repeating_the_same_observation_is_idempotent(self) -> None:
        store = _store_with_job()
        engine = ReconciliationEngine(store)

        engine.apply_observation("job-1", 2, model_url=_MODEL_URL)
        first = self._snapshot(store)
        second_result = engine.apply_observation("job-1", 2, model_url=_MODEL_URL)

        self.assertFalse(second_result.applied)
        self.assertEqual(self._snapshot(store), first)

    def test_poll_and_webhook_converge_in_either_order(self) -> None:
        orders = (("poll", "webhook"), ("webhook", "poll"))
        outcomes = []
        for first_source, second_source in orders:
            with self.subTest(order=(first_source, second_source)):
                store = _store_with_job(JobStatus.PROCESSING)
                engine = ReconciliationEngine(store)
                engine.apply_observation("job-1", 2, model_url=_MODEL_URL, source=first_source)
                engine.apply_observation("job-1", 2, model_url=_MODEL_URL, source=second_source)
                record = self._snapshot(store)
                outcomes.append((record.status, record.model_url))
        self.assertEqual(outcomes[0], outcomes[1])
        self.assertEqual(outcomes[0], (JobStatus.COMPLETED, _MODEL_URL))

    def test_late_non_terminal_observation_after_completion_is_noop(self) -> None:
        store = _store_with_job(JobStatus.PROCESSING)
        engine = ReconciliationEngine(store)

        engine.apply_observation("job-1", 2, model_url=_MODEL_URL, source="webhook")
        with self.assertLogs("scanboard.services.reconciliation", level="INFO") as captured:
            result = engine.apply_observation("job-1", 0, source="poll")

        self.assertFalse(result.applied)
        self.assertEqual(self._snapshot(store).status, JobStatus.COMPLETED)
        self.assertTrue(any("reconcile.noop_terminal" in line for line in captured.output))

    def test_non_terminal_observations_are_last_write_wins(self) -> None:
        store = _store_with_job(JobStatus.PROCESSING)
        engine = ReconciliationEngine(store)

        with self.assertLogs("scanboard.services.reconciliation", level="WARNING") as captured:
            result = engine.apply_observation("job-1", 3)

        self.assertTrue(result.applied)
        self.assertEqual(self._snapshot(store).status, JobStatus.QUEUING)
        self.assertTrue(any("reconcile.regression" in line for line in captured.output))

    def test_unknown_code_is_applied_as_processing(self) -> None:
        store = _store_with_job()
        result = ReconciliationEngine(store).apply_observation("job-1", 42)

        self.assertTrue(result.applied)
        self.assertEqual(self._snapshot(store).status, JobStatus.PROCESSING)

    def test_model_url_is_not_cleared_by_observation_without_one(self) -> None:
        store = _store_with_job()
        engine = ReconciliationEngine(store)
        store.merge("job-1", {"thumbnail_url": "https://cdn/t.png"})

        engine.apply_observation("job-1", 0)

        self.assertEqual(self._snapshot(store).thumbnail_url, "https://cdn/t.png")

    def test_terminal_write_racing_between_read_and_write_is_kept(self) -> None:
        store = _TerminalRaceStore()
        store.upsert(
            "job-1",
            {"source_name": "chair.mp4", "title": "Chair", "status": JobStatus.PROCESSING},
            defaults_on_insert={"submitted_at": datetime.now(UTC)},
        )
        engine = ReconciliationEngine(store)

        result = engine.apply_observation("job-1", 0, source="poll")

        self.assertFalse(result.applied)
        self.assertEqual(result.record.status, JobStatus.COMPLETED)
        self.assertEqual(self._snapshot(store).model_url, _MODEL_URL)

    def test_racing_terminal_write_with_identical_values_is_not_reported_as_applied(self) -> None:
        store = _TerminalRaceStore()
        store.competing_fields = {"status": JobStatus.FAILED, "error_message": DEFAULT_FAILURE_MESSAGE}
        store.upsert(
            "job-1",
            {"source_name": "chair.mp4", "title": "Chair", "status": JobStatus.PROCESSING},
            defaults_on_insert={"submitted_at": datetime.now(UTC)},
        )
        writes_before = store.job_write_count

        result = ReconciliationEngine(store).apply_observation("job-1", 1, source="webhook")

        self.assertFalse(result.applied)
        self.assertEqual(result.record.status, JobStatus.FAILED)
        self.assertEqual(store.job_write_count, writes_before + 1)

    def test_queuing_to_processing_leaves_completion_time_unset(self) -> None:
        store = _store_with_job()

        result = ReconciliationEngine(store).apply_observation("job-1", 0, source="poll")

        self.assertTrue(result.applied)
        record = self._snapshot(store)
        self.assertEqual(record.status, JobStatus.PROCESSING)
        self.assertIsNone(record.completed_at)
        self.assertIsNone(record.model_url)

    def test_store_failure_propagates_without_partial_write(self) -> None:
        store = _store_with_job()
        store.write_failure_message = "connection reset"
        engine = ReconciliationEngine(store)

        with self.assertRaises(StoreError):
            engine.apply_observation("job-1", 2, model_url=_MODEL_URL)

        self.assertEqual(self._snapshot(store).status, JobStatus.QUEUING)
