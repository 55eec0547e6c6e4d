"""Vendor status code mapping and lifecycle graph tests."""

from __future__ import annotations

import unittest

from scanboard.domain.job_fsm import (
    NON_TERMINAL_STATES,
    TERMINAL_STATES,
    allowed_next_statuses,
    is_forward_transition,
    is_terminal,
)
from scanboard.domain.status_mapper import UNKNOWN_CODE_FALLBACK, map_vendor_status
from scanboard.schemas.job import JobStatus


class StatusMapperTests(unittest.TestCase):
    def test_known_vendor_codes_map_to_local_statuses(self) -> None:
        expected = {
            -1: JobStatus.UPLOADING,
            0: JobStatus.PROCESSING,
            1: JobStatus.FAILED,
            2: JobStatus.COMPLETED,
            3: JobStatus.QUEUING,
            4: JobStatus.EXPIRED,
        }
        for code, status in expected.items():
            with self.subTest(code=code):
                self.assertEqual(map_vendor_status(code), status)

    def test_unknown_codes_fall_back_to_processing_and_warn(self) -> None:
        self.assertEqual(UNKNOWN_CODE_FALLBACK, JobStatus.PROCESSING)
        for code in (5, 99, -2):
            with self.subTest(code=code):
                with self.assertLogs("scanboard.domain.status_mapper", level="WARNING") as captured:
                    self.assertEqual(map_vendor_status(code), JobStatus.PROCESSING)
                self.assertIn(f"vendor_code={code}", captured.output[0])

    def test_unknown_code_never_maps_to_terminal(self) -> None:
        self.assertFalse(is_terminal(map_vendor_status(12345)))


class JobFsmTests(unittest.TestCase):
    def test_terminal_and_non_terminal_sets_partition_statuses(self) -> None:
        self.assertEqual(TERMINAL_STATES, {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.EXPIRED})
        self.assertEqual(TERMINAL_STATES | NON_TERMINAL_STATES, set(JobStatus))
        self.assertFalse(TERMINAL_STATES & NON_TERMINAL_STATES)

    def test_forward_transitions_along_lifecycle(self) -> None:
        allowed_pairs = [
            (JobStatus.UPLOADING, JobStatus.QUEUING),
            (JobStatus.QUEUING, JobStatus.PROCESSING),
            (JobStatus.PROCESSING, JobStatus.PROCESSING),
            (JobStatus.PROCESSING, JobStatus.COMPLETED),
            (JobStatus.QUEUING, JobStatus.FAILED),
            (JobStatus.UPLOADING, JobStatus.EXPIRED),
        ]
        for old_status, new_status in allowed_pairs:
            with self.subTest(old_status=old_status, new_status=new_status):
                self.assertTrue(is_forward_transition(old_status, new_status))

    def test_backward_moves_are_not_forward(self) -> None:
        self.assertFalse(is_forward_transition(JobStatus.PROCESSING, JobStatus.QUEUING))
        self.assertFalse(is_forward_transition(JobStatus.QUEUING, JobStatus.UPLOADING))

    def test_terminal_states_have_no_successors(self) -> None:
        for terminal_status in TERMINAL_STATES:
            with self.subTest(terminal_status=terminal_status):
                self.assertEqual(allowed_next_statuses(terminal_status), [])
                self.assertFalse(is_forward_transition(terminal_status, terminal_status))
                self.assertFalse(is_forward_transition(terminal_status, JobStatus.PROCESSING))

    def test_allowed_next_statuses_are_sorted(self) -> None:
        self.assertEqual(
            allowed_next_statuses(JobStatus.PROCESSING),
            [JobStatus.COMPLETED, JobStatus.EXPIRED, JobStatus.FAILED],
        )
