"""Job lifecycle transition rules."""

from scanboard.schemas.job import JobStatus

TERMINAL_STATES: frozenset[JobStatus] = frozenset(
    {
        JobStatus.COMPLETED,
        JobStatus.FAILED,
        JobStatus.EXPIRED,
    }
)

NON_TERMINAL_STATES: frozenset[JobStatus] = frozenset(set(JobStatus) - TERMINAL_STATES)

_ALLOWED_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.UPLOADING: {
        JobStatus.QUEUING,
        JobStatus.PROCESSING,
        JobStatus.COMPLETED,
        JobStatus.FAILED,
        JobStatus.EXPIRED,
    },
    JobStatus.QUEUING: {JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.EXPIRED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.EXPIRED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
    JobStatus.EXPIRED: set(),
}


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATES


def allowed_next_statuses(status: JobStatus) -> list[JobStatus]:
    """Return deterministically ordered allowed successors for a status."""
    return sorted(_ALLOWED_TRANSITIONS.get(status, set()), key=lambda s: s.value)


def is_forward_transition(old_status: JobStatus, new_status: JobStatus) -> bool:
    """True when the move follows the lifecycle graph or repeats a non-terminal status."""
    if old_status in TERMINAL_STATES:
        return False
    if old_status == new_status:
        return True
    return new_status in _ALLOWED_TRANSITIONS.get(old_status, set())
