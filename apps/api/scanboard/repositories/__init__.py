"""Job record repositories."""

from .base import JobRecord, JobRecordStore, StoreError
from .memory import InMemoryJobStore

__all__ = ["InMemoryJobStore", "JobRecord", "JobRecordStore", "StoreError"]
