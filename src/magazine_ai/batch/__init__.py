# Batch — concurrency-bounded generation runs
"""
Runs many generation requests in windows of a fixed size, tracking
per-request progress and supporting retry of failed requests.
"""

from .models import (
    BatchError,
    BatchState,
    ProgressEntry,
    ProgressStatus,
    RequestId,
    make_request_id,
)
from .orchestrator import BatchOrchestrator

__all__ = [
    "BatchError",
    "BatchState",
    "ProgressEntry",
    "ProgressStatus",
    "RequestId",
    "make_request_id",
    "BatchOrchestrator",
]
