"""Data models for batch generation runs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import NewType, Optional

from src.magazine_ai.content_generator.models import GenerationRequest, GenerationResult

RequestId = NewType("RequestId", str)

# Placeholder shown between "started" and "finished"
PROCESSING_PERCENT = 10


def make_request_id(index: int) -> RequestId:
    """Stable id for the request at a position in the submitted list."""
    return RequestId(f"request-{index}")


class BatchError(RuntimeError):
    """Raised when a batch fails as a whole rather than per request."""


class ProgressStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class ProgressEntry:
    """Live progress of one request. Updated in place during a run."""
    request_id: RequestId
    status: ProgressStatus = ProgressStatus.PENDING
    percent_complete: int = 0
    current_block: Optional[str] = None
    error: Optional[str] = None
    result: Optional[GenerationResult] = None

    def copy(self) -> ProgressEntry:
        return replace(self)


@dataclass
class BatchState:
    """Working set of the latest run, kept for retrying failed requests."""
    requests: dict[RequestId, GenerationRequest] = field(default_factory=dict)
    progress: dict[RequestId, ProgressEntry] = field(default_factory=dict)
    results: dict[RequestId, GenerationResult] = field(default_factory=dict)

    def clear(self) -> None:
        self.requests.clear()
        self.progress.clear()
        self.results.clear()
