"""Batch orchestrator — windowed concurrent generation with progress and retry.

Requests run in consecutive windows of at most concurrency_limit requests.
All requests of a window run concurrently, and the next window starts only
after every request in the current one has settled. Progress entries and
results are keyed by request id, so concurrent tasks never write the same
key.

Usage:
    orchestrator = BatchOrchestrator(generator, on_progress=print)
    results = await orchestrator.run(requests, concurrency_limit=2)
    results = await orchestrator.retry_failed()
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional

from src.common.config import Settings
from src.common.logging import setup_logging
from src.magazine_ai.content_generator.generator import SectionContentGenerator
from src.magazine_ai.content_generator.models import GenerationRequest, GenerationResult

from .models import (
    PROCESSING_PERCENT,
    BatchError,
    BatchState,
    ProgressEntry,
    ProgressStatus,
    RequestId,
    make_request_id,
)

logger = setup_logging(module_name="batch.orchestrator")

ProgressMap = dict[RequestId, ProgressEntry]
ResultMap = dict[RequestId, GenerationResult]


async def _emit(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Invoke a plain or coroutine callback."""
    if callback is None:
        return
    outcome = callback(*args)
    if inspect.isawaitable(outcome):
        await outcome


class BatchOrchestrator:
    """Runs generation requests under a concurrency cap.

    Args:
        generator: Generator invoked once per request attempt.
        concurrency_limit: Default window size; defaults to settings.
        request_timeout: Seconds allowed per request; defaults to settings,
            0 disables the timeout.
        on_progress: Called with a snapshot of the progress map on every
            status change.
        on_complete: Called once per run with the full result map.
        on_error: Called with a BatchError when a run fails as a whole.
        settings: Defaults to settings loaded from config/settings.yaml.
    """

    def __init__(
        self,
        generator: SectionContentGenerator,
        concurrency_limit: int | None = None,
        request_timeout: float | None = None,
        on_progress: Optional[Callable[[ProgressMap], Any]] = None,
        on_complete: Optional[Callable[[ResultMap], Any]] = None,
        on_error: Optional[Callable[[BatchError], Any]] = None,
        settings: Settings | None = None,
    ):
        settings = settings or Settings.load()
        self.generator = generator
        self.concurrency_limit = (
            settings.generation.concurrency_limit if concurrency_limit is None else concurrency_limit
        )
        if request_timeout is None:
            request_timeout = settings.generation.request_timeout_seconds
        self.request_timeout = request_timeout or None
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.on_error = on_error

        self._state = BatchState()
        self._last_limit = self.concurrency_limit

    # --- Public API ---

    async def run(
        self,
        requests: list[GenerationRequest],
        concurrency_limit: int | None = None,
    ) -> ResultMap:
        """Generate every request, window by window.

        Args:
            requests: Requests in submission order; ids are derived from
                their positions
            concurrency_limit: Window size for this run

        Returns:
            Mapping of request id to GenerationResult

        Raises:
            TypeError: If requests is not a list
            ValueError: If concurrency_limit is below 1
            BatchError: If the run fails as a whole
        """
        if not isinstance(requests, list):
            raise TypeError(f"requests must be a list, got {type(requests).__name__}")
        limit = self.concurrency_limit if concurrency_limit is None else concurrency_limit
        if limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {limit}")
        if not requests:
            return {}

        self._state = BatchState()
        self._last_limit = limit
        request_ids: list[RequestId] = []
        for index, request in enumerate(requests):
            request_id = make_request_id(index)
            self._state.requests[request_id] = request
            self._state.progress[request_id] = ProgressEntry(request_id=request_id)
            request_ids.append(request_id)

        logger.info("Starting batch of %d request(s), concurrency %d", len(requests), limit)
        return await self._execute(request_ids, limit)

    async def retry_failed(self) -> ResultMap:
        """Re-run only the requests whose last attempt ended in error.

        Retried requests keep their original ids and original request
        snapshot; successful results are left untouched.

        Returns:
            The full result map after the retry
        """
        failed = self.failed_request_ids()
        if not failed:
            logger.info("No failed requests to retry")
            return dict(self._state.results)

        logger.info("Retrying %d failed request(s)", len(failed))
        for request_id in failed:
            self._state.progress[request_id] = ProgressEntry(request_id=request_id)
            self._state.results.pop(request_id, None)

        return await self._execute(failed, self._last_limit)

    def reset(self) -> None:
        """Clear all progress and results. In-flight work is not cancelled."""
        self._state.clear()

    @property
    def progress(self) -> ProgressMap:
        """Snapshot of the progress map."""
        return {rid: entry.copy() for rid, entry in self._state.progress.items()}

    @property
    def results(self) -> ResultMap:
        return dict(self._state.results)

    def failed_request_ids(self) -> list[RequestId]:
        return [
            rid
            for rid, entry in self._state.progress.items()
            if entry.status == ProgressStatus.ERROR
        ]

    def summary(self) -> dict[str, int]:
        """Request counts per progress status."""
        counts = {status.value: 0 for status in ProgressStatus}
        for entry in self._state.progress.values():
            counts[entry.status.value] += 1
        return counts

    # --- Execution ---

    async def _execute(self, request_ids: list[RequestId], limit: int) -> ResultMap:
        try:
            await self._emit_progress()
            for start in range(0, len(request_ids), limit):
                window = request_ids[start:start + limit]
                logger.debug("Running window %s", window)
                outcomes = await asyncio.gather(
                    *(self._run_one(request_id) for request_id in window),
                    return_exceptions=True,
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
        except Exception as e:
            error = BatchError(f"Batch generation failed: {e}")
            logger.error(str(error))
            await _emit(self.on_error, error)
            raise error from e

        results = dict(self._state.results)
        summary = self.summary()
        logger.info(
            "Batch finished: %d completed, %d failed",
            summary[ProgressStatus.COMPLETED.value],
            summary[ProgressStatus.ERROR.value],
        )
        await _emit(self.on_complete, results)
        return results

    async def _run_one(self, request_id: RequestId) -> None:
        request = self._state.requests[request_id]
        entry = self._state.progress[request_id]

        entry.status = ProgressStatus.PROCESSING
        entry.percent_complete = PROCESSING_PERCENT
        try:
            await self._emit_progress()
        except Exception as e:
            # Leave the request in ERROR so retry_failed can pick it up
            self._fail(request_id, request, f"Progress callback failed: {e}")
            raise

        async def on_block(block_name: str) -> None:
            entry.current_block = block_name
            await self._emit_progress()

        try:
            call = self.generator.generate(request, on_block=on_block)
            if self.request_timeout:
                result = await asyncio.wait_for(call, timeout=self.request_timeout)
            else:
                result = await call
        except asyncio.TimeoutError:
            self._fail(request_id, request, f"Request timed out after {self.request_timeout}s")
        except Exception as e:
            self._fail(request_id, request, str(e))
        else:
            self._state.results[request_id] = result
            entry.result = result
            if result.success:
                entry.status = ProgressStatus.COMPLETED
                entry.percent_complete = 100
                entry.error = None
            else:
                entry.status = ProgressStatus.ERROR
                entry.percent_complete = 0
                entry.error = result.error
                logger.warning("%s failed: %s", request_id, result.error)

        await self._emit_progress()

    def _fail(self, request_id: RequestId, request: GenerationRequest, message: str) -> None:
        logger.error("%s (%s) failed: %s", request_id, request.section_type, message)
        result = GenerationResult(
            section_type=request.section_type,
            success=False,
            error=message,
        )
        self._state.results[request_id] = result
        entry = self._state.progress[request_id]
        entry.status = ProgressStatus.ERROR
        entry.percent_complete = 0
        entry.error = message
        entry.result = result

    async def _emit_progress(self) -> None:
        await _emit(self.on_progress, self.progress)
