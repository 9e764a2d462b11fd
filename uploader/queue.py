"""Bounded-concurrency upload queue with per-chunk retries."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from chunker.chunk import Chunk
from common.constants import DEFAULT_PARALLELISM, DEFAULT_RETRIES
from common.exceptions import AddressMismatchError, ExhaustedRetryError, TransientUploadError
from common.logging_config import get_logger

logger = get_logger(__name__)

SuccessCallback = Callable[[Chunk], Awaitable[None]]
FailureCallback = Callable[[Chunk, Exception, int], Awaitable[None]]


@dataclass(frozen=True)
class UploadOutcome:
    """Terminal result of one upload task."""
    address: str
    attempts: int
    succeeded: bool
    error: Optional[ExhaustedRetryError] = None


@dataclass(frozen=True)
class UploadSummary:
    """Outcomes folded after drain."""
    uploaded: int
    attempts: int
    failed: Tuple[str, ...] = ()

    @property
    def retried(self) -> int:
        return self.attempts - self.uploaded - len(self.failed)


class UploadQueue:
    """
    Uploads chunks with at most `parallelism` tasks in flight.

    enqueue() acquires a permit before scheduling a task and the task releases
    it when it reaches a terminal state, so a producer awaiting enqueue() is
    suspended while the queue is saturated. A chunk whose success observer
    raises (e.g. the local cache is full) is recorded as failed, not retried.

    Usage:
        async with UploadQueue(store, parallelism=8) as queue:
            await queue.enqueue(chunk)
            summary = await queue.drain()
    """

    def __init__(
        self,
        store: Any,
        parallelism: int = DEFAULT_PARALLELISM,
        retries: int = DEFAULT_RETRIES,
        on_success: Optional[SuccessCallback] = None,
        on_failure: Optional[FailureCallback] = None,
        retry_delay: float = 0.0
    ):
        """
        Args:
            store: Object with `async upload_chunk(data: bytes) -> str`
            parallelism: Maximum tasks in flight or waiting for the store
            retries: Attempts per chunk before it is exhausted
            on_success: Awaited after each chunk is accepted
            on_failure: Awaited after each failed attempt
            retry_delay: Base delay for exponential back-off between attempts
        """
        if parallelism < 1:
            raise ValueError("parallelism must be >= 1")
        if retries < 1:
            raise ValueError("retries must be >= 1")
        self.store = store
        self.parallelism = parallelism
        self.retries = retries
        self.retry_delay = retry_delay
        self.on_success = on_success
        self.on_failure = on_failure

        self._slots = asyncio.Semaphore(parallelism)
        self._tasks: Set[asyncio.Task] = set()
        self._outcomes: List[UploadOutcome] = []
        self._exhausted: List[ExhaustedRetryError] = []

        self.in_flight = 0
        self.peak_in_flight = 0

    async def __aenter__(self) -> 'UploadQueue':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.cancel()

    async def enqueue(self, chunk: Chunk) -> None:
        """
        Schedule a chunk for upload, suspending while all slots are taken.

        Raises:
            ExhaustedRetryError: If an earlier chunk already exhausted its retries
        """
        if self._exhausted:
            raise self._exhausted[0]

        await self._slots.acquire()
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)

        task = asyncio.create_task(self._run(chunk))
        self._tasks.add(task)
        task.add_done_callback(self._release)

    def _release(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self.in_flight -= 1
        self._slots.release()

    async def _run(self, chunk: Chunk) -> None:
        outcome = await self._upload_with_retries(chunk)
        self._outcomes.append(outcome)
        if outcome.error is not None:
            self._exhausted.append(outcome.error)

    async def _upload_with_retries(self, chunk: Chunk) -> UploadOutcome:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                await self._upload(chunk)
            except TransientUploadError as e:
                last_error = e
                logger.warning(
                    f"Upload failed (attempt {attempt}/{self.retries}): chunk={chunk.hex} error={e}"
                )
                if self.on_failure:
                    await self.on_failure(chunk, e, attempt)
                if attempt < self.retries and self.retry_delay:
                    await asyncio.sleep(self.retry_delay * 2 ** (attempt - 1))
                continue

            if self.on_success:
                try:
                    await self.on_success(chunk)
                except Exception as e:
                    logger.error(f"Success observer failed for chunk {chunk.hex}: {e}")
                    error = ExhaustedRetryError(chunk.hex, attempt, e)
                    return UploadOutcome(address=chunk.hex, attempts=attempt, succeeded=False, error=error)
            return UploadOutcome(address=chunk.hex, attempts=attempt, succeeded=True)

        logger.error(f"Chunk {chunk.hex} exhausted {self.retries} attempts: {last_error}")
        error = ExhaustedRetryError(chunk.hex, self.retries, last_error)
        return UploadOutcome(address=chunk.hex, attempts=self.retries, succeeded=False, error=error)

    async def _upload(self, chunk: Chunk) -> None:
        expected = chunk.hex
        actual = await self.store.upload_chunk(chunk.data())
        if actual != expected:
            raise AddressMismatchError(expected, actual)

    async def drain(self) -> UploadSummary:
        """
        Wait until every enqueued chunk is uploaded or exhausted.

        Returns:
            Summary of all outcomes so far

        Raises:
            ExhaustedRetryError: First exhausted chunk, with every failed address in `failed`
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

        summary = UploadSummary(
            uploaded=sum(1 for o in self._outcomes if o.succeeded),
            attempts=sum(o.attempts for o in self._outcomes),
            failed=tuple(o.address for o in self._outcomes if not o.succeeded),
        )
        logger.info(
            f"Queue drained: uploaded={summary.uploaded} failed={len(summary.failed)} retried={summary.retried}"
        )

        if self._exhausted:
            first = self._exhausted[0]
            raise ExhaustedRetryError(first.address, first.attempts, first.last_error, failed=summary.failed)
        return summary

    async def cancel(self) -> None:
        """Cancel outstanding uploads."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.warning(f"Cancelled {len(tasks)} outstanding uploads")
