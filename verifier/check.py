"""Re-fetch uploaded chunks and compare them with the locally cached copies."""

import asyncio
import csv
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Union

from common.constants import DEFAULT_VERIFY_PARALLELISM, SPAN_SIZE
from common.exceptions import TransientUploadError, VerificationMismatchError
from common.logging_config import get_logger
from uploader.cache import ChunkCache
from verifier.ledger import ErrorLedger

logger = get_logger(__name__)


@dataclass
class VerificationReport:
    """Round-trip latency of every checked chunk plus the ledger of failures."""
    latencies: Dict[str, float] = field(default_factory=dict)
    errors: ErrorLedger = field(default_factory=ErrorLedger)
    reasons: Dict[str, str] = field(default_factory=dict)

    @property
    def checked_count(self) -> int:
        return len(self.latencies)

    @property
    def success_count(self) -> int:
        return len(self.latencies) - len(self.errors)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def save_report(self, path: Union[str, Path]) -> None:
        """Write `address,latency_ms,status` rows; status is `ok` or the failure reason."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            for address, latency in sorted(self.latencies.items()):
                writer.writerow([address, f"{latency:.1f}", self.reasons.get(address, 'ok')])


ResultCallback = Callable[[VerificationReport], None]


async def verify_chunk(address: str, cache: ChunkCache, store: Any) -> None:
    """
    Verify one chunk.

    Args:
        address: Hex address of a cached chunk
        cache: Local chunk cache holding the expected bytes
        store: Object with `is_retrievable` and `download_chunk`

    Raises:
        VerificationMismatchError: If the chunk is missing, unreachable or differs
    """
    try:
        expected = cache.read_chunk(address)
    except OSError as e:
        raise VerificationMismatchError(address, f"local copy unreadable ({e})") from e

    try:
        if not await store.is_retrievable(address):
            raise VerificationMismatchError(address, "not retrievable")
        remote = await store.download_chunk(address)
    except TransientUploadError as e:
        raise VerificationMismatchError(address, f"retrieve error ({e})") from e

    if not cache.include_span:
        remote = remote[SPAN_SIZE:]
    if remote != expected:
        logger.debug(f"Content mismatch for {address}: remote={len(remote)}B local={len(expected)}B")
        raise VerificationMismatchError(address, "content error")


async def verify(
    addresses: Iterable[str],
    cache: ChunkCache,
    store: Any,
    parallelism: int = DEFAULT_VERIFY_PARALLELISM,
    on_result: Optional[ResultCallback] = None
) -> VerificationReport:
    """
    Verify a batch of chunks without stopping on errors.

    Args:
        addresses: Hex addresses to check (a whole cache or a previous ledger)
        cache: Local chunk cache
        store: Store client
        parallelism: Maximum concurrent checks
        on_result: Optional callable(report) invoked after each check

    Returns:
        VerificationReport with latencies and the error ledger
    """
    report = VerificationReport()
    slots = asyncio.Semaphore(parallelism)

    async def check(address: str) -> None:
        async with slots:
            started = time.monotonic()
            try:
                await verify_chunk(address, cache, store)
            except VerificationMismatchError as e:
                logger.error(f"{e.reason}: {address}")
                report.errors.add(address)
                report.reasons[address] = e.reason
            report.latencies[address] = (time.monotonic() - started) * 1000.0
        if on_result:
            on_result(report)

    await asyncio.gather(*(check(address) for address in addresses))

    logger.info(f"Verified chunks: success={report.success_count} error={report.error_count}")
    return report
