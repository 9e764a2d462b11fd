"""Utility functions for CLI output."""

import sys
import time
from typing import Callable, Optional, TextIO

from chunker.chunk import Chunk
from cli.constants import GREEN, RED, RESET
from verifier.check import VerificationReport


class ProgressReporter:
    """Single-line progress display driven by upload observers."""

    def __init__(
        self,
        total_chunks: int,
        stream: Optional[TextIO] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the progress reporter.

        Args:
            total_chunks: Advisory number of chunks expected
            stream: Output stream (defaults to stdout)
            clock: Time source in seconds
        """
        self.total_chunks = max(total_chunks, 1)
        self.stream = stream or sys.stdout
        self._clock = clock
        self._started = clock()
        self.uploaded_chunks = 0
        self.uploaded_bytes = 0
        self.failed_attempts = 0

    async def on_success(self, chunk: Chunk) -> None:
        """Upload-queue success observer."""
        self.uploaded_chunks += 1
        self.uploaded_bytes += len(chunk.payload)
        self._display()

    async def on_failure(self, chunk: Chunk, error: Exception, attempt: int) -> None:
        """Upload-queue failure observer."""
        self.failed_attempts += 1
        self._display()

    def render(self) -> str:
        """
        Format the current progress line.

        Returns:
            Progress line without carriage return
        """
        elapsed = max(self._clock() - self._started, 1e-6)
        percentage = min(100, int(self.uploaded_chunks * 100 / self.total_chunks))
        throughput = format_file_size(int(self.uploaded_bytes / elapsed))
        width = len(str(self.total_chunks))
        line = (
            f"{GREEN}{percentage:3d}%{RESET}  uploaded chunks "
            f"{self.uploaded_chunks:>{width}} / {self.total_chunks}, "
            f"total: {format_file_size(self.uploaded_bytes)}, {throughput}/s"
        )
        if self.failed_attempts:
            line += f", {RED}failed attempts: {self.failed_attempts}{RESET}"
        return line

    def _display(self) -> None:
        self.stream.write(f"\r{self.render()}")
        self.stream.flush()

    def finish(self) -> None:
        """Finalize progress display with newline."""
        self.stream.write('\n')
        self.stream.flush()


class VerificationProgress:
    """Running `chunks: N, success: S, error: E` line for the check command."""

    def __init__(self, total_chunks: int, stream: Optional[TextIO] = None):
        self.total_chunks = total_chunks
        self.stream = stream or sys.stdout

    def render(self, report: VerificationReport) -> str:
        return (
            f"chunks: {self.total_chunks}, success: {report.success_count}, "
            f"error: {report.error_count}"
        )

    def on_result(self, report: VerificationReport) -> None:
        """Verifier result callback."""
        self.stream.write(f"\r{self.render(report)}")
        self.stream.flush()

    def finish(self) -> None:
        self.stream.write('\n')
        self.stream.flush()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
