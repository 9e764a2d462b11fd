"""
Streaming Merkle-tree chunker.

Turns a byte source of unknown length into a tree of chunks while holding at
most one 4096-byte address buffer per tree level. Leaf chunks are emitted as
soon as they are read, intermediate chunks as soon as their level buffer fills
or the source ends.
"""

import asyncio
import math
from typing import Awaitable, BinaryIO, Callable, List, Tuple

from chunker.chunk import Chunk
from common.constants import ADDRESS_SIZE, BRANCHES, CHUNK_PAYLOAD_SIZE
from common.exceptions import StreamReadError
from common.logging_config import get_logger

logger = get_logger(__name__)

ReadFn = Callable[[int], Awaitable[bytes]]
EmitFn = Callable[[Chunk], Awaitable[None]]


class _LevelBuffer:
    """Pending child addresses for one tree level."""

    def __init__(self):
        self.addresses = bytearray()
        self.span = 0

    @property
    def count(self) -> int:
        return len(self.addresses) // ADDRESS_SIZE

    @property
    def full(self) -> bool:
        return len(self.addresses) == CHUNK_PAYLOAD_SIZE

    def add(self, chunk: Chunk) -> None:
        self.addresses += chunk.address
        self.span += chunk.span

    def first(self) -> bytes:
        return bytes(self.addresses[:ADDRESS_SIZE])

    def close(self) -> Chunk:
        parent = Chunk(span=self.span, payload=bytes(self.addresses))
        self.addresses = bytearray()
        self.span = 0
        return parent


class StreamingChunker:
    """
    Builds the chunk tree for one byte stream.

    Usage:
        chunker = StreamingChunker(queue.enqueue)
        address = await chunker.chunk(file_reader(handle))
    """

    def __init__(self, emit: EmitFn):
        """
        Args:
            emit: Awaited for every chunk produced; may suspend for backpressure
        """
        self._emit = emit
        self._levels: List[_LevelBuffer] = []
        self.chunk_count = 0
        self.span = 0

    async def chunk(self, read: ReadFn) -> bytes:
        """
        Consume the stream and return the root address.

        Args:
            read: Async function returning up to max_bytes, or b'' at end of stream

        Returns:
            32-byte root address

        Raises:
            StreamReadError: If the source fails; already emitted chunks are orphaned
        """
        self._levels = []
        self.chunk_count = 0
        self.span = 0

        while True:
            payload = await self._read_full(read)
            if not payload and self.chunk_count > 0:
                break

            leaf = Chunk.leaf(payload)
            self.span += leaf.span
            await self._send(leaf)
            await self._push(0, leaf)

            if len(payload) < CHUNK_PAYLOAD_SIZE:
                break

        return await self._finalize()

    async def _read_full(self, read: ReadFn) -> bytes:
        """Coalesce short reads so every leaf but the last is full."""
        buffer = bytearray()
        while len(buffer) < CHUNK_PAYLOAD_SIZE:
            try:
                data = await read(CHUNK_PAYLOAD_SIZE - len(buffer))
            except OSError as e:
                raise StreamReadError(f"Failed to read source: {e}") from e
            if not data:
                break
            buffer += data
        return bytes(buffer)

    async def _send(self, chunk: Chunk) -> None:
        self.chunk_count += 1
        await self._emit(chunk)

    async def _push(self, level: int, chunk: Chunk) -> None:
        if level == len(self._levels):
            self._levels.append(_LevelBuffer())
        buffer = self._levels[level]
        buffer.add(chunk)
        if buffer.full:
            parent = buffer.close()
            await self._send(parent)
            await self._push(level + 1, parent)

    async def _finalize(self) -> bytes:
        level = 0
        while True:
            buffer = self._levels[level]
            if level == len(self._levels) - 1 and buffer.count == 1:
                root = buffer.first()
                logger.debug(
                    f"Chunked {self.span} bytes into {self.chunk_count} chunks, root={root.hex()}"
                )
                return root
            if buffer.count:
                parent = buffer.close()
                await self._send(parent)
                await self._push(level + 1, parent)
            level += 1


def bytes_reader(data: bytes) -> ReadFn:
    """Adapt an in-memory buffer to the async read contract."""
    view = memoryview(data)
    offset = 0

    async def read(max_bytes: int) -> bytes:
        nonlocal offset
        piece = bytes(view[offset:offset + max_bytes])
        offset += len(piece)
        return piece

    return read


def file_reader(handle: BinaryIO) -> ReadFn:
    """Adapt an open binary file; blocking reads run in a worker thread."""

    async def read(max_bytes: int) -> bytes:
        return await asyncio.to_thread(handle.read, max_bytes)

    return read


async def chunk_bytes(data: bytes) -> Tuple[bytes, List[Chunk]]:
    """
    Chunk an in-memory buffer.

    Returns:
        Tuple of (root address, chunks in emission order)
    """
    chunks: List[Chunk] = []

    async def collect(chunk: Chunk) -> None:
        chunks.append(chunk)

    address = await StreamingChunker(collect).chunk(bytes_reader(data))
    return address, chunks


def estimate_chunk_count(size: int, with_manifest: bool = False) -> int:
    """
    Advisory number of chunks for a payload of the given size.

    Args:
        size: Payload size in bytes
        with_manifest: Add one chunk for a manifest node

    Returns:
        Leaf count plus every intermediate level up to the root
    """
    count = max(1, math.ceil(size / CHUNK_PAYLOAD_SIZE))
    total = count
    while count > 1:
        count = math.ceil(count / BRANCHES)
        total += count
    if with_manifest:
        total += 1
    return total
