"""Local on-disk copies of uploaded chunks, one `<address-hex>` file per chunk."""

import asyncio
from pathlib import Path
from typing import List, Union

from chunker.chunk import Chunk
from common.types import from_hex


class ChunkCache:
    """
    Stores uploaded chunks under a data directory.

    Files hold span||payload by default, or the bare payload when
    include_span is False.
    """

    def __init__(self, directory: Union[str, Path], include_span: bool = True):
        self.directory = Path(directory)
        self.include_span = include_span

    def ensure_directory(self) -> None:
        """Ensure the cache directory exists."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def get_chunk_path(self, address: str) -> Path:
        return self.directory / address

    def write_chunk(self, chunk: Chunk) -> Path:
        """
        Write a chunk to disk.

        Args:
            chunk: Chunk to store

        Returns:
            Path of the written file
        """
        self.ensure_directory()
        filepath = self.get_chunk_path(chunk.hex)
        filepath.write_bytes(chunk.data() if self.include_span else chunk.payload)
        return filepath

    async def store(self, chunk: Chunk) -> None:
        """Upload-queue success observer; the write runs in a worker thread."""
        await asyncio.to_thread(self.write_chunk, chunk)

    def read_chunk(self, address: str) -> bytes:
        """
        Read a cached chunk in the configured format.

        Raises:
            FileNotFoundError: If the chunk is not cached
        """
        return self.get_chunk_path(address).read_bytes()

    def list_addresses(self) -> List[str]:
        """
        List cached chunk addresses.

        Returns:
            Sorted hex addresses; files that are not addresses are skipped
        """
        if not self.directory.exists():
            return []

        addresses = []
        for filepath in self.directory.iterdir():
            if not filepath.is_file():
                continue
            try:
                from_hex(filepath.name)
            except ValueError:
                continue
            addresses.append(filepath.name)
        return sorted(addresses)
