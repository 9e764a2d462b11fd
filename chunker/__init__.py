"""Content-addressed chunking: BMT addresses, chunks and the streaming chunker."""

from chunker.bmt import chunk_address
from chunker.chunk import Chunk
from chunker.streaming import StreamingChunker, chunk_bytes, estimate_chunk_count

__all__ = [
    "chunk_address",
    "Chunk",
    "StreamingChunker",
    "chunk_bytes",
    "estimate_chunk_count",
]
