"""Immutable chunk value with a lazily derived address."""

from dataclasses import dataclass
from functools import cached_property

from chunker.bmt import chunk_address, span_bytes, span_value
from common.constants import CHUNK_PAYLOAD_SIZE, SPAN_SIZE
from common.exceptions import InvalidChunkError


@dataclass(frozen=True)
class Chunk:
    """
    A span plus at most 4096 bytes of payload.

    For leaf chunks span equals the payload length; for intermediate chunks the
    payload is a run of child addresses and span is the sum of the child spans.
    """
    span: int
    payload: bytes

    def __post_init__(self):
        if len(self.payload) > CHUNK_PAYLOAD_SIZE:
            raise InvalidChunkError(
                f"Payload of {len(self.payload)} bytes exceeds {CHUNK_PAYLOAD_SIZE}"
            )
        if self.span < 0:
            raise InvalidChunkError(f"Negative span {self.span}")

    @classmethod
    def leaf(cls, payload: bytes) -> 'Chunk':
        """Build a data chunk whose span is its own length."""
        return cls(span=len(payload), payload=bytes(payload))

    @classmethod
    def from_data(cls, data: bytes) -> 'Chunk':
        """Parse the span||payload wire form."""
        if len(data) < SPAN_SIZE:
            raise InvalidChunkError(f"Chunk data too short: {len(data)} bytes")
        return cls(span=span_value(data), payload=bytes(data[SPAN_SIZE:]))

    @cached_property
    def address(self) -> bytes:
        return chunk_address(self.span, self.payload)

    @property
    def hex(self) -> str:
        return self.address.hex()

    def span_bytes(self) -> bytes:
        return span_bytes(self.span)

    def data(self) -> bytes:
        """Return the span||payload wire form."""
        return self.span_bytes() + self.payload

    def __repr__(self) -> str:
        return f"Chunk(span={self.span}, payload={len(self.payload)}B, address={self.hex[:16]}...)"
