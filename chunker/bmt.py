"""Binary Merkle tree (BMT) hash used to derive chunk addresses."""

from Cryptodome.Hash import keccak

from common.constants import CHUNK_PAYLOAD_SIZE, SEGMENT_SIZE, SPAN_SIZE


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte keccak-256 digest of data."""
    return keccak.new(data=data, digest_bits=256).digest()


def span_bytes(span: int) -> bytes:
    """Encode a span as 8 little-endian bytes."""
    return span.to_bytes(SPAN_SIZE, "little")


def span_value(data: bytes) -> int:
    """Decode the span prefix of a wire-format chunk."""
    return int.from_bytes(data[:SPAN_SIZE], "little")


def bmt_root(payload: bytes) -> bytes:
    """
    Hash a payload as a binary Merkle tree over 32-byte segments.

    The payload is zero-padded to the full chunk size, so a payload and its
    zero-padded form have the same root.

    Args:
        payload: Up to 4096 bytes

    Returns:
        32-byte tree root
    """
    data = payload.ljust(CHUNK_PAYLOAD_SIZE, b"\x00")
    level = [data[i:i + SEGMENT_SIZE] for i in range(0, CHUNK_PAYLOAD_SIZE, SEGMENT_SIZE)]
    while len(level) > 1:
        level = [keccak256(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


def chunk_address(span: int, payload: bytes) -> bytes:
    """
    Compute the content address of a chunk.

    Args:
        span: Logical byte length covered by the chunk
        payload: Chunk payload (data, or concatenated child addresses)

    Returns:
        32-byte address: keccak256(span || bmt_root(payload))
    """
    return keccak256(span_bytes(span) + bmt_root(payload))
