"""Shared helpers for the textual form of chunk addresses."""

from common.constants import ADDRESS_SIZE


def from_hex(value: str) -> bytes:
    """
    Parse a hex address.

    Args:
        value: 64 hex characters, optionally prefixed with 0x

    Returns:
        32 address bytes

    Raises:
        ValueError: If the string is not a valid address
    """
    if value.startswith("0x"):
        value = value[2:]
    address = bytes.fromhex(value)
    if len(address) != ADDRESS_SIZE:
        raise ValueError(f"Invalid address length {len(address)}: {value}")
    return address
