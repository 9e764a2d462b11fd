"""Persistent set of chunk addresses that failed upload or verification."""

import json
from pathlib import Path
from typing import Iterable, List, Union

from common.logging_config import get_logger
from common.types import from_hex

logger = get_logger(__name__)


class ErrorLedger:
    """
    Set of hex addresses, saved as a sorted JSON array so a later pass can
    retry exactly the failed subset.
    """

    def __init__(self, addresses: Iterable[str] = ()):
        self._addresses = set(addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __contains__(self, address: str) -> bool:
        return address in self._addresses

    def add(self, address: str) -> None:
        self._addresses.add(address)

    def discard(self, address: str) -> None:
        self._addresses.discard(address)

    @property
    def addresses(self) -> List[str]:
        return sorted(self._addresses)

    def save(self, path: Union[str, Path]) -> None:
        """Write the ledger as a JSON array."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.addresses, f, indent=2)
        logger.info(f"Saved {len(self)} failed addresses to {path}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ErrorLedger':
        """
        Read a ledger written by save().

        Raises:
            ValueError: If the file is not a JSON array of addresses
        """
        with open(path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Ledger {path} is not a JSON array")
        for address in data:
            if not isinstance(address, str):
                raise ValueError(f"Invalid ledger entry: {address!r}")
            from_hex(address)
        return cls(data)
