"""
Path trie manifest serialized as content-addressed chunks.

Forks are collected first and built into a prefix-compressed node tree in
sorted path order, so the same fork set always yields the same tree. Each node
is serialized into a mantaray-style byte layout and written through a storage
sink, children before parents.
"""

import json
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, Tuple

from chunker.bmt import keccak256
from chunker.streaming import chunk_bytes
from common.constants import ADDRESS_SIZE, INDEX_DOCUMENT_KEY, SEGMENT_SIZE, ZERO_ADDRESS
from common.exceptions import SerializationDeterminismViolation
from common.logging_config import get_logger

logger = get_logger(__name__)

MAX_PREFIX_LENGTH = 30
PATH_SEPARATOR = ord("/")
VERSION_HASH = keccak256(b"mantaray:0.2")[:31]
OBFUSCATION_KEY = bytes(32)

TYPE_VALUE = 2
TYPE_EDGE = 4
TYPE_WITH_PATH_SEPARATOR = 8
TYPE_WITH_METADATA = 16

StorageSink = Callable[[bytes], Awaitable[bytes]]


@dataclass
class ManifestNode:
    """One trie node: an optional entry, its metadata and outgoing forks."""
    entry: Optional[bytes] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    forks: Dict[int, 'Fork'] = field(default_factory=dict)

    def node_type(self, prefix: bytes) -> int:
        node_type = 0
        if self.entry is not None:
            node_type |= TYPE_VALUE
        if self.forks:
            node_type |= TYPE_EDGE
        if PATH_SEPARATOR in prefix:
            node_type |= TYPE_WITH_PATH_SEPARATOR
        if self.metadata:
            node_type |= TYPE_WITH_METADATA
        return node_type

    def add_fork(self, path: bytes, entry: bytes, metadata: Dict[str, str]) -> None:
        """Insert path below this node, splitting edges on partial matches."""
        if not path:
            self.entry = entry
            self.metadata = dict(metadata)
            return

        fork = self.forks.get(path[0])
        if fork is None:
            child = ManifestNode()
            prefix = path[:MAX_PREFIX_LENGTH]
            child.add_fork(path[len(prefix):], entry, metadata)
            self.forks[path[0]] = Fork(prefix, child)
            return

        common = _common_prefix_length(fork.prefix, path)
        if common == len(fork.prefix):
            fork.node.add_fork(path[common:], entry, metadata)
            return

        intermediate = ManifestNode()
        rest = fork.prefix[common:]
        intermediate.forks[rest[0]] = Fork(rest, fork.node)
        self.forks[path[0]] = Fork(fork.prefix[:common], intermediate)
        intermediate.add_fork(path[common:], entry, metadata)


@dataclass
class Fork:
    """Edge from a node to a child, labelled with up to 30 path bytes."""
    prefix: bytes
    node: ManifestNode


def _common_prefix_length(a: bytes, b: bytes) -> int:
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length


def _encode_metadata(metadata: Dict[str, str]) -> bytes:
    """Sorted-key JSON padded with newlines so size field plus body fill whole segments."""
    body = json.dumps(metadata, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    remainder = (2 + len(body)) % SEGMENT_SIZE
    if remainder:
        body += b"\n" * (SEGMENT_SIZE - remainder)
    return len(body).to_bytes(2, "big") + body


def serialize_node(node: ManifestNode, child_addresses: Dict[int, bytes]) -> bytes:
    """
    Serialize one node given the stored addresses of its children.

    Args:
        node: Node to serialize
        child_addresses: First fork byte -> child node address

    Returns:
        Node bytes
    """
    index = bytearray(32)
    for key in node.forks:
        index[key // 8] |= 1 << (key % 8)

    data = bytearray()
    data += OBFUSCATION_KEY
    data += VERSION_HASH
    data += bytes([ADDRESS_SIZE])
    data += node.entry if node.entry is not None else ZERO_ADDRESS
    data += index

    for key in sorted(node.forks):
        fork = node.forks[key]
        data += bytes([fork.node.node_type(fork.prefix), len(fork.prefix)])
        data += fork.prefix.ljust(MAX_PREFIX_LENGTH, b"\x00")
        data += child_addresses[key]
        if fork.node.metadata:
            data += _encode_metadata(fork.node.metadata)

    return bytes(data)


class ManifestTrie:
    """
    Maps paths to content addresses.

    Usage:
        trie = ManifestTrie()
        trie.add_fork("docs/a.txt", address, {"Filename": "a.txt", "Content-Type": "text/plain"})
        root = await trie.save(sink)
    """

    def __init__(self):
        self._forks: Dict[bytes, Tuple[bytes, Dict[str, str]]] = {}

    def __len__(self) -> int:
        return len(self._forks)

    def add_fork(self, path, address: bytes, metadata: Optional[Dict[str, str]] = None) -> None:
        """
        Register a path.

        Args:
            path: str (UTF-8 encoded) or bytes
            address: 32-byte target address
            metadata: String key/value pairs (e.g. Filename, Content-Type)
        """
        if isinstance(path, str):
            path = path.encode("utf-8")
        if len(address) != ADDRESS_SIZE:
            raise ValueError(f"Invalid address length {len(address)}")
        self._forks[bytes(path)] = (bytes(address), dict(metadata or {}))

    def set_index_document(self, filename: str) -> None:
        """Point the root path at the default document."""
        self.add_fork("/", ZERO_ADDRESS, {INDEX_DOCUMENT_KEY: filename})

    def get(self, path) -> Optional[Tuple[bytes, Dict[str, str]]]:
        if isinstance(path, str):
            path = path.encode("utf-8")
        return self._forks.get(path)

    def node_count(self) -> int:
        """Number of nodes save() writes; each becomes at least one chunk."""
        return _count_nodes(self.build())

    def build(self) -> ManifestNode:
        """Build the node tree in sorted path order."""
        root = ManifestNode()
        for path in sorted(self._forks):
            entry, metadata = self._forks[path]
            root.add_fork(path, entry, metadata)
        return root

    async def save(self, sink: StorageSink) -> bytes:
        """
        Write every node through sink, children before parents.

        Args:
            sink: Async function storing bytes and returning their address

        Returns:
            Address of the root node
        """
        root = self.build()
        address = await self._save_node(root, sink)
        logger.info(f"Saved manifest with {len(self._forks)} forks, root={address.hex()}")
        return address

    async def _save_node(self, node: ManifestNode, sink: StorageSink) -> bytes:
        child_addresses = {}
        for key in sorted(node.forks):
            child_addresses[key] = await self._save_node(node.forks[key].node, sink)
        return await sink(serialize_node(node, child_addresses))


def _count_nodes(node: ManifestNode) -> int:
    return 1 + sum(_count_nodes(fork.node) for fork in node.forks.values())


async def memory_sink_address(data: bytes) -> bytes:
    """Storage sink that only computes addresses."""
    address, _ = await chunk_bytes(data)
    return address


async def check_reproducible(trie: ManifestTrie) -> bytes:
    """
    Serialize the trie twice in memory and compare root addresses.

    Returns:
        Root address

    Raises:
        SerializationDeterminismViolation: If the two serializations differ
    """
    first = await trie.save(memory_sink_address)
    second = await trie.save(memory_sink_address)
    if first != second:
        raise SerializationDeterminismViolation(
            f"Manifest serialized to {first.hex()} then {second.hex()}"
        )
    return first
