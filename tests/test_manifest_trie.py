"""Unit tests for the manifest trie."""

import pytest

from chunker.bmt import keccak256
from chunker.streaming import chunk_bytes
from common.constants import INDEX_DOCUMENT_KEY, ZERO_ADDRESS
from common.exceptions import SerializationDeterminismViolation
from manifest import trie as trie_module
from manifest.trie import (
    MAX_PREFIX_LENGTH,
    TYPE_EDGE,
    TYPE_VALUE,
    TYPE_WITH_METADATA,
    TYPE_WITH_PATH_SEPARATOR,
    ManifestNode,
    ManifestTrie,
    check_reproducible,
    serialize_node,
)

HEADER_SIZE = 32 + 31 + 1 + 32 + 32
FORK_SIZE = 1 + 1 + 30 + 32


def address_of(label: str) -> bytes:
    return keccak256(label.encode())


FORKS = [
    ("a.txt", address_of("a"), {"Filename": "a.txt", "Content-Type": "text/plain"}),
    ("sub/b.txt", address_of("b"), {"Filename": "b.txt", "Content-Type": "text/plain"}),
    ("sub/c.txt", address_of("c"), {"Filename": "c.txt", "Content-Type": "text/plain"}),
    ("index.html", address_of("i"), {"Filename": "index.html", "Content-Type": "text/html"}),
    ("x" * 45, address_of("long1"), {"Filename": "x"}),
    ("x" * 10 + "y" * 40, address_of("long2"), {"Filename": "y"}),
]


def populated(order):
    trie = ManifestTrie()
    for path, address, metadata in order:
        trie.add_fork(path, address, metadata)
    return trie


def child_addresses(data: bytes):
    """Parse the child addresses out of a serialized node."""
    children = []
    offset = HEADER_SIZE
    while offset < len(data):
        node_type = data[offset]
        children.append(data[offset + 32:offset + 64])
        offset += FORK_SIZE
        if node_type & TYPE_WITH_METADATA:
            offset += 2 + int.from_bytes(data[offset:offset + 2], "big")
    return children


class MemorySink:
    """Records every saved node and returns its chunk address."""

    def __init__(self):
        self.saved = []

    async def __call__(self, data: bytes) -> bytes:
        address, _ = await chunk_bytes(data)
        self.saved.append((address, data))
        return address


class TestManifestDeterminism:
    """Test reproducible serialization."""

    @pytest.mark.asyncio
    async def test_insertion_order_does_not_matter(self):
        forward = await populated(FORKS).save(MemorySink())
        backward = await populated(list(reversed(FORKS))).save(MemorySink())
        shuffled = await populated(FORKS[3:] + FORKS[:3]).save(MemorySink())

        assert forward == backward == shuffled

    @pytest.mark.asyncio
    async def test_metadata_key_order_does_not_matter(self):
        first = ManifestTrie()
        first.add_fork("a.txt", address_of("a"), {"Filename": "a.txt", "Content-Type": "text/plain"})
        second = ManifestTrie()
        second.add_fork("a.txt", address_of("a"), {"Content-Type": "text/plain", "Filename": "a.txt"})

        assert await first.save(MemorySink()) == await second.save(MemorySink())

    @pytest.mark.asyncio
    async def test_check_reproducible(self):
        trie = populated(FORKS)
        assert await check_reproducible(trie) == await trie.save(MemorySink())

    @pytest.mark.asyncio
    async def test_check_reproducible_detects_drift(self, monkeypatch):
        trie = populated(FORKS)
        calls = []
        real_serialize = trie_module.serialize_node

        def drifting(node, child_addresses):
            calls.append(1)
            data = real_serialize(node, child_addresses)
            return data + bytes(len(calls))

        monkeypatch.setattr(trie_module, "serialize_node", drifting)

        with pytest.raises(SerializationDeterminismViolation):
            await check_reproducible(trie)

    @pytest.mark.asyncio
    async def test_different_targets_change_root(self):
        base = await populated(FORKS).save(MemorySink())
        changed = populated(FORKS)
        changed.add_fork("a.txt", address_of("other"), {"Filename": "a.txt", "Content-Type": "text/plain"})

        assert await changed.save(MemorySink()) != base


class TestManifestStructure:
    """Test trie shape and layout."""

    def test_common_prefixes_share_nodes(self):
        root = populated(FORKS[:3]).build()

        assert sorted(root.forks) == [ord("a"), ord("s")]
        sub = root.forks[ord("s")]
        assert sub.prefix == b"sub/"
        assert sorted(sub.node.forks) == [ord("b"), ord("c")]
        assert sub.node.forks[ord("b")].node.entry == address_of("b")

    def test_long_paths_are_split(self):
        root = populated(FORKS[4:]).build()

        edge = root.forks[ord("x")]
        assert edge.prefix == b"x" * 10
        long_x = edge.node.forks[ord("x")]
        assert long_x.prefix == b"x" * 20
        assert long_x.node.forks[ord("x")].prefix == b"x" * 15
        long_y = edge.node.forks[ord("y")]
        assert long_y.prefix == b"y" * MAX_PREFIX_LENGTH
        assert long_y.node.forks[ord("y")].node.entry == address_of("long2")

    def test_path_is_prefix_of_another(self):
        trie = ManifestTrie()
        trie.add_fork("docs/readme", address_of("long"))
        trie.add_fork("docs", address_of("short"))
        root = trie.build()

        docs = root.forks[ord("d")]
        assert docs.prefix == b"docs"
        assert docs.node.entry == address_of("short")
        assert docs.node.forks[ord("/")].prefix == b"/readme"

    def test_node_count(self):
        assert ManifestTrie().node_count() == 1
        assert populated(FORKS[:3]).node_count() == 5

    def test_later_fork_replaces_earlier(self):
        trie = ManifestTrie()
        trie.add_fork("a", address_of("1"))
        trie.add_fork("a", address_of("2"))

        assert len(trie) == 1
        assert trie.get("a")[0] == address_of("2")

    def test_invalid_address_rejected(self):
        with pytest.raises(ValueError):
            ManifestTrie().add_fork("a", b"short")

    def test_index_document_fork(self):
        trie = ManifestTrie()
        trie.set_index_document("index.html")

        entry, metadata = trie.get("/")
        assert entry == ZERO_ADDRESS
        assert metadata == {INDEX_DOCUMENT_KEY: "index.html"}

    def test_node_types(self):
        leaf = ManifestNode(entry=address_of("a"), metadata={"Filename": "a"})
        edge = ManifestNode(forks={ord("a"): None})

        assert leaf.node_type(b"a.txt") == TYPE_VALUE | TYPE_WITH_METADATA
        assert leaf.node_type(b"sub/a") == TYPE_VALUE | TYPE_WITH_METADATA | TYPE_WITH_PATH_SEPARATOR
        assert edge.node_type(b"sub") == TYPE_EDGE


class TestSerializeNode:
    """Test the binary node layout."""

    def test_leaf_node_layout(self):
        node = ManifestNode(entry=address_of("a"))
        data = serialize_node(node, {})

        assert len(data) == HEADER_SIZE
        assert data[:32] == bytes(32)
        assert data[63] == 32
        assert data[64:96] == address_of("a")
        assert data[96:128] == bytes(32)

    def test_fork_records_and_index(self):
        root = populated(FORKS[:1]).build()
        child_address = address_of("child")
        data = serialize_node(root, {ord("a"): child_address})

        index = data[96:128]
        assert index[ord("a") // 8] == 1 << (ord("a") % 8)

        record = data[HEADER_SIZE:]
        assert record[0] == TYPE_VALUE | TYPE_WITH_METADATA
        assert record[1] == len(b"a.txt")
        assert record[2:2 + 30] == b"a.txt".ljust(30, b"\x00")
        assert record[32:64] == child_address

        metadata_size = int.from_bytes(record[64:66], "big")
        assert (2 + metadata_size) % 32 == 0
        assert len(record) == FORK_SIZE + 2 + metadata_size
        assert record[66:66 + metadata_size].rstrip(b"\n") == (
            b'{"Content-Type":"text/plain","Filename":"a.txt"}'
        )

    @pytest.mark.asyncio
    async def test_children_saved_before_parents(self):
        sink = MemorySink()
        root = await populated(FORKS[:3]).save(sink)

        assert sink.saved[-1][0] == root
        assert len(sink.saved) == 5
        saved = set()
        for address, data in sink.saved:
            for child in child_addresses(data):
                assert child in saved
            saved.add(address)
