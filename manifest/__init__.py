"""Path trie manifest that indexes uploaded objects."""

from manifest.trie import ManifestNode, ManifestTrie, check_reproducible, serialize_node

__all__ = ["ManifestNode", "ManifestTrie", "check_reproducible", "serialize_node"]
