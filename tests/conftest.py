"""Shared pytest fixtures for all tests."""

import random

import pytest

from cli.config import Config
from tests.fakes import FakeStore


@pytest.fixture
def fake_store():
    """In-memory store that accepts every chunk."""
    return FakeStore()


@pytest.fixture
def random_bytes():
    """
    Deterministic pseudo-random data factory.

    Returns:
        Callable(size, seed=0) -> bytes
    """
    def make(size: int, seed: int = 0) -> bytes:
        return random.Random(seed).randbytes(size)

    return make


@pytest.fixture
def temp_config(tmp_path):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(tmp_path / '.chunked-upload' / 'config.json')


@pytest.fixture
def sample_tree(tmp_path):
    """
    Create a directory with a.txt and sub/b.txt.

    Returns:
        Path to the directory
    """
    root = tmp_path / 'site'
    (root / 'sub').mkdir(parents=True)
    (root / 'a.txt').write_text('alpha content')
    (root / 'sub' / 'b.txt').write_bytes(bytes(range(256)) * 40)
    return root
