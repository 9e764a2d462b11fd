"""Tests for CLI command handlers."""

import json

import pytest

from chunker.chunk import Chunk
from cli.commands import dispatch, handle_check, handle_upload
from cli.constants import HELP_TEXT
from cli.models import CheckCommand, HelpCommand, UploadCommand
from common.constants import DEFAULT_CACHE_DIR
from uploader.cache import ChunkCache


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run each command from an empty directory."""
    path = tmp_path / 'work'
    path.mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.mark.asyncio
async def test_handle_upload(sample_tree, fake_store, temp_config, workdir):
    """Test upload command handler with an in-memory store."""
    result = await handle_upload(UploadCommand(path=str(sample_tree)), temp_config, store=fake_store)

    lines = result.splitlines()
    assert lines[0].endswith(' a.txt')
    assert lines[1].endswith(' sub/b.txt')
    assert f"{temp_config.get_store_url().rstrip('/')}/bzz/" in lines[2]
    assert not (workdir / 'errors.json').exists()


@pytest.mark.asyncio
async def test_handle_upload_missing_path(fake_store, temp_config, workdir):
    result = await handle_upload(UploadCommand(path=str(workdir / 'nope')), temp_config, store=fake_store)

    assert 'Path not found' in result
    assert fake_store.attempts == {}


@pytest.mark.asyncio
async def test_handle_upload_writes_error_ledger(sample_tree, fake_store, temp_config, workdir):
    leaf = Chunk.leaf((sample_tree / 'a.txt').read_bytes())
    fake_store.failures[leaf.hex] = 10

    result = await handle_upload(
        UploadCommand(path=str(sample_tree), retries=1), temp_config, store=fake_store
    )

    assert 'Upload failed' in result
    with open(workdir / 'errors.json') as f:
        assert leaf.hex in json.load(f)


@pytest.mark.asyncio
async def test_handle_check_after_cached_upload(sample_tree, fake_store, temp_config, workdir):
    await handle_upload(UploadCommand(path=str(sample_tree), cache=True), temp_config, store=fake_store)
    cached = ChunkCache(workdir / DEFAULT_CACHE_DIR).list_addresses()

    result = await handle_check(CheckCommand(), temp_config, store=fake_store)

    assert f'chunks: {len(cached)}, success: {len(cached)}, error: 0' in result
    assert (workdir / 'report.csv').exists()
    with open(workdir / 'errors.json') as f:
        assert json.load(f) == []


@pytest.mark.asyncio
async def test_handle_check_retry_uses_ledger(sample_tree, fake_store, temp_config, workdir):
    await handle_upload(UploadCommand(path=str(sample_tree), cache=True), temp_config, store=fake_store)
    cache = ChunkCache(workdir / DEFAULT_CACHE_DIR)
    broken = cache.list_addresses()[0]
    cache.get_chunk_path(broken).write_bytes(b'corrupted')

    result = await handle_check(CheckCommand(), temp_config, store=fake_store)
    assert 'error: 1' in result
    with open(workdir / 'errors.json') as f:
        assert json.load(f) == [broken]

    fake_store.chunks[broken] = b'corrupted'
    result = await handle_check(CheckCommand(retry=True), temp_config, store=fake_store)

    assert 'chunks: 1, success: 1, error: 0' in result
    with open(workdir / 'errors.json') as f:
        assert json.load(f) == []


@pytest.mark.asyncio
async def test_handle_check_custom_paths(fake_store, temp_config, tmp_path, workdir):
    cache = ChunkCache(tmp_path / 'data')
    chunk = Chunk.leaf(b'custom')
    cache.write_chunk(chunk)
    await fake_store.upload_chunk(chunk.data())

    cmd = CheckCommand(
        data_dir=str(tmp_path / 'data'),
        errors_path=str(tmp_path / 'out' / 'e.json'),
        report_path=str(tmp_path / 'out' / 'r.csv')
    )
    result = await handle_check(cmd, temp_config, store=fake_store)

    assert 'chunks: 1, success: 1, error: 0' in result
    assert (tmp_path / 'out' / 'e.json').exists()
    assert (tmp_path / 'out' / 'r.csv').read_text().startswith(chunk.hex)


@pytest.mark.asyncio
async def test_handle_check_retry_without_ledger(fake_store, temp_config, workdir):
    result = await handle_check(CheckCommand(retry=True), temp_config, store=fake_store)

    assert 'Cannot read error ledger' in result


@pytest.mark.asyncio
async def test_dispatch_help():
    assert await dispatch(HelpCommand()) == HELP_TEXT


@pytest.mark.asyncio
async def test_handle_check_prints_running_counts(fake_store, temp_config, tmp_path, workdir, capsys):
    cache = ChunkCache(workdir / DEFAULT_CACHE_DIR)
    for i in range(3):
        chunk = Chunk.leaf(f'progress-{i}'.encode())
        cache.write_chunk(chunk)
        await fake_store.upload_chunk(chunk.data())

    await handle_check(CheckCommand(), temp_config, store=fake_store)

    out = capsys.readouterr().out
    assert '\rchunks: 3, success: 1, error: 0' in out
    assert '\rchunks: 3, success: 3, error: 0' in out


@pytest.mark.asyncio
async def test_handle_upload_cache_failure_writes_ledger(sample_tree, fake_store, temp_config, tmp_path, workdir):
    blocker = tmp_path / 'not-a-directory'
    blocker.write_text('')
    temp_config.data['cache_dir'] = str(blocker)

    result = await handle_upload(UploadCommand(path=str(sample_tree), cache=True), temp_config, store=fake_store)

    assert 'Upload failed' in result
    with open(workdir / 'errors.json') as f:
        assert json.load(f)
