"""Upload orchestration: files -> chunk trees -> manifest -> drained queue."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from chunker.chunk import Chunk
from chunker.streaming import StreamingChunker, bytes_reader, estimate_chunk_count, file_reader
from common.constants import INDEX_DOCUMENT_NAME, ZERO_ADDRESS
from common.exceptions import StreamReadError
from common.logging_config import get_logger
from manifest.trie import ManifestTrie
from uploader.cache import ChunkCache
from uploader.mime import detect_mime
from uploader.options import UploadOptions
from uploader.queue import UploadQueue, UploadSummary
from uploader.store_client import StoreClient
from uploader.walk import iter_files

logger = get_logger(__name__)

ChunkObserver = Callable[[Chunk], Awaitable[None]]
FailureObserver = Callable[[Chunk, Exception, int], Awaitable[None]]


@dataclass(frozen=True)
class UploadResult:
    """Manifest address plus per-file root addresses."""
    manifest: str
    files: Tuple[Tuple[str, str], ...]
    summary: UploadSummary
    index_document: Optional[str] = None


async def upload(
    path: Union[str, Path],
    options: UploadOptions,
    store: Optional[Any] = None,
    on_success: Optional[ChunkObserver] = None,
    on_failure: Optional[FailureObserver] = None
) -> UploadResult:
    """
    Upload a file or directory tree and return its manifest address.

    Args:
        path: File or directory to upload
        options: Upload options
        store: Store client; a StoreClient for options.store_url when omitted
        on_success: Extra observer awaited after each accepted chunk
        on_failure: Observer awaited after each failed attempt

    Returns:
        UploadResult, valid only once every chunk has been accepted

    Raises:
        ExhaustedRetryError: If any chunk could not be uploaded
        StreamReadError: If a source file could not be read
    """
    if store is None:
        async with StoreClient(
            options.store_url,
            stamp=options.stamp,
            deferred=options.deferred,
            timeout=options.timeout
        ) as client:
            return await upload(path, options, client, on_success, on_failure)

    observers: List[ChunkObserver] = []
    if options.cache_chunks_locally:
        observers.append(ChunkCache(options.cache_dir, options.cache_include_span).store)
    if on_success:
        observers.append(on_success)

    async def notify(chunk: Chunk) -> None:
        for observer in observers:
            await observer(chunk)

    files = list(iter_files(path))
    logger.info(f"Uploading {len(files)} file(s) from {path}")

    async with UploadQueue(
        store,
        parallelism=options.parallelism,
        retries=options.retries,
        on_success=notify,
        on_failure=on_failure,
        retry_delay=options.retry_delay
    ) as queue:
        trie = ManifestTrie()
        uploaded = []
        index_document = None
        for source, relative in files:
            address = await _upload_file(source, queue)
            filename = Path(relative).name
            trie.add_fork(relative, address, {
                'Content-Type': detect_mime(filename),
                'Filename': filename,
            })
            if is_index_document(relative, len(files)):
                trie.set_index_document(relative)
                index_document = relative
            uploaded.append((relative, address.hex()))
            logger.info(f"{address.hex()} {relative}")

        async def sink(data: bytes) -> bytes:
            return await StreamingChunker(queue.enqueue).chunk(bytes_reader(data))

        manifest = await trie.save(sink)
        summary = await queue.drain()

    logger.info(f"Manifest {manifest.hex()} ({summary.uploaded} chunks uploaded)")
    return UploadResult(
        manifest=manifest.hex(),
        files=tuple(uploaded),
        summary=summary,
        index_document=index_document
    )


async def _upload_file(source: Path, queue: UploadQueue) -> bytes:
    chunker = StreamingChunker(queue.enqueue)
    try:
        handle = open(source, 'rb')
    except OSError as e:
        raise StreamReadError(f"Cannot open {source}: {e}") from e
    with handle:
        address = await chunker.chunk(file_reader(handle))
    logger.debug(f"Chunked {source}: {chunker.span} bytes, {chunker.chunk_count} chunks")
    return address


def is_index_document(relative: str, file_count: int) -> bool:
    """A lone file, or a top-level index.html, is served for the root path."""
    return file_count == 1 or relative == INDEX_DOCUMENT_NAME


def estimate_upload_chunks(path: Union[str, Path]) -> int:
    """
    Advisory chunk count for upload(path).

    Returns:
        Chunks of every file tree plus one per manifest node
    """
    files = list(iter_files(path))
    trie = ManifestTrie()
    total = 0
    for source, relative in files:
        total += estimate_chunk_count(source.stat().st_size)
        trie.add_fork(relative, ZERO_ADDRESS)
        if is_index_document(relative, len(files)):
            trie.set_index_document(relative)
    return total + trie.node_count()
