"""Project-wide constants (chunk geometry, defaults, well-known addresses)."""

CHUNK_PAYLOAD_SIZE: int = 4096
SPAN_SIZE: int = 8
SEGMENT_SIZE: int = 32
ADDRESS_SIZE: int = 32
BRANCHES: int = CHUNK_PAYLOAD_SIZE // ADDRESS_SIZE  # 128 children per intermediate chunk

EMPTY_CHUNK_ADDRESS: str = "b34ca8c22b9e982354f9c7f50b470d66db428d880c8a904d5fe4ec9713171526"
ZERO_ADDRESS: bytes = bytes(ADDRESS_SIZE)

DEFAULT_STORE_URL: str = "http://127.0.0.1:1633"
DEFAULT_STAMP: str = "0" * 64
DEFAULT_PARALLELISM: int = 8
DEFAULT_RETRIES: int = 5
DEFAULT_VERIFY_PARALLELISM: int = 10
DEFAULT_TIMEOUT_SECONDS: int = 30
DEFAULT_CACHE_DIR: str = "chunk-data"

INDEX_DOCUMENT_KEY: str = "website-index-document"
INDEX_DOCUMENT_NAME: str = "index.html"
