"""Pydantic model for upload and verification options."""

from pydantic import BaseModel, Field

from common.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_PARALLELISM,
    DEFAULT_RETRIES,
    DEFAULT_STAMP,
    DEFAULT_STORE_URL,
    DEFAULT_TIMEOUT_SECONDS,
)


class UploadOptions(BaseModel):
    """Options recognized by the upload pipeline."""
    store_url: str = DEFAULT_STORE_URL
    stamp: str = DEFAULT_STAMP
    deferred: bool = True
    parallelism: int = Field(default=DEFAULT_PARALLELISM, ge=1)
    retries: int = Field(default=DEFAULT_RETRIES, ge=1)
    retry_delay: float = Field(default=0.0, ge=0)
    cache_chunks_locally: bool = False
    cache_dir: str = DEFAULT_CACHE_DIR
    cache_include_span: bool = True
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
