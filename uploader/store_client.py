"""HTTP client for the remote chunk store."""

from typing import Optional

import httpx
from pydantic import BaseModel, Field

from common.constants import DEFAULT_STAMP, DEFAULT_TIMEOUT_SECONDS
from common.exceptions import TransientUploadError
from common.logging_config import get_logger

logger = get_logger(__name__)


class ChunkReferenceResponse(BaseModel):
    """Response model for chunk upload."""
    reference: str


class StewardshipResponse(BaseModel):
    """Response model for the retrievability probe."""
    is_retrievable: bool = Field(alias="isRetrievable")


class StoreClient:
    """Async HTTP client for the chunk store endpoints."""

    def __init__(
        self,
        base_url: str,
        stamp: str = DEFAULT_STAMP,
        deferred: bool = True,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize store client.

        Args:
            base_url: Store API base URL (e.g., "http://127.0.0.1:1633")
            stamp: Opaque postage/quota token passed through on uploads
            deferred: Let the store finalize uploads asynchronously
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip('/')
        self.stamp = stamp
        self.deferred = deferred
        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport
        )
        logger.info(f"Initialized StoreClient [base_url={self.base_url}, deferred={deferred}]")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.session.aclose()

    async def __aenter__(self) -> 'StoreClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make one HTTP request, mapping failures to TransientUploadError.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            Successful (2xx) response

        Raises:
            TransientUploadError: On network errors, timeouts or non-2xx status
        """
        try:
            response = await self.session.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientUploadError(f"Request timed out: {method} {endpoint}") from e
        except httpx.HTTPError as e:
            raise TransientUploadError(f"Network error: {method} {endpoint} error={type(e).__name__}") from e

        logger.debug(f"Response received: {method} {endpoint} status={response.status_code}")

        if response.status_code >= 300:
            raise TransientUploadError(
                f"Store error: {method} {endpoint} status={response.status_code} body={response.text[:200]}"
            )
        return response

    async def upload_chunk(self, data: bytes) -> str:
        """
        Upload one chunk in span||payload form.

        Args:
            data: Wire-format chunk bytes

        Returns:
            Hex address reported by the store
        """
        response = await self._request(
            'POST',
            '/chunks',
            content=data,
            headers={
                'Content-Type': 'application/octet-stream',
                'swarm-postage-batch-id': self.stamp,
                'swarm-deferred-upload': 'true' if self.deferred else 'false',
            }
        )
        try:
            return ChunkReferenceResponse(**response.json()).reference.lower()
        except (ValueError, TypeError) as e:
            raise TransientUploadError(f"Malformed upload response: {response.text[:200]}") from e

    async def download_chunk(self, address: str) -> bytes:
        """
        Download one chunk.

        Args:
            address: Hex address

        Returns:
            Wire-format chunk bytes (span||payload)
        """
        response = await self._request('GET', f'/chunks/{address}')
        return response.content

    async def is_retrievable(self, address: str) -> bool:
        """
        Ask the store whether a chunk can currently be retrieved.

        Args:
            address: Hex address

        Returns:
            True if the store reports the chunk as retrievable
        """
        response = await self._request('GET', f'/stewardship/{address}')
        try:
            return StewardshipResponse(**response.json()).is_retrievable
        except (ValueError, TypeError) as e:
            raise TransientUploadError(f"Malformed stewardship response: {response.text[:200]}") from e
