"""Object storage client for the hosted backend.

Hey future me - the hosted backend serves PUBLIC buckets at
    {backend_url}/storage/v1/object/public/{bucket}/{key}
No auth headers needed (public read). A public URL can be perfectly well-formed and still
404/403 because the object is missing or the bucket policy changed - that's why the
AudioUrlResolver probes before handing a URL to the player.
"""

import logging
from urllib.parse import quote

import httpx

from talebox.config import StorageSettings
from talebox.domain.exceptions import ConfigurationError
from talebox.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)


class StorageClient:
    """Thin async client for public object storage."""

    def __init__(
        self,
        settings: StorageSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize storage client.

        Args:
            settings: Storage settings (backend URL, buckets)
            http_client: Optional client (tests inject one with a MockTransport).
                Defaults to the shared HttpClientPool client.
        """
        self.settings = settings
        self._http_client = http_client

    async def _client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return await HttpClientPool.get_client()

    def public_url(self, bucket: str, key: str) -> str:
        """Compute the public URL of an object.

        Raises:
            ConfigurationError: backend URL or bucket not configured
        """
        if not self.settings.backend_url:
            raise ConfigurationError("Storage backend URL not configured")
        if not bucket:
            raise ConfigurationError("Storage bucket not configured")

        public_path = "/" + self.settings.public_path.strip("/")
        object_key = quote(key.lstrip("/"), safe="/")
        return f"{self.settings.backend_url}{public_path}/{bucket}/{object_key}"

    async def head(self, url: str, timeout: float) -> int:
        """HEAD the URL and return the status code.

        Raises:
            httpx.HTTPError: transport failure or timeout
        """
        client = await self._client()
        response = await client.head(
            url,
            headers={"Accept": "audio/*", "Cache-Control": "no-cache"},
            timeout=timeout,
        )
        return response.status_code

    async def get_status(self, url: str, timeout: float) -> int:
        """GET the URL without reading the body and return the status code.

        Some storage backends reject HEAD but serve GET. We stream so an audiobook
        isn't downloaded just to learn it exists.

        Raises:
            httpx.HTTPError: transport failure or timeout
        """
        client = await self._client()
        async with client.stream(
            "GET",
            url,
            headers={"Accept": "audio/*", "Range": "bytes=0-0"},
            timeout=timeout,
        ) as response:
            return response.status_code
