"""httpx adapter for the ingest port."""

import asyncio
import logging
from collections.abc import Mapping

import httpx

from mintexport.core.config import DEFAULT_TIMEOUT
from mintexport.core.errors import TransportFailure
from mintexport.core.models import IngestResponse

logger = logging.getLogger(__name__)


class HttpxIngestClient:
    """IngestPort implementation backed by ``httpx.AsyncClient``.

    When no client is passed in, one is created on first use and owned by
    this adapter. An owned client belongs to the event loop it was created
    on and must be closed with ``aclose`` before that loop ends;
    ``MintExporter.export_sync`` does so. After ``aclose`` the next request
    opens a fresh client.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            timeout: Request timeout in seconds for an owned client.
            client: Externally managed client; never closed by this adapter.
            transport: Transport for an owned client (tests, proxies).
        """
        self._timeout = timeout
        self._transport = transport
        self._client = client
        self._owns_client = client is None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if not self._owns_client:
            assert self._client is not None
            return self._client
        loop = asyncio.get_running_loop()
        if self._client is not None and self._loop is not loop:
            logger.warning("Replacing httpx client left open on a previous event loop")
            self._client = None
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
            self._loop = loop
        return self._client

    @property
    def timeout(self) -> float:
        return self._timeout

    async def post(self, url: str, body: bytes, headers: Mapping[str, str]) -> IngestResponse:
        """POST the body and return the raw response.

        Raises:
            TransportFailure: On connection errors, timeouts or invalid URLs.
        """
        client = self._get_client()
        try:
            response = await client.post(url, content=body, headers=dict(headers))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportFailure(f"error sending request to {url}: {exc}") from exc
        logger.debug("Ingest responded with status %d", response.status_code)
        return IngestResponse(status_code=response.status_code, body=response.text)

    async def aclose(self) -> None:
        """Close the owned client, if any."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._loop = None
