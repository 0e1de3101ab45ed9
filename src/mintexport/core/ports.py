"""Port interfaces for ingest adapters.

The core builds request bodies and headers; an ingest port only moves bytes
to the endpoint and hands back the raw response. The core depends on this
protocol, not on a concrete HTTP client.
"""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from mintexport.core.models import IngestResponse


@runtime_checkable
class IngestPort(Protocol):
    """Port for delivering one request body to an ingest endpoint.

    Examples: HttpxIngestClient, InMemoryIngest.
    """

    async def post(self, url: str, body: bytes, headers: Mapping[str, str]) -> IngestResponse:
        """POST a request body.

        Args:
            url: Ingest endpoint URL.
            body: Encoded request body.
            headers: Request headers built by the sender.

        Returns:
            The status code and raw body of the response.

        Raises:
            TransportFailure: If no response could be obtained.
        """
        ...
