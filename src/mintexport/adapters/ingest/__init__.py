"""Ingest adapters implementing the core IngestPort."""

from mintexport.adapters.ingest.httpx_client import HttpxIngestClient
from mintexport.adapters.ingest.in_memory import InMemoryIngest, RecordedRequest

__all__ = [
    "HttpxIngestClient",
    "InMemoryIngest",
    "RecordedRequest",
]
