"""Metric exporter: turns records into lines and delivers them.

The exporter never collects on its own. A collector calls ``export`` with
the records of one cycle; the exporter encodes each record into at most one
line, sends the lines in chunks and reports failed chunks as one error.
"""

import asyncio
import logging
from collections.abc import Iterable

from mintexport.adapters.async_utils import run_sync
from mintexport.adapters.ingest.httpx_client import HttpxIngestClient
from mintexport.core.attributes import merge_attributes
from mintexport.core.config import ExporterConfig
from mintexport.core.encoding.mint import assemble_line, encode_value
from mintexport.core.errors import NormalizationFailure, UnsupportedAggregation
from mintexport.core.models import DeliveryOutcome, InstrumentKind, MetricRecord, Temporality
from mintexport.core.ports import IngestPort
from mintexport.core.sender import BatchSender

logger = logging.getLogger(__name__)


class MintExporter:
    """Exports metric records to a MINT ingest endpoint.

    Example:
        ```python
        from mintexport import ExporterConfig, HttpxIngestClient, MintExporter, counter

        async with MintExporter(ExporterConfig(), HttpxIngestClient()) as exporter:
            await exporter.export([counter("requests", 3)])
        ```
    """

    def __init__(self, config: ExporterConfig, port: IngestPort | None = None) -> None:
        """Initialize the exporter.

        Args:
            config: Immutable exporter configuration.
            port: Ingest adapter that performs the HTTP requests. Defaults to
                an HttpxIngestClient using the configured timeout.
        """
        if port is None:
            port = HttpxIngestClient(timeout=config.timeout)
        self._config = config
        self._port = port
        self._sender = BatchSender(port, config)

    @property
    def config(self) -> ExporterConfig:
        return self._config

    @property
    def port(self) -> IngestPort:
        return self._port

    def temporality_for(self, instrument_kind: InstrumentKind) -> Temporality:
        """Temporality this exporter prefers collectors to aggregate with."""
        return Temporality.DELTA

    def encode_record(self, record: MetricRecord) -> str:
        """Encode one record as a line.

        Raises:
            NormalizationFailure: If the metric name cannot be normalized.
            UnsupportedAggregation: If the aggregation cannot be encoded.
        """
        attributes = merge_attributes(
            record.attributes,
            defaults=self._config.default_attributes,
            static=self._config.static_attributes,
        )
        value_clause = encode_value(
            record.aggregation,
            record.instrument_kind,
            record.temporality,
            self._config.capabilities,
        )
        return assemble_line(record.name, attributes, self._config.prefix, value_clause)

    def encode(self, records: Iterable[MetricRecord]) -> list[str]:
        """Encode records, dropping and logging those that cannot be encoded."""
        lines: list[str] = []
        for record in records:
            try:
                lines.append(self.encode_record(record))
            except NormalizationFailure:
                logger.warning("Dropping metric with invalid name %r", record.name)
            except UnsupportedAggregation as exc:
                logger.warning("Dropping metric %r: %s", record.name, exc)
        return lines

    async def export(
        self, records: Iterable[MetricRecord], cancel: asyncio.Event | None = None
    ) -> DeliveryOutcome:
        """Encode and send one cycle of records.

        Every chunk is attempted before failures are reported.

        Args:
            records: Records of one collection cycle.
            cancel: Optional event that stops sending when set.

        Returns:
            The delivery outcome when every chunk was accepted.

        Raises:
            ExportError: If at least one chunk failed; lists their indices.
            ExportCancelled: If ``cancel`` was set before sending finished.
        """
        lines = self.encode(records)
        if not lines:
            logger.debug("No lines to export")
            return DeliveryOutcome()
        outcome = await self._sender.send(lines, cancel)
        outcome.raise_for_failures()
        return outcome

    def export_sync(self, records: Iterable[MetricRecord]) -> DeliveryOutcome:
        """Synchronous export for callers without an event loop.

        Each call runs on its own event loop, so the port is closed before
        that loop ends. HttpxIngestClient opens a new client on next use.
        """
        return run_sync(self._export_and_close(records))

    async def _export_and_close(self, records: Iterable[MetricRecord]) -> DeliveryOutcome:
        try:
            return await self.export(records)
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Close the ingest port if it holds resources."""
        close = getattr(self._port, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "MintExporter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
