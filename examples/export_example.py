"""Periodic metric export example.

Run with a local agent listening on the default endpoint, or point it at a
tenant via MINTEXPORT_ENDPOINT and MINTEXPORT_API_TOKEN:

    MINTEXPORT_PREFIX=example python examples/export_example.py
"""

import asyncio
import logging
import random

from mintexport import (
    ExportError,
    ExporterConfig,
    MintExporter,
    OneAgentMetadataEnricher,
    counter,
    gauge,
    histogram,
)

logger = logging.getLogger(__name__)


async def export_forever(exporter: MintExporter, interval: float = 10.0) -> None:
    """Export a batch of synthetic metrics every interval seconds."""
    while True:
        latencies = [random.uniform(0.001, 2.0) for _ in range(50)]
        records = [
            counter("requests", len(latencies), {"route": "/checkout"}),
            gauge("queue_depth", random.randint(0, 20)),
            histogram("request_duration_seconds", latencies, attributes={"route": "/checkout"}),
        ]
        try:
            outcome = await exporter.export(records)
            logger.info("Exported %d requests", outcome.request_count)
        except ExportError as exc:
            logger.warning("Export failed: %s", exc)
        await asyncio.sleep(interval)


async def main() -> None:
    config = ExporterConfig.from_env()
    config = config.with_static_attributes(OneAgentMetadataEnricher().get_metadata())
    async with MintExporter(config) as exporter:
        await export_forever(exporter)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
