"""Export aggregated metrics as MINT lines to an HTTP ingest endpoint."""

from mintexport.adapters.enrichment.oneagent import OneAgentMetadataEnricher
from mintexport.adapters.ingest import HttpxIngestClient, InMemoryIngest
from mintexport.core.config import (
    API_V1,
    API_V2,
    CLIENT_VERSION,
    Capabilities,
    ExporterConfig,
)
from mintexport.core.errors import (
    ExportCancelled,
    ExportError,
    MintExportError,
    NormalizationFailure,
    TransportFailure,
    UnsupportedAggregation,
)
from mintexport.core.exporter import MintExporter
from mintexport.core.metrics import counter, gauge, histogram, up_down_counter
from mintexport.core.models import (
    Acknowledgment,
    ChunkResult,
    ChunkState,
    DeliveryOutcome,
    HistogramAggregation,
    InstrumentKind,
    LastValueAggregation,
    MetricRecord,
    SumAggregation,
    Temporality,
)

__version__ = CLIENT_VERSION

__all__ = [
    "API_V1",
    "API_V2",
    "Acknowledgment",
    "Capabilities",
    "ChunkResult",
    "ChunkState",
    "DeliveryOutcome",
    "ExportCancelled",
    "ExportError",
    "ExporterConfig",
    "HistogramAggregation",
    "HttpxIngestClient",
    "InMemoryIngest",
    "InstrumentKind",
    "LastValueAggregation",
    "MetricRecord",
    "MintExportError",
    "MintExporter",
    "NormalizationFailure",
    "OneAgentMetadataEnricher",
    "SumAggregation",
    "Temporality",
    "TransportFailure",
    "UnsupportedAggregation",
    "__version__",
    "counter",
    "gauge",
    "histogram",
    "up_down_counter",
]
