"""Core domain models for metric export."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Union

from mintexport.core.errors import ExportError

AttributeValue = Union[str, int, float, bool]
Attribute = tuple[str, AttributeValue]


def attribute_pairs(
    attributes: Mapping[str, AttributeValue] | Iterable[Attribute],
) -> tuple[Attribute, ...]:
    """Return attributes as a tuple of pairs; mappings contribute their items."""
    if isinstance(attributes, Mapping):
        return tuple(attributes.items())
    return tuple(attributes)


class InstrumentKind(enum.Enum):
    """Kind of instrument that produced a measurement."""

    COUNTER = "counter"
    UP_DOWN_COUNTER = "up_down_counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


class Temporality(enum.Enum):
    """Whether a value is a delta since the last export or a running total."""

    DELTA = "delta"
    CUMULATIVE = "cumulative"


@dataclass(frozen=True)
class SumAggregation:
    """Sum of all measurements in the collection interval.

    Attributes:
        value: The summed value. Integers are encoded without decimals.
    """

    value: int | float


@dataclass(frozen=True)
class LastValueAggregation:
    """Most recent measurement in the collection interval.

    Attributes:
        value: The last observed value.
        timestamp: Unix timestamp in seconds of the observation, if known.
    """

    value: int | float
    timestamp: float | None = None


@dataclass(frozen=True)
class HistogramAggregation:
    """Bucketed distribution of measurements.

    ``counts[i]`` holds observations in ``(boundaries[i-1], boundaries[i]]``;
    the first bucket is unbounded below and the last unbounded above, so
    there is always one more count than boundaries.

    Attributes:
        sum: Sum of all observations.
        count: Number of observations.
        boundaries: Ascending bucket boundaries.
        counts: Per-bucket observation counts.
    """

    sum: int | float
    count: int
    boundaries: tuple[float, ...] = ()
    counts: tuple[int, ...] = (0,)

    def __post_init__(self) -> None:
        object.__setattr__(self, "boundaries", tuple(self.boundaries))
        object.__setattr__(self, "counts", tuple(self.counts))
        if len(self.counts) != len(self.boundaries) + 1:
            raise ValueError(
                f"histogram needs {len(self.boundaries) + 1} bucket counts for "
                f"{len(self.boundaries)} boundaries, got {len(self.counts)}"
            )


Aggregation = Union[SumAggregation, LastValueAggregation, HistogramAggregation]


@dataclass(frozen=True)
class MetricRecord:
    """One aggregated metric handed to the exporter by a collector.

    Attributes:
        name: Metric name, normalized during export.
        aggregation: The aggregation result to encode.
        instrument_kind: Instrument that produced the aggregation.
        attributes: Key/value pairs attached to the measurement; a mapping
            is stored as its items.
        temporality: Temporality chosen by the collector for this record.
    """

    name: str
    aggregation: Aggregation
    instrument_kind: InstrumentKind
    attributes: Sequence[Attribute] = ()
    temporality: Temporality = Temporality.DELTA

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", attribute_pairs(self.attributes))


@dataclass(frozen=True)
class IngestResponse:
    """Raw response returned by an ingest port."""

    status_code: int
    body: str = ""


@dataclass(frozen=True)
class Acknowledgment:
    """Line counts reported back by the ingest endpoint."""

    lines_ok: int = 0
    lines_invalid: int = 0
    error: str = ""


class ChunkState(enum.Enum):
    """Delivery state of a single chunk."""

    PENDING = "pending"
    SENT = "sent"
    ACKNOWLEDGED_OK = "acknowledged_ok"
    ACKNOWLEDGED_PARTIAL_INVALID = "acknowledged_partial_invalid"
    FAILED_STATUS = "failed_status"
    FAILED_TRANSPORT = "failed_transport"

    @property
    def failed(self) -> bool:
        return self in (ChunkState.FAILED_STATUS, ChunkState.FAILED_TRANSPORT)


@dataclass
class ChunkResult:
    """Outcome of sending one chunk of lines."""

    index: int
    line_count: int
    state: ChunkState = ChunkState.PENDING
    status_code: int | None = None
    acknowledgment: Acknowledgment | None = None
    error: str | None = None

    def describe(self) -> str:
        if self.state is ChunkState.FAILED_STATUS:
            return f"chunk {self.index}: status {self.status_code}"
        if self.state is ChunkState.FAILED_TRANSPORT:
            return f"chunk {self.index}: {self.error}"
        return f"chunk {self.index}: {self.state.value}"


@dataclass
class DeliveryOutcome:
    """Results of every chunk attempted in one send call, in order."""

    chunks: list[ChunkResult] = field(default_factory=list)

    @property
    def failed_indices(self) -> list[int]:
        return [c.index for c in self.chunks if c.state.failed]

    @property
    def ok(self) -> bool:
        return not self.failed_indices

    @property
    def request_count(self) -> int:
        return sum(1 for c in self.chunks if c.state is not ChunkState.PENDING)

    def raise_for_failures(self) -> None:
        """Raise ExportError if any chunk failed."""
        if not self.ok:
            raise ExportError(self)
