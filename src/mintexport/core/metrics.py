"""Helper functions for creating MetricRecord objects."""

import bisect
from collections.abc import Iterable, Mapping, Sequence

from mintexport.core.models import (
    AttributeValue,
    HistogramAggregation,
    InstrumentKind,
    LastValueAggregation,
    MetricRecord,
    SumAggregation,
    Temporality,
)

DEFAULT_HISTOGRAM_BOUNDARIES = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]


def _attribute_pairs(
    attributes: Mapping[str, AttributeValue] | None,
) -> tuple[tuple[str, AttributeValue], ...]:
    return tuple((attributes or {}).items())


def counter(
    name: str,
    value: int | float = 1,
    attributes: Mapping[str, AttributeValue] | None = None,
    temporality: Temporality = Temporality.DELTA,
) -> MetricRecord:
    """Create a counter record.

    Args:
        name: Metric name (e.g., "http_requests")
        value: Increase over the interval, or the running total when
            temporality is cumulative (default: 1)
        attributes: Optional dimension attributes
        temporality: Temporality of ``value``

    Returns:
        MetricRecord with a sum aggregation
    """
    return MetricRecord(
        name=name,
        aggregation=SumAggregation(value),
        instrument_kind=InstrumentKind.COUNTER,
        attributes=_attribute_pairs(attributes),
        temporality=temporality,
    )


def up_down_counter(
    name: str,
    value: int | float,
    attributes: Mapping[str, AttributeValue] | None = None,
) -> MetricRecord:
    """Create an up-down counter record; ``value`` is the net value."""
    return MetricRecord(
        name=name,
        aggregation=SumAggregation(value),
        instrument_kind=InstrumentKind.UP_DOWN_COUNTER,
        attributes=_attribute_pairs(attributes),
    )


def gauge(
    name: str,
    value: int | float,
    attributes: Mapping[str, AttributeValue] | None = None,
    timestamp: float | None = None,
) -> MetricRecord:
    """Create a gauge record.

    Args:
        name: Metric name (e.g., "cpu_percent")
        value: Current gauge value
        attributes: Optional dimension attributes
        timestamp: Optional Unix timestamp in seconds of the observation

    Returns:
        MetricRecord with a last-value aggregation
    """
    return MetricRecord(
        name=name,
        aggregation=LastValueAggregation(value, timestamp),
        instrument_kind=InstrumentKind.GAUGE,
        attributes=_attribute_pairs(attributes),
    )


def bucket_counts(values: Iterable[float], boundaries: Sequence[float]) -> list[int]:
    """Count observations per bucket; a value equal to a boundary falls below it."""
    counts = [0] * (len(boundaries) + 1)
    for value in values:
        counts[bisect.bisect_left(boundaries, value)] += 1
    return counts


def histogram(
    name: str,
    values: Iterable[float],
    boundaries: Sequence[float] | None = None,
    attributes: Mapping[str, AttributeValue] | None = None,
) -> MetricRecord:
    """Create a histogram record from raw observations.

    Args:
        name: Metric name (e.g., "http_request_duration_seconds")
        values: Observed values
        boundaries: Bucket boundaries (default: Prometheus standard buckets)
        attributes: Optional dimension attributes

    Returns:
        MetricRecord with a histogram aggregation
    """
    observed = list(values)
    bucket_boundaries = list(boundaries) if boundaries is not None else DEFAULT_HISTOGRAM_BOUNDARIES
    return MetricRecord(
        name=name,
        aggregation=HistogramAggregation(
            sum=sum(observed),
            count=len(observed),
            boundaries=tuple(bucket_boundaries),
            counts=tuple(bucket_counts(observed, bucket_boundaries)),
        ),
        instrument_kind=InstrumentKind.HISTOGRAM,
        attributes=_attribute_pairs(attributes),
    )
