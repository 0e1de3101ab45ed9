"""MINT line protocol encoder.

A line has the form::

    name[,key="value",...] value-clause[ timestamp]

where the value clause is one of ``count,delta=<n>``, ``count,<n>``,
``gauge,<n>`` or ``gauge,min=<n>,max=<n>,sum=<n>,count=<n>``.
"""

import math
from collections.abc import Mapping, Sequence

from mintexport.core.config import API_V2, Capabilities
from mintexport.core.errors import NormalizationFailure, UnsupportedAggregation
from mintexport.core.models import (
    Aggregation,
    HistogramAggregation,
    InstrumentKind,
    LastValueAggregation,
    SumAggregation,
    Temporality,
)
from mintexport.core.normalize import normalize_metric_name


def format_number(value: int | float) -> str:
    """Format a number for a value clause.

    Integers render as plain decimals. Floats render with six decimals and
    trailing zeros (and a trailing point) removed, so ``2.50`` becomes
    ``2.5`` and ``0.0000001`` becomes ``0``.

    Raises:
        ValueError: If the value is NaN or infinite.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"cannot encode non-finite value {value}")
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


def estimate_histogram_min_max(
    boundaries: Sequence[float], counts: Sequence[int]
) -> tuple[float, float]:
    """Estimate min and max from the first and last non-empty bucket.

    This is an approximation: a bucketed histogram does not track the real
    extremes. The lower edge of the first non-empty bucket is used as the
    minimum, or its upper edge when it is the first bucket (unbounded
    below). The upper edge of the last non-empty bucket is used as the
    maximum, or its lower edge when it is the last bucket (unbounded above).

    Returns:
        ``(min, max)``, or ``(0, 0)`` if every bucket is empty.
    """
    populated = [i for i, count in enumerate(counts) if count > 0]
    if not populated:
        return 0, 0

    min_idx, max_idx = populated[0], populated[-1]
    estimated_min = boundaries[min_idx] if min_idx == 0 else boundaries[min_idx - 1]
    if max_idx == len(counts) - 1:
        estimated_max = boundaries[max_idx - 1]
    else:
        estimated_max = boundaries[max_idx]
    return estimated_min, estimated_max


def summary_value(min_: int | float, max_: int | float, sum_: int | float, count: int) -> str:
    return (
        f"gauge,min={format_number(min_)},max={format_number(max_)},"
        f"sum={format_number(sum_)},count={int(count)}"
    )


def _histogram_value(histogram: HistogramAggregation) -> str:
    if histogram.boundaries:
        min_, max_ = estimate_histogram_min_max(histogram.boundaries, histogram.counts)
    elif histogram.count > 0:
        # A single unbounded bucket has no edges; fall back to the mean.
        min_ = max_ = histogram.sum / histogram.count
    else:
        min_ = max_ = 0
    return summary_value(min_, max_, histogram.sum, histogram.count)


def encode_value(
    aggregation: Aggregation,
    instrument_kind: InstrumentKind,
    temporality: Temporality = Temporality.DELTA,
    capabilities: Capabilities = API_V2,
) -> str:
    """Encode an aggregation as a value clause.

    Raises:
        UnsupportedAggregation: If the aggregation cannot be expressed for
            this instrument kind or API version.
    """
    try:
        if isinstance(aggregation, SumAggregation):
            if instrument_kind is InstrumentKind.COUNTER:
                if temporality is Temporality.DELTA:
                    return f"count,delta={format_number(aggregation.value)}"
                return f"count,{format_number(aggregation.value)}"
            if instrument_kind is InstrumentKind.UP_DOWN_COUNTER:
                return f"gauge,{format_number(aggregation.value)}"
            raise UnsupportedAggregation(aggregation, instrument_kind)

        if isinstance(aggregation, LastValueAggregation):
            clause = f"gauge,{format_number(aggregation.value)}"
            if aggregation.timestamp is not None and capabilities.supports_timestamps:
                clause += f" {round(aggregation.timestamp * 1000)}"
            return clause

        if isinstance(aggregation, HistogramAggregation):
            if not capabilities.supports_histograms:
                raise UnsupportedAggregation(
                    aggregation, instrument_kind, "histograms not supported by this API version"
                )
            return _histogram_value(aggregation)
    except ValueError as exc:
        raise UnsupportedAggregation(aggregation, instrument_kind, str(exc)) from exc

    raise UnsupportedAggregation(aggregation, instrument_kind)


def serialize_attributes(attributes: Mapping[str, str]) -> str:
    """Join already normalized and escaped attributes as ``k="v",...``."""
    return ",".join(f'{key}="{value}"' for key, value in attributes.items())


def serialize_descriptor(name: str, attributes: Mapping[str, str], prefix: str = "") -> str:
    """Build the name-and-attributes part of a line.

    The prefix is joined before normalization, so an invalid prefix
    invalidates the name. Returns an empty string if the name cannot be
    normalized.
    """
    normalized = normalize_metric_name(f"{prefix}.{name}" if prefix else name)
    if not normalized:
        return ""
    if attributes:
        return f"{normalized},{serialize_attributes(attributes)}"
    return normalized


def assemble_line(
    name: str, attributes: Mapping[str, str], prefix: str, value_clause: str
) -> str:
    """Assemble one complete line without a trailing newline.

    Raises:
        NormalizationFailure: If the (prefixed) name cannot be normalized.
    """
    descriptor = serialize_descriptor(name, attributes, prefix)
    if not descriptor:
        raise NormalizationFailure(f"{prefix}.{name}" if prefix else name)
    return f"{descriptor} {value_clause}"
