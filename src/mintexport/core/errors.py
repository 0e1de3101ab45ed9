"""Exception taxonomy for metric export.

Record-level errors (NormalizationFailure, UnsupportedAggregation) are caught
by the exporter and cause a single record to be dropped. Chunk-level errors
are collected and surfaced once per export call as ExportError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mintexport.core.models import DeliveryOutcome


class MintExportError(Exception):
    """Base class for all mintexport errors."""


class NormalizationFailure(MintExportError):
    """A metric name cannot be made to fit the line grammar."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"failed to normalize metric name: {raw!r}")
        self.raw = raw


class UnsupportedAggregation(MintExportError):
    """An aggregation cannot be encoded for the given instrument."""

    def __init__(self, aggregation: Any, instrument_kind: Any = None, reason: str = "") -> None:
        detail = f"unsupported aggregation {type(aggregation).__name__}"
        if instrument_kind is not None:
            detail += f" for {getattr(instrument_kind, 'value', instrument_kind)}"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)
        self.aggregation = aggregation
        self.instrument_kind = instrument_kind


class TransportFailure(MintExportError):
    """The request could not be delivered to the ingest endpoint."""


class ExportError(MintExportError):
    """One or more chunks of an export call failed.

    Attributes:
        outcome: The full delivery outcome, including successful chunks.
        failed_indices: Indices of the failed chunks in send order.
    """

    def __init__(self, outcome: DeliveryOutcome) -> None:
        self.outcome = outcome
        self.failed_indices = outcome.failed_indices
        failures = "; ".join(c.describe() for c in outcome.chunks if c.state.failed)
        super().__init__(
            f"{len(self.failed_indices)} of {len(outcome.chunks)} chunks failed: {failures}"
        )


class ExportCancelled(MintExportError):
    """Sending stopped because the cancel signal was set.

    Chunks sent before cancellation are not rolled back; ``outcome`` lists
    them together with the chunk that was in flight.
    """

    def __init__(self, outcome: DeliveryOutcome) -> None:
        super().__init__(f"export cancelled after {outcome.request_count} requests")
        self.outcome = outcome
