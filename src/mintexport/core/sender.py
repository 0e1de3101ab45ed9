"""Batch delivery of encoded lines to an ingest endpoint.

Lines are split into chunks of at most ``max_lines_per_request`` and sent
one request at a time. A failed chunk never stops the following chunks;
the caller receives a DeliveryOutcome describing every chunk.
"""

import asyncio
import json
import logging
from collections.abc import Iterator, Sequence

from mintexport.core.config import USER_AGENT, ExporterConfig
from mintexport.core.errors import ExportCancelled, TransportFailure
from mintexport.core.models import (
    Acknowledgment,
    ChunkResult,
    ChunkState,
    DeliveryOutcome,
    IngestResponse,
)
from mintexport.core.ports import IngestPort

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; charset=UTF-8"
ACCEPTED_STATUSES = frozenset({200, 202})


class _CancelRequested(Exception):
    """Raised internally when the cancel event fires mid-request."""


def partition(lines: Sequence[str], max_lines: int) -> Iterator[Sequence[str]]:
    """Yield consecutive slices of at most ``max_lines`` lines."""
    if max_lines < 1:
        raise ValueError("max_lines must be at least 1")
    for start in range(0, len(lines), max_lines):
        yield lines[start : start + max_lines]


def build_headers(api_token: str | None) -> dict[str, str]:
    """Build request headers; Authorization is omitted without a token."""
    headers = {"Content-Type": CONTENT_TYPE, "User-Agent": USER_AGENT}
    if api_token:
        headers["Authorization"] = f"Api-Token {api_token}"
    return headers


def parse_acknowledgment(body: str) -> Acknowledgment | None:
    """Parse the JSON acknowledgment returned by the ingest endpoint.

    Returns:
        The parsed acknowledgment, or None if the body is empty or is not
        an acknowledgment object. Failures are logged, never raised.
    """
    if not body.strip():
        logger.debug("Ingest response carried no acknowledgment")
        return None
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse ingest response: %s", exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Unexpected ingest response: %r", body[:200])
        return None
    try:
        return Acknowledgment(
            lines_ok=int(data.get("linesOk") or 0),
            lines_invalid=int(data.get("linesInvalid") or 0),
            error=str(data.get("error") or ""),
        )
    except (TypeError, ValueError) as exc:
        logger.warning("Malformed line counts in ingest response: %s", exc)
        return None


class BatchSender:
    """Sends encoded lines through an IngestPort in bounded chunks."""

    def __init__(self, port: IngestPort, config: ExporterConfig) -> None:
        self._port = port
        self._config = config
        self._headers = build_headers(config.api_token)

    async def send(
        self, lines: Sequence[str], cancel: asyncio.Event | None = None
    ) -> DeliveryOutcome:
        """Send all lines, one request per chunk.

        Args:
            lines: Encoded lines in output order.
            cancel: Optional event; once set, the in-flight request is
                abandoned and no further chunk is sent.

        Returns:
            The outcome of every attempted chunk, failures included.

        Raises:
            ExportCancelled: If ``cancel`` was set before all chunks were sent.
        """
        outcome = DeliveryOutcome()
        for index, chunk in enumerate(partition(lines, self._config.max_lines_per_request)):
            body = "\n".join(chunk)
            if not body:
                logger.debug("Skipping empty chunk %d", index)
                continue
            if cancel is not None and cancel.is_set():
                raise ExportCancelled(outcome)

            result = ChunkResult(index=index, line_count=len(chunk))
            outcome.chunks.append(result)
            try:
                await self._send_chunk(result, body, cancel)
            except _CancelRequested:
                raise ExportCancelled(outcome) from None
        return outcome

    async def _send_chunk(
        self, result: ChunkResult, body: str, cancel: asyncio.Event | None
    ) -> None:
        logger.debug("Sending %d lines to %s", result.line_count, self._config.endpoint)
        result.state = ChunkState.SENT
        try:
            response = await self._post(body.encode("utf-8"), cancel)
        except TransportFailure as exc:
            result.state = ChunkState.FAILED_TRANSPORT
            result.error = str(exc)
            logger.error("Chunk %d failed to send: %s", result.index, exc)
            return

        result.status_code = response.status_code
        ack = parse_acknowledgment(response.body)
        result.acknowledgment = ack
        if ack is not None:
            logger.debug("Ingest accepted %d lines of chunk %d", ack.lines_ok, result.index)
            if ack.error:
                logger.error("Ingest reported an error for chunk %d: %s", result.index, ack.error)

        if response.status_code not in ACCEPTED_STATUSES:
            result.state = ChunkState.FAILED_STATUS
            result.error = ack.error if ack is not None and ack.error else None
            logger.error(
                "Chunk %d rejected with status %d", result.index, response.status_code
            )
        elif ack is not None and ack.lines_invalid > 0:
            result.state = ChunkState.ACKNOWLEDGED_PARTIAL_INVALID
            logger.warning(
                "Ingest rejected %d invalid lines of chunk %d", ack.lines_invalid, result.index
            )
        else:
            result.state = ChunkState.ACKNOWLEDGED_OK

    async def _post(self, body: bytes, cancel: asyncio.Event | None) -> IngestResponse:
        request = self._port.post(self._config.endpoint, body, self._headers)
        if cancel is None:
            return await request

        post_task = asyncio.ensure_future(request)
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {post_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()
            if not post_task.done():
                post_task.cancel()

        if post_task in done:
            return post_task.result()
        await asyncio.wait({post_task})
        raise _CancelRequested
