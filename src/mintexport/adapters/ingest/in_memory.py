"""In-memory ingest adapter."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from mintexport.core.errors import TransportFailure
from mintexport.core.models import IngestResponse


@dataclass(frozen=True)
class RecordedRequest:
    """A request captured by InMemoryIngest."""

    url: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def lines(self) -> list[str]:
        return self.body.decode("utf-8").split("\n")


class InMemoryIngest:
    """In-memory implementation of IngestPort.

    Records every request and answers with scripted statuses, one per
    request in order. Once the script is exhausted the default status is
    returned. The pending script is the public ``statuses`` list. An
    entry may be a TransportFailure instance, which is raised instead of
    answering. Suitable for testing and dry runs.
    """

    def __init__(
        self,
        statuses: Iterable[int | TransportFailure] = (),
        default_status: int = 202,
        body: str = "",
    ) -> None:
        self.statuses: list[int | TransportFailure] = list(statuses)
        self._default_status = default_status
        self._body = body
        self.requests: list[RecordedRequest] = []

    async def post(self, url: str, body: bytes, headers: Mapping[str, str]) -> IngestResponse:
        """Record the request and return the next scripted response."""
        self.requests.append(RecordedRequest(url=url, body=body, headers=dict(headers)))
        answer = self.statuses.pop(0) if self.statuses else self._default_status
        if isinstance(answer, TransportFailure):
            raise answer
        return IngestResponse(status_code=answer, body=self._body)

    def clear(self) -> None:
        """Forget all recorded requests."""
        self.requests.clear()
