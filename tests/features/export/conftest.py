"""BDD step definitions for metric export features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from mintexport.adapters.ingest.in_memory import InMemoryIngest
from mintexport.core.config import Capabilities, ExporterConfig
from mintexport.core.errors import ExportError
from mintexport.core.exporter import MintExporter
from mintexport.core.metrics import counter, histogram
from mintexport.core.models import DeliveryOutcome, MetricRecord


@dataclass
class ExportScenarioContext:
    """Shared state between steps in an export scenario."""

    ingest: InMemoryIngest = field(default_factory=InMemoryIngest)
    exporter: MintExporter | None = None
    outcome: DeliveryOutcome | None = None
    error: ExportError | None = None

    def export(self, records: list[MetricRecord]) -> None:
        assert self.exporter is not None
        self.outcome = self.exporter.export_sync(records)


def _numbers(raw: str) -> list[float]:
    return [float(part) for part in raw.replace(" and ", ",").split(",") if part.strip()]


@pytest.fixture
def ctx() -> ExportScenarioContext:
    """Fresh scenario context for each test."""
    return ExportScenarioContext()


# === Given ===
@given("an ingest endpoint that accepts every request")
def step_accepting_ingest(ctx: ExportScenarioContext) -> None:
    ctx.ingest = InMemoryIngest()


@given(parsers.parse("an exporter with a line limit of {max_lines:d}"))
def step_exporter(ctx: ExportScenarioContext, max_lines: int) -> None:
    config = ExporterConfig(
        endpoint="http://ingest.test/api/v2/metrics/ingest",
        api_token="token",
        capabilities=Capabilities(max_lines_per_request=max_lines),
    )
    ctx.exporter = MintExporter(config, ctx.ingest)


@given(parsers.parse("the ingest endpoint answers with statuses {statuses}"))
def step_scripted_statuses(ctx: ExportScenarioContext, statuses: str) -> None:
    ctx.ingest.statuses.extend(int(s) for s in statuses.split(","))


# === When ===
@when(
    parsers.parse(
        'I export a counter "{name}" with value {value:d} and attribute "{key}" = "{attr}"'
    )
)
def step_export_counter(
    ctx: ExportScenarioContext, name: str, value: int, key: str, attr: str
) -> None:
    ctx.export([counter(name, value, {key: attr})])


@when(parsers.parse("I export {n:d} counters"))
def step_export_many(ctx: ExportScenarioContext, n: int) -> None:
    ctx.export([counter(f"metric_{i}", i) for i in range(n)])


@when(parsers.parse("I export {n:d} counters expecting failure"))
def step_export_many_failing(ctx: ExportScenarioContext, n: int) -> None:
    with pytest.raises(ExportError) as exc_info:
        ctx.export([counter(f"metric_{i}", i) for i in range(n)])
    ctx.error = exc_info.value


@when(parsers.parse('I export counters named "{first}", "{second}" and "{third}"'))
def step_export_named(ctx: ExportScenarioContext, first: str, second: str, third: str) -> None:
    ctx.export([counter(first), counter(second), counter(third)])


@when("I export no metrics")
def step_export_nothing(ctx: ExportScenarioContext) -> None:
    ctx.export([])


@when(
    parsers.parse(
        'I export a histogram "{name}" with observations {values} and boundaries {bounds}'
    )
)
def step_export_histogram(
    ctx: ExportScenarioContext, name: str, values: str, bounds: str
) -> None:
    ctx.export([histogram(name, _numbers(values), boundaries=_numbers(bounds))])


# === Then ===
@then(parsers.re(r"(?P<n>\d+) requests? (?:is|are) sent"), converters={"n": int})
def step_request_count(ctx: ExportScenarioContext, n: int) -> None:
    assert len(ctx.ingest.requests) == n


@then(parsers.parse("request {n:d} contains the line {line}"))
def step_request_line(ctx: ExportScenarioContext, n: int, line: str) -> None:
    expected = line[1:-1]
    assert expected in ctx.ingest.requests[n - 1].lines


@then(parsers.parse("the request line counts are {counts}"))
def step_line_counts(ctx: ExportScenarioContext, counts: str) -> None:
    expected = [int(c) for c in counts.split(",")]
    assert [len(r.lines) for r in ctx.ingest.requests] == expected


@then("the export succeeds")
def step_export_succeeds(ctx: ExportScenarioContext) -> None:
    assert ctx.outcome is not None
    assert ctx.outcome.ok


@then(parsers.parse("the export fails for chunk {index:d} only"))
def step_export_fails_for(ctx: ExportScenarioContext, index: int) -> None:
    assert ctx.error is not None
    assert ctx.error.failed_indices == [index]
