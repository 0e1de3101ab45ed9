"""Exporter configuration.

Configuration is an immutable value built once and passed to the exporter.
Nothing in the core reads process-wide state after construction.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from urllib.parse import urlparse

from mintexport.core.models import Attribute, AttributeValue, attribute_pairs

logger = logging.getLogger(__name__)

CLIENT_VERSION = "0.1.0"
USER_AGENT = f"mintexport/{CLIENT_VERSION}"

DEFAULT_ENDPOINT = "http://localhost:14499/metrics/ingest"
DEFAULT_MAX_LINES_PER_REQUEST = 1000
DEFAULT_TIMEOUT = 10.0

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


@dataclass(frozen=True)
class Capabilities:
    """What a given version of the ingest API accepts.

    Attributes:
        supports_histograms: Histograms may be sent as summary gauges.
        supports_timestamps: Gauge lines may carry an explicit timestamp.
        max_lines_per_request: Upper bound on lines in one request body.
    """

    supports_histograms: bool = True
    supports_timestamps: bool = True
    max_lines_per_request: int = DEFAULT_MAX_LINES_PER_REQUEST

    @classmethod
    def for_api_version(cls, version: str) -> Capabilities:
        """Return the capabilities of a named API version ("v1" or "v2")."""
        try:
            return _API_VERSIONS[version.strip().lower()]
        except KeyError:
            raise ValueError(
                f"unknown API version {version!r}, expected one of {sorted(_API_VERSIONS)}"
            ) from None


API_V1 = Capabilities(supports_histograms=False, supports_timestamps=False)
API_V2 = Capabilities()

_API_VERSIONS = {"v1": API_V1, "v2": API_V2}


@dataclass(frozen=True)
class ExporterConfig:
    """Settings shared by every export call of one exporter.

    Attributes:
        endpoint: Ingest URL. Defaults to the local host agent.
        api_token: Token sent as ``Api-Token``; omitted from requests if None.
        prefix: Prepended to every metric name with a ``.`` separator.
        default_attributes: Process-wide attributes, lowest precedence.
            Mappings are accepted and stored as their items.
        static_attributes: Host metadata attributes, highest precedence.
        capabilities: Feature set of the target API version.
        timeout: Per-request timeout in seconds, applied to the default
            httpx port that MintExporter builds when given no port.
    """

    endpoint: str = DEFAULT_ENDPOINT
    api_token: str | None = None
    prefix: str = ""
    default_attributes: tuple[Attribute, ...] = ()
    static_attributes: tuple[Attribute, ...] = ()
    capabilities: Capabilities = API_V2
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ValueError("endpoint must not be empty")
        if self.capabilities.max_lines_per_request < 1:
            raise ValueError("max_lines_per_request must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        object.__setattr__(self, "default_attributes", attribute_pairs(self.default_attributes))
        object.__setattr__(self, "static_attributes", attribute_pairs(self.static_attributes))
        if not self.api_token and not self.is_local_endpoint:
            logger.warning("No API token configured for remote endpoint %s", self.endpoint)

    @property
    def is_local_endpoint(self) -> bool:
        return urlparse(self.endpoint).hostname in _LOCAL_HOSTS

    @property
    def max_lines_per_request(self) -> int:
        return self.capabilities.max_lines_per_request

    def with_static_attributes(
        self, attributes: Mapping[str, AttributeValue] | Sequence[Attribute]
    ) -> ExporterConfig:
        """Return a copy with static attributes replaced."""
        return replace(self, static_attributes=attribute_pairs(attributes))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ExporterConfig:
        """Build a configuration from ``MINTEXPORT_*`` environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        env = os.environ if environ is None else environ
        capabilities = API_V2
        if env.get("MINTEXPORT_API_VERSION"):
            capabilities = Capabilities.for_api_version(env["MINTEXPORT_API_VERSION"])
        timeout = DEFAULT_TIMEOUT
        if env.get("MINTEXPORT_TIMEOUT"):
            try:
                timeout = float(env["MINTEXPORT_TIMEOUT"])
            except ValueError:
                raise ValueError(
                    f"MINTEXPORT_TIMEOUT must be a number, got {env['MINTEXPORT_TIMEOUT']!r}"
                ) from None
        return cls(
            endpoint=env.get("MINTEXPORT_ENDPOINT") or DEFAULT_ENDPOINT,
            api_token=env.get("MINTEXPORT_API_TOKEN") or None,
            prefix=env.get("MINTEXPORT_PREFIX", ""),
            default_attributes=parse_attribute_list(
                env.get("MINTEXPORT_DEFAULT_ATTRIBUTES", "")
            ),
            capabilities=capabilities,
            timeout=timeout,
        )


def parse_attribute_list(raw: str) -> tuple[Attribute, ...]:
    """Parse ``key=value,key2=value2`` into attribute pairs.

    Entries without ``=`` or with an empty key are skipped with a warning.
    """
    pairs: list[Attribute] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            logger.warning("Ignoring malformed attribute entry %r", item)
            continue
        pairs.append((key.strip(), value.strip()))
    return tuple(pairs)
