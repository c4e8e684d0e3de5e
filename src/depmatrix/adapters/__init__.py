"""Source adapters and the registry the application layer builds them from."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from depmatrix.domain.model import SourceType

from .api_gateway import ApiGatewayAdapter
from .cicd import CiCdAdapter
from .codebase import CodebaseAdapter
from .network import NetworkAdapter
from .parsing import AUTO_FORMAT, LineAdapter, ParsedEvent, utcnow
from .router_log import RouterLogAdapter
from .telemetry import TelemetryAdapter

if TYPE_CHECKING:
    from collections.abc import Mapping

    from depmatrix.domain.ports import ClaimSource

    from .parsing import Clock

ADAPTERS: Final[Mapping[SourceType, type[LineAdapter]]] = MappingProxyType(
    {
        SourceType.ROUTER_LOG: RouterLogAdapter,
        SourceType.CODEBASE: CodebaseAdapter,
        SourceType.API_GATEWAY: ApiGatewayAdapter,
        SourceType.CI_CD: CiCdAdapter,
        SourceType.TELEMETRY: TelemetryAdapter,
        SourceType.NETWORK: NetworkAdapter,
    }
)

SOURCE_NAMES: Final[Mapping[str, SourceType]] = MappingProxyType(
    {
        "router-log": SourceType.ROUTER_LOG,
        "codebase": SourceType.CODEBASE,
        "api-gateway": SourceType.API_GATEWAY,
        "ci-cd": SourceType.CI_CD,
        "telemetry": SourceType.TELEMETRY,
        "network": SourceType.NETWORK,
    }
)


def resolve_source(name: str | SourceType) -> SourceType:
    """Accept a CLI name (``router-log``) or a source type (``ROUTER_LOG``)."""

    if isinstance(name, SourceType):
        return name
    key = name.strip()
    if key.lower() in SOURCE_NAMES:
        return SOURCE_NAMES[key.lower()]
    try:
        return SourceType(key.upper().replace("-", "_"))
    except ValueError as exc:
        raise ValueError(f"Unknown claim source: {name!r}") from exc


def build_adapter(
    source: str | SourceType,
    *,
    clock: Clock = utcnow,
    aliases: Mapping[str, str] | None = None,
    source_application: str | None = None,
) -> ClaimSource:
    """Build the adapter for ``source``.

    ``source_application`` only applies to build manifests, which do not name
    the application that owns them.
    """

    source_type = resolve_source(source)
    try:
        adapter_cls = ADAPTERS[source_type]
    except KeyError as exc:
        raise ValueError(f"No adapter produces {source_type} claims") from exc
    if issubclass(adapter_cls, CodebaseAdapter):
        return adapter_cls(clock=clock, aliases=aliases, source_application=source_application)
    return adapter_cls(clock=clock, aliases=aliases)


__all__ = [
    "ADAPTERS",
    "AUTO_FORMAT",
    "SOURCE_NAMES",
    "ApiGatewayAdapter",
    "CiCdAdapter",
    "CodebaseAdapter",
    "LineAdapter",
    "NetworkAdapter",
    "ParsedEvent",
    "RouterLogAdapter",
    "TelemetryAdapter",
    "build_adapter",
    "resolve_source",
]
