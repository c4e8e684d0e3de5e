"""Telemetry adapter: metrics, traces and APM dependency records.

Supported formats, in auto-detect order::

    prometheus     http_requests_total{job="orders",instance="10.0.0.1:9090",target="payments"} 1027
    opentelemetry  span{service.name="orders",operation.name="charge",peer.service="payments",duration=12ms}
    apm            dependency{source="orders",target="payments",type="http",response_time=40ms,success_rate=0.99}
    custom         TELEMETRY 2024-01-15T10:30:00Z orders -> payments latency=45ms

Only the custom format carries a timestamp; the others are stamped with the
ingest time. Each format pre-seeds a confidence reflecting how direct the
observation is (traces are the strongest signal).
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from depmatrix.domain.model import SourceType

from .parsing import LineAdapter, ParsedEvent, PatternParser, parse_timestamp

if TYPE_CHECKING:
    from .parsing import Clock, EventBuilder

PROMETHEUS_PATTERN: Final = re.compile(
    r'http_requests_total\{.*?job="(?P<source>[^"]+)".*?instance="(?P<instance>[^"]+)"'
    r'.*?target="(?P<target>[^"]+)".*?\}\s+(?P<value>\d+(?:\.\d+)?)'
)
OTEL_SPAN_PATTERN: Final = re.compile(
    r'span\{.*?service\.name="(?P<source>[^"]+)".*?operation\.name="(?P<operation>[^"]+)"'
    r'.*?peer\.service="(?P<target>[^"]+)".*?duration=(?P<duration>\d+)ms.*?\}'
)
APM_DEPENDENCY_PATTERN: Final = re.compile(
    r'dependency\{source="(?P<source>[^"]+)",target="(?P<target>[^"]+)",type="(?P<type>[^"]+)",'
    r"response_time=(?P<response_time>\d+)ms,success_rate=(?P<success_rate>[\d.]+)\}"
)
CUSTOM_PATTERN: Final = re.compile(
    r"TELEMETRY\s+(?P<timestamp>[\d\-T:\sZ]+)\s+(?P<source>[\w\-]+)\s*->\s*(?P<target>[\w\-]+)"
    r"\s+(?P<metric>\w+)=(?P<value>[\d.]+)(?P<unit>\w*)"
)


def _telemetry_event(
    *,
    platform: str,
    confidence: float,
    action_group: str | None = None,
    action: str | None = None,
    status_group: str | None = None,
    timestamped: bool = False,
) -> EventBuilder:
    def build(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent:
        timestamp = (
            parse_timestamp(match["timestamp"], clock=clock, formats=("%Y-%m-%d %H:%M:%S",))
            if timestamped
            else clock()
        )
        return ParsedEvent(
            timestamp=timestamp,
            upstream=match["source"],
            downstream=match["target"],
            action=match[action_group] if action_group else action,
            status=match[status_group] if status_group else None,
            platform=platform,
            raw_line=line,
            confidence=confidence,
        )

    return build


class TelemetryAdapter(LineAdapter):
    source_type = SourceType.TELEMETRY
    id_prefix = "telemetry"
    parsers = (
        PatternParser(
            "prometheus",
            PROMETHEUS_PATTERN,
            _telemetry_event(
                platform="prometheus-http",
                confidence=0.8,
                action="http_requests_total",
                status_group="value",
            ),
        ),
        PatternParser(
            "opentelemetry",
            OTEL_SPAN_PATTERN,
            _telemetry_event(
                platform="opentelemetry-span", confidence=0.9, action_group="operation"
            ),
        ),
        PatternParser(
            "apm",
            APM_DEPENDENCY_PATTERN,
            _telemetry_event(
                platform="apm-dependency",
                confidence=0.85,
                action_group="type",
                status_group="success_rate",
            ),
        ),
        PatternParser(
            "custom",
            CUSTOM_PATTERN,
            _telemetry_event(
                platform="custom-telemetry",
                confidence=0.7,
                action_group="metric",
                timestamped=True,
            ),
        ),
    )
    format_aliases = MappingProxyType({"otel": "opentelemetry", "prometheus-http": "prometheus"})
