"""Translate API-gateway access logs into claims.

Supported formats, in auto-detect order::

    json  {"timestamp": "2024-01-15T10:30:00Z", "method": "GET", "path": "/api/v1/users/42",
           "sourceService": "web-portal", "responseTime": 45}
    clf   10.0.0.5 - - [15/Jan/2024:10:30:00 +0000] "GET /api/v1/users/42 HTTP/1.1" 200 512 "-"
          "order-service-client/2.0" 45ms

The called service is derived from the endpoint path; the calling service from
the record (JSON) or the user-agent string (CLF).
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from depmatrix.adapters.parsing import (
    JsonLineParser,
    LineAdapter,
    ParsedEvent,
    PatternParser,
    parse_timestamp,
)
from depmatrix.domain.model import SourceType

from .schema import GatewayRecordPayload

if TYPE_CHECKING:
    from depmatrix.adapters.parsing import Clock

UNKNOWN_SERVICE: Final = "unknown-service"
UNKNOWN_CLIENT: Final = "unknown-client"
SERVICE_SUFFIX: Final = "-service"

STANDARD_METHODS: Final = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})
TOO_FAST_MS: Final = 10
SLOW_MS: Final = 5_000
VERY_SLOW_MS: Final = 10_000

CLF_PATTERN: Final = re.compile(
    r"(?P<client_ip>\S+)\s+\S+\s+\S+\s+\[(?P<timestamp>[^\]]+)\]\s+"
    r'"(?P<method>\S+)\s+(?P<endpoint>\S+)(?:\s+\S+)?"\s+(?P<status>\d{3})\s+(?:\d+|-)\s+'
    r'"[^"]*"\s+"(?P<user_agent>[^"]*)"(?:\s+(?P<response_time>\d+)ms)?'
)
USER_AGENT_SERVICE_PATTERN: Final = re.compile(r"([a-zA-Z][\w-]*(?:service|client)[\w-]*)")
_SKIPPED_SEGMENT: Final = re.compile(r"api|v\d+", re.IGNORECASE)
_SERVICE_SEGMENT: Final = re.compile(r"[a-zA-Z][\w-]*")
_EXTENSION: Final = re.compile(r"\.[A-Za-z0-9]+$")


def _as_service(name: str) -> str:
    return name if name.endswith(SERVICE_SUFFIX) else f"{name}{SERVICE_SUFFIX}"


def service_from_endpoint(endpoint: str | None) -> str | None:
    """Return ``<segment>-service`` for the first meaningful path segment.

    ``/api/v1/users/42`` yields ``users-service``; version and ``api`` prefixes
    are skipped and ``/users.json`` reads as ``users``. Returns ``None`` when
    the path says nothing about the callee.
    """

    if not endpoint:
        return None
    path = endpoint.split("?", 1)[0]
    for part in path.split("/"):
        segment = _EXTENSION.sub("", part)
        if _SKIPPED_SEGMENT.fullmatch(segment) or not _SERVICE_SEGMENT.fullmatch(segment):
            continue
        return _as_service(segment.lower())
    return None


def service_from_user_agent(user_agent: str | None) -> str | None:
    """Return a ``*service*``/``*client*`` token from a user-agent string."""

    if not user_agent or user_agent == "-":
        return None
    match = USER_AGENT_SERVICE_PATTERN.search(user_agent)
    return match.group(1) if match else None


def target_service(endpoint: str | None, user_agent: str | None = None) -> str:
    return service_from_endpoint(endpoint) or service_from_user_agent(user_agent) or UNKNOWN_SERVICE


def gateway_confidence(method: str, endpoint: str | None, response_time: float | None) -> float:
    """Pre-seed a confidence from how well-formed and plausible a call looks."""

    well_formed = method.upper() in STANDARD_METHODS and service_from_endpoint(endpoint) is not None
    if response_time is not None and response_time < TOO_FAST_MS:
        # Suspiciously fast: cached responses or immediate errors.
        return 0.6 if well_formed else 0.4
    if not well_formed:
        return 0.5
    if response_time is None:
        return 0.8
    if response_time > VERY_SLOW_MS:
        return 0.65
    if response_time > SLOW_MS:
        return 0.8
    return 0.9


def _gateway_event(
    *,
    timestamp_value: str | float,
    method: str,
    endpoint: str,
    source: str,
    user_agent: str | None,
    response_time: float | None,
    status: str | None,
    platform: str,
    line: str,
    clock: Clock,
) -> ParsedEvent:
    return ParsedEvent(
        timestamp=parse_timestamp(
            timestamp_value, clock=clock, formats=("%d/%b/%Y:%H:%M:%S %z",)
        ),
        upstream=source,
        downstream=target_service(endpoint, user_agent),
        action=method.upper(),
        status=status,
        platform=platform,
        raw_line=line,
        confidence=gateway_confidence(method, endpoint, response_time),
    )


def _json_event(payload: GatewayRecordPayload, line: str, clock: Clock) -> ParsedEvent:
    source = (
        payload.source_service or service_from_user_agent(payload.user_agent) or UNKNOWN_CLIENT
    )
    return _gateway_event(
        timestamp_value=payload.timestamp,
        method=payload.method,
        endpoint=payload.endpoint,
        source=source,
        user_agent=payload.user_agent,
        response_time=payload.response_time,
        status=None,
        platform="json",
        line=line,
        clock=clock,
    )


def _clf_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent:
    client_ip = match["client_ip"]
    source = service_from_user_agent(match["user_agent"]) or f"client-{client_ip.replace('.', '-')}"
    response_time = match["response_time"]
    return _gateway_event(
        timestamp_value=match["timestamp"],
        method=match["method"],
        endpoint=match["endpoint"],
        source=source,
        user_agent=match["user_agent"],
        response_time=float(response_time) if response_time else None,
        status=match["status"],
        platform="clf",
        line=line,
        clock=clock,
    )


class ApiGatewayAdapter(LineAdapter):
    source_type = SourceType.API_GATEWAY
    id_prefix = "apigateway"
    parsers = (
        JsonLineParser("json", GatewayRecordPayload, _json_event),
        PatternParser("clf", CLF_PATTERN, _clf_event, anchored=True),
    )
    format_aliases = MappingProxyType({"aws-cloudwatch": "json", "cloudwatch": "json"})
