"""Router log adapter.

Recognised line shape::

    2024-01-15 10:30:00 [INFO] 10.0.0.1 -> 10.0.0.2:8080 HTTP GET /api/users 200 45ms

Everything after the protocol is optional. Edges are reported between the
addresses; pass ``aliases`` to map addresses onto application names.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from depmatrix.domain.model import SourceType

from .parsing import LineAdapter, ParsedEvent, PatternParser, parse_timestamp

if TYPE_CHECKING:
    from .parsing import Clock

DEFAULT_PATTERN: Final = re.compile(
    r"(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) \[INFO] "
    r"(?P<source_ip>\d+\.\d+\.\d+\.\d+) -> (?P<target_ip>\d+\.\d+\.\d+\.\d+):(?P<target_port>\d+) "
    r"(?P<protocol>\w+)( (?P<method>[A-Z]+))?( (?P<endpoint>[^ ]+?))?( (?P<status_code>\d{3}))?"
    r"( (?P<response_time>\d+)ms)?"
)


def _default_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent:
    return ParsedEvent(
        timestamp=parse_timestamp(match["timestamp"], clock=clock, formats=("%Y-%m-%d %H:%M:%S",)),
        upstream=match["source_ip"],
        downstream=match["target_ip"],
        action=match["method"] or match["protocol"],
        status=match["status_code"],
        platform="router",
        raw_line=line,
    )


class RouterLogAdapter(LineAdapter):
    source_type = SourceType.ROUTER_LOG
    id_prefix = "router"
    parsers = (PatternParser("default", DEFAULT_PATTERN, _default_event, anchored=True),)
