"""Network log adapter: flow records and firewall/connection logs.

Supported formats, in auto-detect order::

    vpc-flow    2 123456789010 eni-0a1b 10.0.0.1 10.0.0.2 49152 5432 6 20 4249 1705314600 1705314660 ACCEPT OK
    iptables    Jan 15 10:30:00 fw01 kernel: [FW-ACCEPT] IN=eth0 OUT= SRC=10.0.0.1 DST=10.0.0.2 ... PROTO=TCP SPT=49152 DPT=5432
    connection  2024-01-15T10:30:00Z TCP 10.0.0.1:49152 -> 10.0.0.2:5432 ESTABLISHED

Refused traffic is not evidence of a dependency, so rejected/dropped flows
are skipped. Endpoints are addresses; pass ``aliases`` to name them.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from depmatrix.domain.model import SourceType

from .parsing import LineAdapter, ParsedEvent, PatternParser, parse_timestamp

if TYPE_CHECKING:
    from .parsing import Clock

BLOCKED_STATUSES: Final = frozenset(
    {"REJECT", "REJECTED", "DROP", "DROPPED", "DENY", "DENIED", "REFUSED", "BLOCK", "BLOCKED"}
)
IANA_PROTOCOLS: Final = {"1": "ICMP", "6": "TCP", "17": "UDP"}

VPC_FLOW_PATTERN: Final = re.compile(
    r"(?P<version>\d+) (?P<account>\S+) (?P<interface>\S+) (?P<source>[\d.:a-fA-F]+) "
    r"(?P<target>[\d.:a-fA-F]+) (?P<source_port>\d+) (?P<port>\d+) (?P<protocol>\d+) "
    r"(?P<packets>\d+) (?P<bytes>\d+) (?P<start>\d+) (?P<end>\d+) (?P<status>[A-Z]+) (?P<log_status>\S+)"
)
IPTABLES_PATTERN: Final = re.compile(
    r"(?:(?P<timestamp>[A-Z][a-z]{2} +\d{1,2} \d{2}:\d{2}:\d{2}) )?(?P<prefix>.*?)"
    r"\bSRC=(?P<source>\S+) DST=(?P<target>\S+)\b.*?\bPROTO=(?P<protocol>\w+)"
    r"(?:.*?\bDPT=(?P<port>\d+))?"
)
KERNEL_TAG_PATTERN: Final = re.compile(r"\bkernel:\s*(?:\[\s*\d+\.\d+\]\s*)?")
LOG_FIELD_PATTERN: Final = re.compile(r"\b[A-Z]+=")
BRACKETED_PATTERN: Final = re.compile(r"\[([^\]]*)\]")
CONNECTION_PATTERN: Final = re.compile(
    r"(?P<timestamp>\S+(?: \d{2}:\d{2}:\d{2})?)\s+(?P<protocol>TCP|UDP|ICMP|tcp|udp|icmp)\s+"
    r"(?P<source>[\w.\-]+)(?::\d+)?\s+->\s+(?P<target>[\w.\-]+)(?::(?P<port>\d+))?"
    r"(?:\s+(?P<status>\w+))?"
)


def _is_blocked(text: str | None) -> bool:
    if not text:
        return False
    return any(token in BLOCKED_STATUSES for token in re.split(r"[^A-Za-z]+", text.upper()))


def _log_prefix(text: str) -> str:
    """The firewall rule prefix, without syslog host or kernel uptime."""
    tags = list(KERNEL_TAG_PATTERN.finditer(text))
    if tags:
        text = text[tags[-1].end() :]
    else:
        bracketed = BRACKETED_PATTERN.search(text)
        if bracketed:
            return bracketed[1]
    field = LOG_FIELD_PATTERN.search(text)
    return text[: field.start()] if field else text


def _syslog_timestamp(value: str | None, clock: Clock) -> datetime:
    # Syslog stamps omit the year; borrow it from the ingest clock.
    now = clock()
    if value is None:
        return now
    try:
        parsed = datetime.strptime(f"{now.year} {' '.join(value.split())}", "%Y %b %d %H:%M:%S")
    except ValueError:
        return now
    return parsed.replace(tzinfo=UTC)


def _vpc_flow_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent | None:
    if match["status"] in BLOCKED_STATUSES:
        return None
    return ParsedEvent(
        timestamp=parse_timestamp(float(match["start"]) * 1000, clock=clock),
        upstream=match["source"],
        downstream=match["target"],
        action=IANA_PROTOCOLS.get(match["protocol"], match["protocol"]),
        status=match["status"],
        platform="vpc-flow",
        raw_line=line,
    )


def _iptables_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent | None:
    if _is_blocked(_log_prefix(match["prefix"])):
        return None
    return ParsedEvent(
        timestamp=_syslog_timestamp(match["timestamp"], clock),
        upstream=match["source"],
        downstream=match["target"],
        action=match["protocol"],
        status=match["port"],
        platform="iptables",
        raw_line=line,
    )


def _connection_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent | None:
    if _is_blocked(match["status"]):
        return None
    return ParsedEvent(
        timestamp=parse_timestamp(match["timestamp"], clock=clock),
        upstream=match["source"],
        downstream=match["target"],
        action=match["protocol"].upper(),
        status=match["status"],
        platform="connection",
        raw_line=line,
    )


class NetworkAdapter(LineAdapter):
    source_type = SourceType.NETWORK
    id_prefix = "network"
    parsers = (
        PatternParser("vpc-flow", VPC_FLOW_PATTERN, _vpc_flow_event, anchored=True),
        PatternParser("iptables", IPTABLES_PATTERN, _iptables_event),
        PatternParser("connection", CONNECTION_PATTERN, _connection_event, anchored=True),
    )
