"""Shared machinery for line-oriented source adapters.

Every adapter owns an ordered table of parser strategies. A strategy looks at
one line and either returns a ``ParsedEvent`` or ``None``; the adapter turns
events into claims. Lines are independent, so a malformed line only costs
that line.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar, Generic, Protocol, TypeAlias, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from depmatrix.domain.model import Claim, ConfidenceScore, format_edge

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from depmatrix.domain.model import SourceType


log = getLogger(__name__)

AUTO_FORMAT = "auto"


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class ParsedEvent:
    """One recognised record, before it becomes a claim."""

    timestamp: datetime
    upstream: str
    downstream: str
    action: str | None = None
    status: str | None = None
    platform: str
    raw_line: str
    confidence: float | None = None


class LineParser(Protocol):
    """Strategy for one source grammar."""

    @property
    def format(self) -> str: ...

    def try_parse(self, line: str, *, clock: Clock) -> ParsedEvent | None: ...


EventBuilder: TypeAlias = Callable[[re.Match[str], str, Clock], ParsedEvent | None]


@dataclass(frozen=True, slots=True)
class PatternParser:
    """Regex-backed strategy: a match is handed to ``build`` to create the event."""

    format: str
    pattern: re.Pattern[str]
    build: EventBuilder
    anchored: bool = False

    def try_parse(self, line: str, *, clock: Clock) -> ParsedEvent | None:
        match = self.pattern.fullmatch(line) if self.anchored else self.pattern.search(line)
        if match is None:
            return None
        return self.build(match, line, clock)


ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class JsonLineParser(Generic[ModelT]):
    """Strategy for one JSON object per line, validated with a pydantic model."""

    format: str
    model: type[ModelT]
    build: Callable[[ModelT, str, Clock], ParsedEvent | None]

    def try_parse(self, line: str, *, clock: Clock) -> ParsedEvent | None:
        if not line.startswith("{"):
            return None
        payload = self.model.model_validate_json(line)
        return self.build(payload, line, clock)


def parse_timestamp(
    value: str | float | None,
    *,
    clock: Clock,
    formats: Sequence[str] = (),
) -> datetime:
    """Parse ``value`` as ISO-8601, epoch millis or one of ``formats``.

    Unparseable values fall back to ``clock()``: inconsistent legacy formats
    should not cost us the record. Naive results are interpreted as UTC.
    """

    parsed = _parse_timestamp(value, formats)
    if parsed is None:
        log.debug("Could not parse timestamp %r, using ingest time", value)
        return clock()
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _parse_timestamp(value: str | float | None, formats: Sequence[str]) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
    except ValueError:
        pass
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)  # noqa: DTZ007
        except ValueError:
            continue
    return None


class LineAdapter:
    """Base class for adapters whose input is one record per line.

    Subclasses declare ``source_type``, ``id_prefix`` and ``parsers`` (in
    auto-detect priority order, specific grammars before loose ones).
    """

    source_type: ClassVar[SourceType]
    id_prefix: ClassVar[str]
    parsers: ClassVar[tuple[LineParser, ...]]
    format_aliases: ClassVar[Mapping[str, str]] = MappingProxyType({})

    def __init__(
        self,
        *,
        clock: Clock = utcnow,
        aliases: Mapping[str, str] | None = None,
    ) -> None:
        self._clock = clock
        self._aliases: Mapping[str, str] = MappingProxyType(dict(aliases or {}))

    @property
    def formats(self) -> tuple[str, ...]:
        """Format tags accepted by ``parse``, in auto-detect order."""
        return tuple(dict.fromkeys(parser.format for parser in self.parsers))

    def parse(self, raw: str | None, fmt: str | None = None) -> list[Claim]:
        """Turn raw text into claims; never raises for malformed input."""

        if raw is None or not raw.strip():
            return []
        parsers = self.parsers_for(fmt)
        if parsers is None:
            self.warn_unsupported(fmt)
            return []
        claims = self.parse_lines(raw.splitlines(), parsers)
        log.info(
            "Extracted %d %s claims (format=%s)",
            len(claims),
            self.source_type,
            fmt or AUTO_FORMAT,
        )
        return claims

    def warn_unsupported(self, fmt: str | None) -> None:
        log.warning(
            "Unsupported %s format: %s (expected one of %s)",
            self.source_type,
            fmt,
            ", ".join(self.formats),
        )

    def parse_line(self, line: str, fmt: str | None = None) -> ParsedEvent | None:
        parsers = self.parsers_for(fmt)
        if parsers is None:
            return None
        return self._first_match(line.strip(), parsers)

    def parsers_for(self, fmt: str | None) -> tuple[LineParser, ...] | None:
        """Resolve a format tag to strategies; ``None`` for unknown tags."""

        if fmt is None or not fmt.strip() or fmt.strip().lower() == AUTO_FORMAT:
            return self.parsers
        key = fmt.strip().lower()
        key = self.format_aliases.get(key, key)
        selected = tuple(parser for parser in self.parsers if parser.format == key)
        return selected or None

    def parse_lines(self, lines: Iterable[str], parsers: Sequence[LineParser]) -> list[Claim]:
        claims: list[Claim] = []
        for number, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line:
                continue
            event = self._first_match(line, parsers)
            if event is None:
                log.debug("Skipping unrecognised %s line %d: %s", self.source_type, number, line)
                continue
            try:
                claims.append(self.to_claim(event))
            except ValueError as exc:
                log.debug("Skipping %s line %d: %s", self.source_type, number, exc)
        return claims

    def to_claim(self, event: ParsedEvent) -> Claim:
        confidence = None
        if event.confidence is not None:
            confidence = ConfidenceScore.clamped(event.confidence)
        return Claim(
            id=f"{self.id_prefix}_{uuid4().hex}",
            source_type=self.source_type,
            raw_data=event.raw_line,
            processed_data=format_edge(self.alias(event.upstream), self.alias(event.downstream)),
            timestamp=event.timestamp,
            confidence_score=confidence,
        )

    def alias(self, name: str) -> str:
        name = name.strip()
        return self._aliases.get(name, name)

    def _first_match(self, line: str, parsers: Sequence[LineParser]) -> ParsedEvent | None:
        for parser in parsers:
            try:
                event = parser.try_parse(line, clock=self._clock)
            except ValueError as exc:
                log.debug("%s parser %s rejected line: %s", self.source_type, parser.format, exc)
                continue
            if event is not None:
                return event
        return None
