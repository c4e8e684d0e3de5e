"""Codebase adapter: build manifests and dependency coordinates.

Manifest formats are parsed as whole documents (a Maven ``<dependency>``
block spans several lines); the ``simple`` format is one coordinate per line::

    maven    <dependency><groupId>com.enterprise</groupId><artifactId>user-service-client</artifactId>...
    gradle   implementation 'com.enterprise:billing-api:2.1.0'
    npm      {"name": "web-portal", "dependencies": {"@enterprise/orders-client": "^1.2.0"}}
    simple   maven:com.enterprise.orders:inventory-client:1.4.2

Manifests say nothing about when they were observed, so claims are stamped
with the adapter clock.
"""

from __future__ import annotations

import json
import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from depmatrix.adapters.parsing import (
    AUTO_FORMAT,
    LineAdapter,
    ParsedEvent,
    PatternParser,
    utcnow,
)
from depmatrix.domain.model import SourceType

from .schema import NpmManifestPayload

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from depmatrix.adapters.parsing import Clock
    from depmatrix.domain.model import Claim


log = getLogger(__name__)

UNKNOWN_APPLICATION: Final = "unknown-app"
DEFAULT_INTERNAL_GROUP_MARKERS: Final = ("enterprise", "company")
MANIFEST_CONFIDENCE: Final = 0.95
COORDINATE_CONFIDENCE: Final = 0.9
MANIFEST_FORMATS: Final = ("maven", "gradle", "npm")

_WITHIN_DEPENDENCY: Final = r"(?:(?!</dependency>).)*?"
MAVEN_DEPENDENCY_PATTERN: Final = re.compile(
    rf"<dependency>{_WITHIN_DEPENDENCY}<groupId>(?P<group>[^<]+)</groupId>{_WITHIN_DEPENDENCY}"
    rf"<artifactId>(?P<artifact>[^<]+)</artifactId>"
    rf"(?:{_WITHIN_DEPENDENCY}<version>(?P<version>[^<]+)</version>)?{_WITHIN_DEPENDENCY}</dependency>",
    re.DOTALL | re.IGNORECASE,
)
GRADLE_DEPENDENCY_PATTERN: Final = re.compile(
    r"\b(?:implementation|api|compile|compileOnly|runtimeOnly)\s*\(?\s*['\"]"
    r"(?P<group>[^:'\"]+):(?P<artifact>[^:'\"]+):(?P<version>[^'\"]+)['\"]"
)
COORDINATE_PATTERN: Final = re.compile(
    r"(?:(?P<build>maven|gradle|npm|ivy|sbt):)?(?P<group>[\w.\-]+):(?P<artifact>[\w.\-]+)"
    r"(?::(?P<version>[\w.\-+]+))?"
)

_ARTIFACT_SUFFIXES: Final = re.compile(r"(-client|-service|-api|-lib|-library|-common)$")
_ARTIFACT_PREFIXES: Final = re.compile(r"^(lib-|api-|service-)")
_COORDINATE_SUFFIXES: Final = re.compile(r"(-client|-api|-service|-lib|-core)$")


def application_name(
    group_id: str,
    artifact_id: str,
    *,
    internal_markers: Sequence[str] = DEFAULT_INTERNAL_GROUP_MARKERS,
) -> str:
    """Name the application a manifest dependency points at.

    Internal artifacts are known by their stripped artifact id; third-party
    ones keep their group so ``com.fasterxml.jackson-databind`` stays unique.
    """

    name = _ARTIFACT_PREFIXES.sub("", _ARTIFACT_SUFFIXES.sub("", artifact_id.strip()))
    name = name or artifact_id.strip()
    if any(marker in group_id for marker in internal_markers):
        return name
    return f"{group_id.strip()}.{name}"


def coordinate_source(group_id: str) -> str:
    """``com.enterprise.orders`` -> ``orders-system``; ``orders`` -> ``orders-app``."""

    group_id = group_id.strip()
    if "." in group_id:
        return f"{group_id.rsplit('.', 1)[-1]}-system"
    return f"{group_id}-app"


def coordinate_target(artifact_id: str) -> str:
    """``inventory-client`` -> ``inventory-service``."""

    name = _COORDINATE_SUFFIXES.sub("", artifact_id.strip()).replace("-", " ").strip()
    if not name:
        return artifact_id
    return f"{name.replace(' ', '-')}-service"


def _npm_coordinates(package: str) -> tuple[str, str]:
    # Scoped packages (@enterprise/orders-client) carry their organisation as the group.
    if package.startswith("@") and "/" in package:
        scope, name = package.split("/", 1)
        return scope, name
    return "npm", package


def _coordinate_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent:
    return ParsedEvent(
        timestamp=clock(),
        upstream=coordinate_source(match["group"]),
        downstream=coordinate_target(match["artifact"]),
        action="DEPENDS_ON",
        status=match["version"],
        platform=match["build"] or "unknown",
        raw_line=line,
        confidence=COORDINATE_CONFIDENCE,
    )


def _xml_coordinate_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent:
    return ParsedEvent(
        timestamp=clock(),
        upstream=coordinate_source(match["group"]),
        downstream=coordinate_target(match["artifact"]),
        action="DEPENDS_ON",
        status=match["version"],
        platform="maven",
        raw_line=line,
        confidence=COORDINATE_CONFIDENCE,
    )


class CodebaseAdapter(LineAdapter):
    """Claims from build manifests (``maven``, ``gradle``, ``npm``) and coordinates."""

    source_type = SourceType.CODEBASE
    id_prefix = "codebase"
    parsers = (
        PatternParser("simple", MAVEN_DEPENDENCY_PATTERN, _xml_coordinate_event),
        PatternParser("simple", COORDINATE_PATTERN, _coordinate_event, anchored=True),
    )

    def __init__(
        self,
        *,
        clock: Clock = utcnow,
        aliases: Mapping[str, str] | None = None,
        internal_markers: Sequence[str] = DEFAULT_INTERNAL_GROUP_MARKERS,
        source_application: str | None = None,
    ) -> None:
        super().__init__(clock=clock, aliases=aliases)
        self._internal_markers = tuple(internal_markers)
        self._source_application = source_application

    @property
    def formats(self) -> tuple[str, ...]:
        return (*MANIFEST_FORMATS, "simple")

    def parse(
        self,
        raw: str | None,
        fmt: str | None = None,
        *,
        source_application: str | None = None,
    ) -> list[Claim]:
        """Parse a manifest document or coordinate lines.

        ``source_application`` names the application that owns the manifest
        (defaulting to the one given at construction); npm manifests fall back
        to their ``name`` field.
        """

        if raw is None or not raw.strip():
            return []
        source_application = source_application or self._source_application
        key = AUTO_FORMAT if fmt is None or not fmt.strip() else fmt.strip().lower()
        if key == AUTO_FORMAT:
            key = self.detect_format(raw)
        if key == "simple":
            return super().parse(raw, "simple")
        if key not in MANIFEST_FORMATS:
            self.warn_unsupported(fmt)
            return []

        claims: list[Claim] = []
        for event in self._manifest_events(raw, key, source_application):
            try:
                claims.append(self.to_claim(event))
            except ValueError as exc:
                log.debug("Skipping %s dependency %r: %s", key, event.raw_line, exc)
        log.info(
            "Extracted %d %s claims from %s manifest of %s",
            len(claims),
            self.source_type,
            key,
            source_application or UNKNOWN_APPLICATION,
        )
        return claims

    def detect_format(self, raw: str) -> str:
        """Guess the manifest type; anything unrecognised is read as coordinates."""

        if MAVEN_DEPENDENCY_PATTERN.search(raw) and ("<project" in raw or "<dependencies>" in raw):
            return "maven"
        if GRADLE_DEPENDENCY_PATTERN.search(raw):
            return "gradle"
        stripped = raw.lstrip()
        if stripped.startswith("{") and '"dependencies"' in raw:
            return "npm"
        return "simple"

    def _manifest_events(
        self, raw: str, key: str, source_application: str | None
    ) -> Iterator[ParsedEvent]:
        if key == "npm":
            yield from self._npm_events(raw, source_application)
            return
        pattern = MAVEN_DEPENDENCY_PATTERN if key == "maven" else GRADLE_DEPENDENCY_PATTERN
        source = source_application or UNKNOWN_APPLICATION
        for match in pattern.finditer(raw):
            yield self._manifest_event(
                source=source,
                group_id=match["group"],
                artifact_id=match["artifact"],
                version=match["version"],
                platform=key,
                raw_line=match.group(0),
            )

    def _npm_events(self, raw: str, source_application: str | None) -> Iterator[ParsedEvent]:
        try:
            payload = NpmManifestPayload.model_validate_json(raw)
        except ValidationError as exc:
            log.warning("Could not parse npm manifest: %s", exc)
            return
        if not payload.dependencies:
            log.debug("No dependencies section found in npm manifest")
            return
        source = source_application or payload.name or UNKNOWN_APPLICATION
        for name, version in payload.dependencies.items():
            group_id, artifact_id = _npm_coordinates(name)
            yield self._manifest_event(
                source=source,
                group_id=group_id,
                artifact_id=artifact_id,
                version=version,
                platform="npm",
                raw_line=json.dumps({name: version}),
            )

    def _manifest_event(
        self,
        *,
        source: str,
        group_id: str,
        artifact_id: str,
        version: str | None,
        platform: str,
        raw_line: str,
    ) -> ParsedEvent:
        return ParsedEvent(
            timestamp=self._clock(),
            upstream=source,
            downstream=application_name(
                group_id, artifact_id, internal_markers=self._internal_markers
            ),
            action="DEPENDS_ON",
            status=version.strip() if version else None,
            platform=platform,
            raw_line=raw_line,
            confidence=MANIFEST_CONFIDENCE,
        )
