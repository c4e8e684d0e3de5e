"""Translate CI/CD pipeline log lines into claims.

Supported platforms, in auto-detect order::

    jenkins         [2024-01-15T10:30:00.123Z] ... build-stage -> deploy-stage ... DEPLOY ... SUCCESS
    github-actions  2024-01-15T10:30:00.123Z ... workflow: deploy ... depends_on: [build, test]
    gitlab-ci       2024-01-15T10:30:00.123Z ... stage: deploy ... needs: [build]
    json            {"timestamp": "...", "source": "build", "target": "deploy", ...}

For ``depends_on``/``needs`` lists the first entry is taken as the upstream.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from depmatrix.adapters.parsing import (
    JsonLineParser,
    LineAdapter,
    ParsedEvent,
    PatternParser,
    parse_timestamp,
)
from depmatrix.domain.model import SourceType

from .schema import PipelineEventPayload

if TYPE_CHECKING:
    from depmatrix.adapters.parsing import Clock, EventBuilder

_ISO_TIMESTAMP: Final = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z?"

JENKINS_PATTERN: Final = re.compile(
    rf"\[(?P<timestamp>{_ISO_TIMESTAMP})\]\s+.*?(?P<source>[\w-]+)\s+->\s+(?P<target>[\w-]+)"
    r".*?(?P<action>DEPLOY|BUILD|TEST|ARTIFACT).*?(?P<status>SUCCESS|FAILURE|UNSTABLE)"
)
GITHUB_ACTIONS_PATTERN: Final = re.compile(
    rf"(?P<timestamp>{_ISO_TIMESTAMP}).*?workflow:\s*(?P<target>[\w-]+)"
    r".*?depends_on:\s*\[(?P<needs>[^\]]+)\]"
)
GITLAB_CI_PATTERN: Final = re.compile(
    rf"(?P<timestamp>{_ISO_TIMESTAMP}).*?stage:\s*(?P<target>[\w-]+).*?needs:\s*\[(?P<needs>[^\]]+)\]"
)


def _first_dependency(needs: str) -> str | None:
    for entry in needs.split(","):
        name = entry.strip().strip("\"'")
        if name:
            return name
    return None


def _jenkins_event(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent:
    return ParsedEvent(
        timestamp=parse_timestamp(match["timestamp"], clock=clock),
        upstream=match["source"],
        downstream=match["target"],
        action=match["action"],
        status=match["status"],
        platform="jenkins",
        raw_line=line,
    )


def _needs_event(*, platform: str, action: str, status: str) -> EventBuilder:
    def build(match: re.Match[str], line: str, clock: Clock) -> ParsedEvent | None:
        upstream = _first_dependency(match["needs"])
        if upstream is None:
            return None
        return ParsedEvent(
            timestamp=parse_timestamp(match["timestamp"], clock=clock),
            upstream=upstream,
            downstream=match["target"],
            action=action,
            status=status,
            platform=platform,
            raw_line=line,
        )

    return build


def _json_event(payload: PipelineEventPayload, line: str, clock: Clock) -> ParsedEvent:
    return ParsedEvent(
        timestamp=parse_timestamp(payload.timestamp, clock=clock),
        upstream=payload.source,
        downstream=payload.target,
        action=payload.action or "PIPELINE",
        status=payload.status or "UNKNOWN",
        platform="json",
        raw_line=line,
    )


class CiCdAdapter(LineAdapter):
    source_type = SourceType.CI_CD
    id_prefix = "cicd"
    parsers = (
        PatternParser("jenkins", JENKINS_PATTERN, _jenkins_event),
        PatternParser(
            "github-actions",
            GITHUB_ACTIONS_PATTERN,
            _needs_event(platform="github-actions", action="WORKFLOW", status="RUNNING"),
        ),
        PatternParser(
            "gitlab-ci",
            GITLAB_CI_PATTERN,
            _needs_event(platform="gitlab-ci", action="STAGE", status="PENDING"),
        ),
        JsonLineParser("json", PipelineEventPayload, _json_event),
    )
