"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceType(StrEnum):
    """Origin category of a claim."""

    CODEBASE = "CODEBASE"
    ROUTER_LOG = "ROUTER_LOG"
    API_GATEWAY = "API_GATEWAY"
    CI_CD = "CI_CD"
    TELEMETRY = "TELEMETRY"
    NETWORK = "NETWORK"

    # Synthetic, emitted only by conflict resolution:
    CONFLICT_RESOLVED = "CONFLICT_RESOLVED"


OBSERVED_SOURCE_TYPES: tuple[SourceType, ...] = tuple(
    source for source in SourceType if source is not SourceType.CONFLICT_RESOLVED
)
