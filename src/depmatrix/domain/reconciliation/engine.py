"""Conflict resolution: fuse claims that describe the same edge.

Planned layered flow:
1) partition claims by edge key (``processed_data``)
2) pass singleton groups through untouched
3) rank competing claims with ``policy.fusion_weight`` and keep the winner
4) emit one ``CONFLICT_RESOLVED`` claim per fused group
5) apply business-rule overrides to every output claim
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC
from logging import getLogger
from typing import TYPE_CHECKING, TypeAlias

from depmatrix.config.fusion import FusionConfig
from depmatrix.domain.model import Claim, ConfidenceScore, SourceType

from .policy import FusionWeight, fusion_weight

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

BusinessRule: TypeAlias = Callable[[Claim], Claim]

RESOLVED_ID_SUFFIX = "_resolved"


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FusionDecision:
    """Audit record for one fused group."""

    edge: str
    winner: Claim
    resolved: Claim
    weights: tuple[tuple[Claim, FusionWeight], ...]

    @property
    def candidates(self) -> tuple[Claim, ...]:
        return tuple(claim for claim, _ in self.weights)


class ConflictResolutionEngine:
    """Group claims by edge and fuse contradictory ones into a canonical claim."""

    def __init__(
        self,
        config: FusionConfig | None = None,
        *,
        business_rules: Sequence[BusinessRule] = (),
    ) -> None:
        self._config = config or FusionConfig()
        self._business_rules = tuple(business_rules)

    @property
    def config(self) -> FusionConfig:
        return self._config

    def resolve_claims(
        self,
        claims: Iterable[Claim] | None,
        *,
        reference_time: datetime | None = None,
    ) -> list[Claim]:
        """Return one claim per distinct edge, in first-appearance order."""

        if not claims:
            return []
        groups = group_by_edge(claims)
        resolved: list[Claim] = []
        for group in groups.values():
            if len(group) == 1:
                claim = group[0]
            else:
                claim = self.fuse(group, reference_time=reference_time).resolved
            resolved.append(self.apply_business_rules(claim))

        log.info("Resolved %d claim groups into %d claims", len(groups), len(resolved))
        return resolved

    def fuse(
        self,
        group: Sequence[Claim],
        *,
        reference_time: datetime | None = None,
    ) -> FusionDecision:
        """Pick a winner among claims sharing one edge key."""

        if not group:
            raise ValueError("Cannot fuse an empty claim group")
        edge = group[0].processed_data
        if any(claim.processed_data != edge for claim in group):
            raise ValueError(f"Claims in a fusion group must share the edge key {edge!r}")

        reference = reference_time or max(claim.timestamp for claim in group)
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=UTC)
        weights = tuple((claim, self.weight_of(claim, reference)) for claim in group)
        # max() keeps the first of equal weights, so input order settles full ties.
        winner, winning_weight = max(weights, key=lambda item: item[1])
        for claim, weight in weights:
            log.debug("Edge %s candidate %s weight %s", edge, claim.id, weight)

        confidence = winner.confidence
        if confidence is None:
            confidence = self._config.default_confidence
        resolved = Claim(
            id=f"{winner.id}{RESOLVED_ID_SUFFIX}",
            source_type=SourceType.CONFLICT_RESOLVED,
            raw_data=winner.raw_data,
            processed_data=edge,
            timestamp=winner.timestamp,
            confidence_score=ConfidenceScore(confidence),
        )
        log.debug(
            "Resolved %d claims for %s: winner %s (%s, weight %.3f)",
            len(group),
            edge,
            winner.id,
            winner.source_type,
            winning_weight.effective_confidence,
        )
        return FusionDecision(edge=edge, winner=winner, resolved=resolved, weights=weights)

    def weight_of(self, claim: Claim, reference_time: datetime) -> FusionWeight:
        return fusion_weight(
            claim.confidence,
            reference_time - claim.timestamp,
            self._config.source_rank(claim.source_type),
            self._config,
        )

    def apply_business_rules(self, claim: Claim) -> Claim:
        """Apply manual override rules in order; identity when none are configured."""

        for rule in self._business_rules:
            claim = rule(claim)
        return claim


def group_by_edge(claims: Iterable[Claim]) -> dict[str, list[Claim]]:
    """Partition claims by exact edge key, keeping first-appearance order."""

    groups: dict[str, list[Claim]] = {}
    for claim in claims:
        groups.setdefault(claim.processed_data, []).append(claim)
    return groups
