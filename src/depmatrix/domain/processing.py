"""Claim validation, normalization and scoring.

Responsibilities of this stage:
- reject claims that lack mandatory fields before they reach fusion
- keep a normalization hook between validation and scoring
- assign the canonical confidence score fusion relies on

Scores are derived from the source type only, so ``score`` is pure: the same
claim always receives the same confidence, whatever an adapter pre-seeded.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from depmatrix.config.scoring import ScoringConfig
from depmatrix.domain.model import Claim, ConfidenceScore, InvalidClaimError, missing_claim_fields

if TYPE_CHECKING:
    from collections.abc import Iterable


log = getLogger(__name__)


class ClaimProcessingEngine:
    """Validate, normalize and score claims uniformly regardless of origin."""

    def __init__(self, scoring: ScoringConfig | None = None) -> None:
        self._scoring = scoring or ScoringConfig()

    @property
    def scoring(self) -> ScoringConfig:
        return self._scoring

    def validate(self, claim: Claim) -> None:
        """Raise ``InvalidClaimError`` when a mandatory field is missing or blank."""

        missing = missing_claim_fields(claim)
        if missing:
            claim_id = getattr(claim, "id", None)
            log.warning("Rejecting claim %s: missing %s", claim_id, ", ".join(missing))
            raise InvalidClaimError(missing, claim_id=claim_id)

    def normalize(self, claim: Claim) -> Claim:
        # Identity for now; callers must not rely on getting the same object back.
        return claim

    def score(self, claim: Claim) -> Claim:
        value = self._scoring.base_score + self._scoring.boost_for(claim.source_type)
        scored = claim.with_confidence(ConfidenceScore.clamped(value))
        log.debug("Scored claim %s (%s) at %.2f", claim.id, claim.source_type, scored.confidence)
        return scored

    def process_claims(self, claims: Iterable[Claim] | None) -> list[Claim]:
        """Validate, normalize and score every claim, preserving order.

        Validation runs over the whole batch first: a single invalid claim fails
        the call and nothing is returned.
        """

        if not claims:
            return []
        batch = list(claims)
        log.info("Processing %d claims", len(batch))
        for claim in batch:
            self.validate(claim)
        return [self.score(self.normalize(claim)) for claim in batch]
