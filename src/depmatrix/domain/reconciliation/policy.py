"""Ranking policy for fusing claims about the same edge.

This stage is deterministic given the claims and the ``FusionConfig``:
- source rank decides first, whatever the numeric confidence
- recency-decayed confidence decides among equally ranked sources
- raw confidence breaks the remaining ties

Age is measured against a reference instant supplied by the caller (the
freshest claim in the group by default), never against the wall clock.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from depmatrix.config.fusion import FusionConfig

_DAY = timedelta(days=1)


class FusionWeight(NamedTuple):
    """Comparable weight of one candidate claim; larger wins."""

    source_rank: int
    effective_confidence: float
    confidence: float


def recency_factor(age: timedelta, config: FusionConfig) -> float:
    """Return the multiplier applied to a claim's confidence for its age.

    Claims within ``recency_threshold`` keep full weight; beyond it the weight
    decays by ``decay_factor`` per day, bounded below by ``min_recency_factor``.
    """

    excess = age - config.recency_threshold
    if excess <= timedelta(0):
        return 1.0
    decayed = config.decay_factor ** (excess / _DAY)
    return max(config.min_recency_factor, decayed)


def fusion_weight(
    confidence: float | None,
    age: timedelta,
    source_rank: int,
    config: FusionConfig,
) -> FusionWeight:
    effective = config.default_confidence if confidence is None else confidence
    return FusionWeight(
        source_rank=source_rank,
        effective_confidence=effective * recency_factor(age, config),
        confidence=effective,
    )
