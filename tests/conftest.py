from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from depmatrix.domain.model import Claim, ConfidenceScore, SourceType, format_edge

if TYPE_CHECKING:
    from collections.abc import Callable

FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    def clock() -> datetime:
        return FIXED_NOW

    return clock


@pytest.fixture
def make_claim() -> Callable[..., Claim]:
    counter = iter(range(1, 10_000))

    def factory(
        source_type: SourceType = SourceType.ROUTER_LOG,
        *,
        edge: tuple[str, str] = ("web-portal", "users-service"),
        confidence: float | None = None,
        timestamp: datetime = FIXED_NOW,
        claim_id: str | None = None,
    ) -> Claim:
        return Claim(
            id=claim_id or f"claim_{next(counter)}",
            source_type=source_type,
            raw_data=f"{source_type} evidence for {format_edge(*edge)}",
            processed_data=format_edge(*edge),
            timestamp=timestamp,
            confidence_score=None if confidence is None else ConfidenceScore(confidence),
        )

    return factory
