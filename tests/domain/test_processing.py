from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from depmatrix.config import ScoringConfig
from depmatrix.domain.model import Claim, InvalidClaimError, SourceType
from depmatrix.domain.processing import ClaimProcessingEngine


@pytest.mark.parametrize(
    ("source_type", "expected"),
    [
        (SourceType.CODEBASE, 0.80),
        (SourceType.ROUTER_LOG, 0.65),
        (SourceType.API_GATEWAY, 0.60),
        (SourceType.CI_CD, 0.50),
        (SourceType.TELEMETRY, 0.50),
        (SourceType.NETWORK, 0.50),
    ],
)
def test_score_adds_source_boost_to_base(
    make_claim: Callable[..., Claim], source_type: SourceType, expected: float
) -> None:
    engine = ClaimProcessingEngine()

    scored = engine.score(make_claim(source_type))

    assert scored.confidence == pytest.approx(expected, abs=1e-4)


def test_score_overrides_preseeded_confidence(make_claim: Callable[..., Claim]) -> None:
    engine = ClaimProcessingEngine()

    scored = engine.score(make_claim(SourceType.TELEMETRY, confidence=0.9))

    assert scored.confidence == pytest.approx(0.5)


def test_score_is_deterministic(make_claim: Callable[..., Claim]) -> None:
    engine = ClaimProcessingEngine()
    claim = make_claim(SourceType.CODEBASE)

    assert engine.score(claim) == engine.score(claim)


def test_score_is_clamped_to_unit_interval(make_claim: Callable[..., Claim]) -> None:
    engine = ClaimProcessingEngine(
        ScoringConfig(base_score=0.9, source_boosts={SourceType.CODEBASE: 0.5})
    )

    assert engine.score(make_claim(SourceType.CODEBASE)).confidence == 1.0


def test_validate_accepts_complete_claim(make_claim: Callable[..., Claim]) -> None:
    ClaimProcessingEngine().validate(make_claim())


def test_validate_rejects_claim_missing_all_fields() -> None:
    bare = object.__new__(Claim)

    with pytest.raises(InvalidClaimError) as exc:
        ClaimProcessingEngine().validate(bare)

    assert set(exc.value.missing_fields) == {
        "id",
        "source_type",
        "raw_data",
        "processed_data",
        "timestamp",
    }


def test_normalize_keeps_claim_content(make_claim: Callable[..., Claim]) -> None:
    claim = make_claim()

    assert ClaimProcessingEngine().normalize(claim) == claim


def test_process_claims_scores_in_order(make_claim: Callable[..., Claim]) -> None:
    claims = [
        make_claim(SourceType.CODEBASE, claim_id="a"),
        make_claim(SourceType.ROUTER_LOG, claim_id="b"),
        make_claim(SourceType.API_GATEWAY, claim_id="c"),
    ]

    processed = ClaimProcessingEngine().process_claims(claims)

    assert [claim.id for claim in processed] == ["a", "b", "c"]
    assert [claim.confidence for claim in processed] == pytest.approx([0.80, 0.65, 0.60])
    assert all(claim.confidence is None for claim in claims)


@pytest.mark.parametrize("claims", [None, []])
def test_process_claims_handles_empty_input(claims: list[Claim] | None) -> None:
    assert ClaimProcessingEngine().process_claims(claims) == []


def test_process_claims_fails_whole_batch_on_invalid_claim(
    make_claim: Callable[..., Claim],
) -> None:
    bare = object.__new__(Claim)

    with pytest.raises(InvalidClaimError):
        ClaimProcessingEngine().process_claims([make_claim(), bare])


def test_processing_keeps_timestamp(make_claim: Callable[..., Claim]) -> None:
    timestamp = datetime(2023, 6, 1, tzinfo=UTC)

    (processed,) = ClaimProcessingEngine().process_claims([make_claim(timestamp=timestamp)])

    assert processed.timestamp == timestamp
