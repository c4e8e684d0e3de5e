from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from depmatrix.config import (
    ConfigurationError,
    FusionConfig,
    ScoringConfig,
    configure_logging,
    get_fusion_config,
    get_scoring_config,
)
from depmatrix.config.env import list_env_var, mapping_env_var
from depmatrix.config.fusion import DEFAULT_SOURCE_PRIORITY
from depmatrix.domain.model import SourceType

_ENV_VARS = (
    "DEPMATRIX_BASE_SCORE",
    "DEPMATRIX_SOURCE_BOOSTS",
    "DEPMATRIX_SOURCE_PRIORITY",
    "DEPMATRIX_RECENCY_THRESHOLD_HOURS",
    "DEPMATRIX_RECENCY_DECAY_FACTOR",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_scoring_defaults() -> None:
    config = get_scoring_config()

    assert config.base_score == 0.5
    assert config.boost_for(SourceType.CODEBASE) == pytest.approx(0.3)
    assert config.boost_for(SourceType.ROUTER_LOG) == pytest.approx(0.15)
    assert config.boost_for(SourceType.API_GATEWAY) == pytest.approx(0.1)
    assert config.boost_for(SourceType.TELEMETRY) == 0.0


def test_scoring_overrides_merge_over_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPMATRIX_BASE_SCORE", "0.4")
    monkeypatch.setenv("DEPMATRIX_SOURCE_BOOSTS", "telemetry=0.2, ROUTER_LOG=0.05")

    config = get_scoring_config()

    assert config.base_score == pytest.approx(0.4)
    assert config.boost_for(SourceType.TELEMETRY) == pytest.approx(0.2)
    assert config.boost_for(SourceType.ROUTER_LOG) == pytest.approx(0.05)
    assert config.boost_for(SourceType.CODEBASE) == pytest.approx(0.3)


@pytest.mark.parametrize(
    ("name", "value", "match"),
    [
        ("DEPMATRIX_BASE_SCORE", "high", "DEPMATRIX_BASE_SCORE"),
        ("DEPMATRIX_BASE_SCORE", "1.5", "Base score"),
        ("DEPMATRIX_SOURCE_BOOSTS", "CODEBASE", "KEY=VALUE"),
        ("DEPMATRIX_SOURCE_BOOSTS", "CODEBASE=lots", "must be a number"),
        ("DEPMATRIX_SOURCE_BOOSTS", "FAX=0.1", "unknown source type"),
    ],
)
def test_scoring_rejects_malformed_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, match: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError, match=match):
        get_scoring_config()


def test_configuration_errors_name_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPMATRIX_RECENCY_DECAY_FACTOR", "soon")

    with pytest.raises(ConfigurationError) as exc:
        get_fusion_config()

    assert exc.value.variable == "DEPMATRIX_RECENCY_DECAY_FACTOR"


def test_fusion_defaults() -> None:
    config = get_fusion_config()

    assert config == FusionConfig()
    assert config.source_priority == DEFAULT_SOURCE_PRIORITY
    assert config.recency_threshold == timedelta(hours=24)
    assert config.decay_factor == pytest.approx(0.8)


def test_fusion_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPMATRIX_SOURCE_PRIORITY", "router_log,codebase")
    monkeypatch.setenv("DEPMATRIX_RECENCY_THRESHOLD_HOURS", "6")
    monkeypatch.setenv("DEPMATRIX_RECENCY_DECAY_FACTOR", "0.5")

    config = get_fusion_config()

    assert config.source_priority == (SourceType.ROUTER_LOG, SourceType.CODEBASE)
    assert config.source_rank(SourceType.ROUTER_LOG) > config.source_rank(SourceType.CODEBASE)
    assert config.source_rank(SourceType.NETWORK) == 0
    assert config.recency_threshold == timedelta(hours=6)
    assert config.decay_factor == pytest.approx(0.5)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DEPMATRIX_SOURCE_PRIORITY", "CODEBASE,FAX"),
        ("DEPMATRIX_SOURCE_PRIORITY", "CODEBASE,codebase"),
        ("DEPMATRIX_RECENCY_THRESHOLD_HOURS", "-1"),
        ("DEPMATRIX_RECENCY_DECAY_FACTOR", "0"),
        ("DEPMATRIX_RECENCY_DECAY_FACTOR", "soon"),
    ],
)
def test_fusion_rejects_malformed_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_fusion_config()


def test_config_objects_validate_directly() -> None:
    with pytest.raises(ConfigurationError):
        ScoringConfig(base_score=-0.1)
    with pytest.raises(ConfigurationError):
        FusionConfig(default_confidence=2.0)


def test_env_helpers_treat_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPMATRIX_SOURCE_BOOSTS", "   ")

    assert list_env_var("DEPMATRIX_SOURCE_BOOSTS") is None
    assert mapping_env_var("DEPMATRIX_SOURCE_BOOSTS") is None


def test_configure_logging_wraps_basic_config(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(logging, "basicConfig", fake_basic_config)

    configure_logging(level=logging.DEBUG, force=True)

    assert captured["level"] == logging.DEBUG
    assert captured["force"] is True
    assert "%(name)s" in str(captured["format"])
