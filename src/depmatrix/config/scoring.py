"""Claim scoring configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from depmatrix.domain.model.enums import SourceType

from .env import float_env_var, mapping_env_var
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_BASE_SCORE: Final[float] = 0.5
DEFAULT_SOURCE_BOOSTS: Final[Mapping[SourceType, float]] = MappingProxyType(
    {
        SourceType.CODEBASE: 0.30,
        SourceType.ROUTER_LOG: 0.15,
        SourceType.API_GATEWAY: 0.10,
    }
)


def _default_boosts() -> Mapping[SourceType, float]:
    return DEFAULT_SOURCE_BOOSTS


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    """Base score plus a per-source boost; unset sources get no boost."""

    base_score: float = DEFAULT_BASE_SCORE
    source_boosts: Mapping[SourceType, float] = field(default_factory=_default_boosts)

    def __post_init__(self) -> None:
        if not 0.0 <= self.base_score <= 1.0:
            raise ConfigurationError(f"Base score must be within [0, 1], got {self.base_score}")
        object.__setattr__(
            self,
            "source_boosts",
            MappingProxyType({SourceType(key): value for key, value in self.source_boosts.items()}),
        )

    def boost_for(self, source_type: SourceType) -> float:
        return self.source_boosts.get(source_type, 0.0)


def get_scoring_config() -> ScoringConfig:
    """Build scoring configuration, honouring ``DEPMATRIX_*`` overrides.

    ``DEPMATRIX_SOURCE_BOOSTS`` entries are merged over the defaults, so a
    deployment can tune one source without restating the others.
    """

    boosts: dict[SourceType, float] = dict(DEFAULT_SOURCE_BOOSTS)
    overrides = mapping_env_var("DEPMATRIX_SOURCE_BOOSTS") or {}
    for key, value in overrides.items():
        try:
            boosts[SourceType(key)] = value
        except ValueError as exc:
            raise ConfigurationError(
                f"DEPMATRIX_SOURCE_BOOSTS names unknown source type {key!r}",
                variable="DEPMATRIX_SOURCE_BOOSTS",
            ) from exc
    return ScoringConfig(
        base_score=float_env_var("DEPMATRIX_BASE_SCORE", DEFAULT_BASE_SCORE),
        source_boosts=boosts,
    )
