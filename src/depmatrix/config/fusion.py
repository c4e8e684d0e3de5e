"""Conflict resolution (fusion) configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from depmatrix.domain.model.enums import SourceType

from .env import float_env_var, list_env_var
from .errors import ConfigurationError

DEFAULT_SOURCE_PRIORITY: Final[tuple[SourceType, ...]] = (
    SourceType.CODEBASE,
    SourceType.ROUTER_LOG,
    SourceType.API_GATEWAY,
    SourceType.CI_CD,
    SourceType.TELEMETRY,
    SourceType.NETWORK,
)
DEFAULT_RECENCY_THRESHOLD: Final[timedelta] = timedelta(hours=24)
DEFAULT_DECAY_FACTOR: Final[float] = 0.8
DEFAULT_MIN_RECENCY_FACTOR: Final[float] = 0.1
DEFAULT_CONFIDENCE: Final[float] = 0.5


@dataclass(frozen=True, slots=True)
class FusionConfig:
    """Ranking parameters for fusing claims about the same edge.

    ``source_priority`` lists source types from most to least authoritative.
    Claims older than ``recency_threshold`` (relative to the freshest claim in
    their group) lose ``1 - decay_factor`` of their weight per extra day, but
    never drop below ``min_recency_factor``.
    """

    source_priority: tuple[SourceType, ...] = DEFAULT_SOURCE_PRIORITY
    recency_threshold: timedelta = DEFAULT_RECENCY_THRESHOLD
    decay_factor: float = DEFAULT_DECAY_FACTOR
    min_recency_factor: float = DEFAULT_MIN_RECENCY_FACTOR
    default_confidence: float = DEFAULT_CONFIDENCE

    def __post_init__(self) -> None:
        priority = tuple(SourceType(source) for source in self.source_priority)
        if len(set(priority)) != len(priority):
            raise ConfigurationError("Source priority must not list a source type twice")
        object.__setattr__(self, "source_priority", priority)
        if self.recency_threshold < timedelta(0):
            raise ConfigurationError("Recency threshold must be non-negative")
        if not 0.0 < self.decay_factor <= 1.0:
            raise ConfigurationError(f"Decay factor must be within (0, 1], got {self.decay_factor}")
        if not 0.0 <= self.min_recency_factor <= 1.0:
            raise ConfigurationError(
                f"Minimum recency factor must be within [0, 1], got {self.min_recency_factor}"
            )
        if not 0.0 <= self.default_confidence <= 1.0:
            raise ConfigurationError(
                f"Default confidence must be within [0, 1], got {self.default_confidence}"
            )

    def source_rank(self, source_type: SourceType) -> int:
        """Higher is more authoritative; unlisted sources rank ``0``."""

        try:
            index = self.source_priority.index(source_type)
        except ValueError:
            return 0
        return len(self.source_priority) - index


def get_fusion_config() -> FusionConfig:
    priority_names = list_env_var("DEPMATRIX_SOURCE_PRIORITY")
    priority = DEFAULT_SOURCE_PRIORITY
    if priority_names is not None:
        try:
            priority = tuple(SourceType(name.upper()) for name in priority_names)
        except ValueError as exc:
            raise ConfigurationError(
                f"DEPMATRIX_SOURCE_PRIORITY names an unknown source type: {priority_names}",
                variable="DEPMATRIX_SOURCE_PRIORITY",
            ) from exc
    threshold_hours = float_env_var(
        "DEPMATRIX_RECENCY_THRESHOLD_HOURS",
        DEFAULT_RECENCY_THRESHOLD.total_seconds() / 3600,
    )
    return FusionConfig(
        source_priority=priority,
        recency_threshold=timedelta(hours=threshold_hours),
        decay_factor=float_env_var("DEPMATRIX_RECENCY_DECAY_FACTOR", DEFAULT_DECAY_FACTOR),
    )
