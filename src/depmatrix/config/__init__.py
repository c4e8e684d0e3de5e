"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .fusion import FusionConfig, get_fusion_config
from .logging import configure_logging
from .scoring import ScoringConfig, get_scoring_config

__all__ = [
    "ConfigurationError",
    "FusionConfig",
    "ScoringConfig",
    "configure_logging",
    "get_fusion_config",
    "get_scoring_config",
]
