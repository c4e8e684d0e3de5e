"""Conflict resolution for claims that disagree about the same edge."""

from __future__ import annotations

from .engine import (
    RESOLVED_ID_SUFFIX,
    BusinessRule,
    ConflictResolutionEngine,
    FusionDecision,
    group_by_edge,
)
from .policy import FusionWeight, fusion_weight, recency_factor

__all__ = [
    "RESOLVED_ID_SUFFIX",
    "BusinessRule",
    "ConflictResolutionEngine",
    "FusionDecision",
    "FusionWeight",
    "fusion_weight",
    "group_by_edge",
    "recency_factor",
]
