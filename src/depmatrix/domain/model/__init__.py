"""Domain model: claims and their source categories."""

from __future__ import annotations

from .claim import (
    EDGE_SEPARATOR,
    REQUIRED_CLAIM_FIELDS,
    Claim,
    ConfidenceScore,
    InvalidClaimError,
    InvalidConfidenceError,
    format_edge,
    missing_claim_fields,
)
from .enums import OBSERVED_SOURCE_TYPES, SourceType

__all__ = [
    "EDGE_SEPARATOR",
    "OBSERVED_SOURCE_TYPES",
    "REQUIRED_CLAIM_FIELDS",
    "Claim",
    "ConfidenceScore",
    "InvalidClaimError",
    "InvalidConfidenceError",
    "SourceType",
    "format_edge",
    "missing_claim_fields",
]
