"""Claim primitives.

A claim is one piece of evidence for one directed edge between two
applications. Claims are immutable; scoring and fusion return new values.

Important boundary rule:
- ``processed_data`` is always built with :func:`format_edge` so that every
  producer agrees on the grouping key used by conflict resolution.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from datetime import UTC, datetime
from typing import Final

from .enums import SourceType

EDGE_SEPARATOR: Final[str] = " -> "

REQUIRED_CLAIM_FIELDS: Final[tuple[str, ...]] = (
    "id",
    "source_type",
    "raw_data",
    "processed_data",
    "timestamp",
)


class InvalidClaimError(ValueError):
    """Raised when a claim lacks one or more mandatory fields."""

    def __init__(
        self,
        missing_fields: tuple[str, ...],
        *,
        claim_id: object = None,
        message: str | None = None,
    ) -> None:
        self.missing_fields = missing_fields
        self.claim_id = claim_id
        label = claim_id if isinstance(claim_id, str) and claim_id.strip() else "<unknown>"
        super().__init__(
            message
            or f"Claim {label} is missing required field(s): {', '.join(missing_fields)}"
        )


class InvalidConfidenceError(ValueError):
    """Raised when a confidence value falls outside ``[0, 1]``."""


def format_edge(source: str, target: str) -> str:
    """Return the canonical edge key ``"<source> -> <target>"``."""

    return f"{source}{EDGE_SEPARATOR}{target}"


def missing_claim_fields(claim: object) -> tuple[str, ...]:
    """Return the names of mandatory claim fields that are absent or blank.

    Works on partially initialised objects as well, so validation can report
    every missing field at once instead of failing on the first attribute.
    """

    missing: list[str] = []
    for name in REQUIRED_CLAIM_FIELDS:
        value = getattr(claim, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return tuple(missing)


@dataclass(frozen=True, slots=True)
class ConfidenceScore:
    """Reliability of a claim, confined to ``[0, 1]``."""

    value: float

    def __post_init__(self) -> None:
        value = float(self.value)
        if math.isnan(value) or not 0.0 <= value <= 1.0:
            raise InvalidConfidenceError(
                f"Confidence score must be between 0.0 and 1.0, got {self.value}"
            )
        object.__setattr__(self, "value", value)

    def __float__(self) -> float:
        return self.value

    @classmethod
    def clamped(cls, value: float) -> ConfidenceScore:
        return cls(min(1.0, max(0.0, value)))


@dataclass(frozen=True, slots=True, kw_only=True)
class Claim:
    """Evidence for one directed edge, from one source."""

    id: str
    source_type: SourceType
    raw_data: str
    processed_data: str
    timestamp: datetime
    confidence_score: ConfidenceScore | None = None

    def __post_init__(self) -> None:
        missing = missing_claim_fields(self)
        if missing:
            raise InvalidClaimError(missing, claim_id=self.id)
        try:
            object.__setattr__(self, "source_type", SourceType(self.source_type))
        except ValueError as exc:
            raise InvalidClaimError(
                ("source_type",),
                claim_id=self.id,
                message=f"Claim {self.id} has unknown source type: {self.source_type!r}",
            ) from exc
        if not isinstance(self.timestamp, datetime):
            raise InvalidClaimError(
                ("timestamp",),
                claim_id=self.id,
                message=f"Claim {self.id} has a non-datetime timestamp: {self.timestamp!r}",
            )
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=UTC))

    @property
    def confidence(self) -> float | None:
        if self.confidence_score is None:
            return None
        return self.confidence_score.value

    @property
    def edge(self) -> tuple[str, str]:
        """Split ``processed_data`` into ``(source, target)``."""

        source, separator, target = self.processed_data.partition(EDGE_SEPARATOR)
        if not separator:
            raise ValueError(f"Not an edge key: {self.processed_data!r}")
        return source, target

    def with_confidence(self, value: float | ConfidenceScore) -> Claim:
        score = value if isinstance(value, ConfidenceScore) else ConfidenceScore(value)
        return replace(self, confidence_score=score)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, ConfidenceScore):
                value = value.value
            elif isinstance(value, SourceType):
                value = value.value
            data[item.name] = value
        return data
