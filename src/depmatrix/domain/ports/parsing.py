"""Ports for turning raw source text into claims."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from depmatrix.domain.model import Claim, SourceType


@runtime_checkable
class ClaimSource(Protocol):
    """Parse raw text handed over by a collector into claims.

    Implementations never raise for malformed input: unmatched lines are
    skipped and unknown format tags yield an empty list.
    """

    source_type: SourceType

    @property
    def formats(self) -> tuple[str, ...]:
        """Format tags ``parse`` accepts besides auto-detection."""
        ...

    def parse(self, raw: str | None, fmt: str | None = None) -> list[Claim]:
        ...


__all__ = ["ClaimSource"]
