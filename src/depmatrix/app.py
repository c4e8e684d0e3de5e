"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from depmatrix.adapters import build_adapter, resolve_source
from depmatrix.adapters.parsing import utcnow
from depmatrix.config import get_fusion_config, get_scoring_config
from depmatrix.domain.processing import ClaimProcessingEngine
from depmatrix.domain.reconciliation import ConflictResolutionEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from depmatrix.adapters.parsing import Clock
    from depmatrix.domain.model import Claim, SourceType


log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceBatch:
    """Raw text collected from one source, plus how to read it."""

    source: str | SourceType
    raw: str | None
    format: str | None = None
    source_application: str | None = None


def extract_claims(
    batch: SourceBatch,
    *,
    clock: Clock = utcnow,
    aliases: Mapping[str, str] | None = None,
) -> list[Claim]:
    """Run the adapter matching ``batch.source`` over its raw text."""

    adapter = build_adapter(
        batch.source,
        clock=clock,
        aliases=aliases,
        source_application=batch.source_application,
    )
    return adapter.parse(batch.raw, batch.format)


def discover_dependencies(
    batches: Iterable[SourceBatch],
    *,
    processing: ClaimProcessingEngine | None = None,
    resolution: ConflictResolutionEngine | None = None,
    clock: Clock = utcnow,
    aliases: Mapping[str, str] | None = None,
    reference_time: datetime | None = None,
) -> list[Claim]:
    """Parse every batch, score the claims and fuse them into one claim per edge."""

    effective_processing = processing or ClaimProcessingEngine(get_scoring_config())
    effective_resolution = resolution or ConflictResolutionEngine(get_fusion_config())

    claims: list[Claim] = []
    for batch in batches:
        extracted = extract_claims(batch, clock=clock, aliases=aliases)
        log.info(
            "Collected %d claims from %s (format=%s)",
            len(extracted),
            resolve_source(batch.source),
            batch.format or "auto",
        )
        claims.extend(extracted)

    scored = effective_processing.process_claims(claims)
    resolved = effective_resolution.resolve_claims(scored, reference_time=reference_time)
    log.info(
        "Finished dependency discovery: extracted=%d, resolved=%d", len(claims), len(resolved)
    )
    return resolved
