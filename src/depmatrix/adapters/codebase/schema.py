"""Pydantic models describing JSON build manifests."""

from __future__ import annotations

from pydantic import Field, field_validator

from depmatrix.adapters.schema import PayloadModel, blank_to_none


class NpmManifestPayload(PayloadModel):
    """The parts of a ``package.json`` that name dependencies."""

    name: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)

    _normalize_name = field_validator("name", mode="before")(blank_to_none)
