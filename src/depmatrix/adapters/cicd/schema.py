"""Pydantic models describing JSON pipeline events."""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from depmatrix.adapters.schema import PayloadModel, blank_to_none, require_text


class PipelineEventPayload(PayloadModel):
    source: str = Field(validation_alias=AliasChoices("source", "sourceStage", "upstream"))
    target: str = Field(validation_alias=AliasChoices("target", "targetStage", "downstream"))
    timestamp: str | float | None = Field(
        default=None, validation_alias=AliasChoices("timestamp", "@timestamp", "time")
    )
    action: str | None = None
    status: str | None = None

    _require_name = field_validator("source", "target", mode="before")(require_text)
    _normalize_action = field_validator("action", "status", mode="before")(blank_to_none)
