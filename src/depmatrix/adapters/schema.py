"""Pydantic base shared by every JSON payload the adapters accept."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def require_text(value: object) -> object:
    value = blank_to_none(value)
    if value is None:
        raise ValueError("field must not be blank")
    return value


class PayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
