"""Pydantic models describing JSON API-gateway access records.

Gateways disagree on field names, so each field accepts the spellings seen in
the wild (AWS API Gateway / CloudWatch, Kong, generic JSON access logs).
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator

from depmatrix.adapters.schema import PayloadModel, blank_to_none, require_text


class GatewayRecordPayload(PayloadModel):
    method: str = Field(validation_alias=AliasChoices("method", "httpMethod", "requestMethod"))
    endpoint: str = Field(validation_alias=AliasChoices("path", "resource", "endpoint"))
    timestamp: str | float = Field(
        validation_alias=AliasChoices("timestamp", "@timestamp", "time", "eventTime")
    )
    source_service: str | None = Field(
        default=None, validation_alias=AliasChoices("sourceService", "clientId")
    )
    user_agent: str | None = Field(
        default=None, validation_alias=AliasChoices("userAgent", "user_agent", "httpUserAgent")
    )
    response_time: float | None = Field(
        default=None,
        validation_alias=AliasChoices("responseTime", "duration", "latency", "processingTime"),
    )

    _normalize_text = field_validator("source_service", "user_agent", mode="before")(
        blank_to_none
    )
    _require_text = field_validator("method", "endpoint", mode="before")(require_text)

    @field_validator("response_time", mode="before")
    @classmethod
    def _numeric_or_none(cls, value: object) -> object:
        # Latency is a soft signal; unparseable values should not drop the record.
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        return value
