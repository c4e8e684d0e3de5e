"""Public interface for the API-gateway adapter."""

from __future__ import annotations

from .schema import GatewayRecordPayload
from .translator import (
    UNKNOWN_SERVICE,
    ApiGatewayAdapter,
    gateway_confidence,
    service_from_endpoint,
    service_from_user_agent,
    target_service,
)

__all__ = [
    "UNKNOWN_SERVICE",
    "ApiGatewayAdapter",
    "GatewayRecordPayload",
    "gateway_confidence",
    "service_from_endpoint",
    "service_from_user_agent",
    "target_service",
]
