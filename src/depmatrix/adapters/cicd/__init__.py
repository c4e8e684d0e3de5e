"""Public interface for the CI/CD pipeline adapter."""

from __future__ import annotations

from .schema import PipelineEventPayload
from .translator import CiCdAdapter

__all__ = ["CiCdAdapter", "PipelineEventPayload"]
