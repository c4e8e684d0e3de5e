"""Ports implemented by adapters and consumed by the application layer."""

from __future__ import annotations

from .parsing import ClaimSource

__all__ = ["ClaimSource"]
