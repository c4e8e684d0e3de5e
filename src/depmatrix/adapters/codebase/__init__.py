"""Public interface for the codebase (build manifest) adapter."""

from __future__ import annotations

from .schema import NpmManifestPayload
from .translator import (
    UNKNOWN_APPLICATION,
    CodebaseAdapter,
    application_name,
    coordinate_source,
    coordinate_target,
)

__all__ = [
    "UNKNOWN_APPLICATION",
    "CodebaseAdapter",
    "NpmManifestPayload",
    "application_name",
    "coordinate_source",
    "coordinate_target",
]
