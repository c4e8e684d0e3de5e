"""Domain layer: claims, scoring and conflict resolution (no I/O)."""
