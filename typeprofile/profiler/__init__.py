"""Type-profile collection."""
from __future__ import annotations

from .collector import ProfileCollector, SessionFactory, remap_offsets

__all__ = ["ProfileCollector", "SessionFactory", "remap_offsets"]
