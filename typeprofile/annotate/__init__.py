"""Source annotation helpers."""
from __future__ import annotations

from .markup import ESCAPE_SEQUENCE, escape, flatten_samples, mark_up_code, render_marker

__all__ = ["ESCAPE_SEQUENCE", "escape", "flatten_samples", "mark_up_code", "render_marker"]
