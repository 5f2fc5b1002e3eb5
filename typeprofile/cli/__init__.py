"""CLI package exposing the typeprofile command entry points."""
from __future__ import annotations

from .commands import annotate, cli, main, serve

__all__ = ["annotate", "cli", "main", "serve"]
