"""Web front end."""
from __future__ import annotations

from .app import create_app, load_resource, render_page

__all__ = ["create_app", "load_resource", "render_page"]
