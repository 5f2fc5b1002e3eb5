"""Public package interface for the typeprofile toolkit."""
from __future__ import annotations

try:
    from importlib import metadata as _metadata

    __version__ = _metadata.version("typeprofile")
except Exception:  # pragma: no cover - fallback when not installed
    __version__ = "0.1.0"

from .annotate import escape, mark_up_code
from .inspector import (
    DebuggerSession,
    InspectorSession,
    ProtocolError,
    ProtocolResponse,
    TransportError,
    TypeProfileError,
)
from .models import LogMessage, ProfileEntry, TypeObject, TypeSample
from .pipeline import AnnotationResult, collect_and_annotate, render_console_log
from .profiler import ProfileCollector
from .utils import Settings, configure_logging, get_logger, load_settings

__all__ = [
    "__version__",
    "AnnotationResult",
    "DebuggerSession",
    "InspectorSession",
    "LogMessage",
    "ProfileCollector",
    "ProfileEntry",
    "ProtocolError",
    "ProtocolResponse",
    "Settings",
    "TransportError",
    "TypeObject",
    "TypeProfileError",
    "TypeSample",
    "collect_and_annotate",
    "configure_logging",
    "escape",
    "get_logger",
    "load_settings",
    "mark_up_code",
    "render_console_log",
]
