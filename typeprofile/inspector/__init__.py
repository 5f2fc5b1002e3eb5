"""Debugger-protocol session helpers."""
from __future__ import annotations

from .session import (
    DebuggerSession,
    InspectorSession,
    ProtocolError,
    ProtocolResponse,
    TransportError,
    TypeProfileError,
)

__all__ = [
    "DebuggerSession",
    "InspectorSession",
    "ProtocolError",
    "ProtocolResponse",
    "TransportError",
    "TypeProfileError",
]
