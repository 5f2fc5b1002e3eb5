"""Render type samples as inline HTML markers over the profiled source."""
from __future__ import annotations

from typing import Iterable, List, Sequence

from ..models import ProfileEntry, TypeObject, TypeSample

# Applied in order; "&" must come first so later entities are not re-escaped.
ESCAPE_SEQUENCE: tuple[tuple[str, str], ...] = (
    ("&", "&amp;"),
    (" ", "&nbsp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ("\r\n", "<br/>"),
    ("\n", "<br/>"),
    ('"', "&quot;"),
)

MARKER_OPEN = '<span style="background-color: rgb(255, 0, 0); color: white">'
MARKER_CLOSE = "</span> "


def escape(text: str) -> str:
    """Reformat ``text`` for display inside an HTML page."""
    for pattern, replacement in ESCAPE_SEQUENCE:
        text = text.replace(pattern, replacement)
    return text


def render_marker(type_object: TypeObject) -> str:
    return f"{MARKER_OPEN}{escape(type_object.name)}{MARKER_CLOSE}"


def flatten_samples(profile: Iterable[ProfileEntry]) -> List[TypeSample]:
    """Concatenate all samples and order them by offset, keeping ties stable."""
    samples: List[TypeSample] = []
    for entry in profile:
        samples.extend(entry.entries)
    return sorted(samples, key=lambda sample: sample.offset)


def mark_up_code(profile: Sequence[ProfileEntry], source: str) -> str:
    """Return ``source`` escaped, with a marker before each sampled offset."""
    parts: List[str] = []
    cursor = 0

    for sample in flatten_samples(profile):
        if sample.offset > len(source):
            raise ValueError(
                f"Type sample offset {sample.offset} is outside the source (length {len(source)})"
            )
        parts.append(escape(source[cursor : sample.offset]))
        cursor = sample.offset
        for type_object in sample.types:
            parts.append(render_marker(type_object))

    parts.append(escape(source[cursor:]))
    return "".join(parts)


__all__ = ["ESCAPE_SEQUENCE", "escape", "flatten_samples", "mark_up_code", "render_marker"]
