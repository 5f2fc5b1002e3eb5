"""Collect a type profile for a script and annotate its source."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .annotate.markup import escape, mark_up_code
from .models import LogMessage
from .profiler.collector import ProfileCollector
from .utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass
class AnnotationResult:
    """Annotated HTML fragment plus the console output of the run."""

    annotated: str
    logs: List[LogMessage] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "annotated": self.annotated,
            "logs": [message.model_dump() for message in self.logs],
        }


def collect_and_annotate(source: str, collector: Optional[ProfileCollector] = None) -> AnnotationResult:
    """Run ``source`` under the type profiler and mark up the observed types.

    Raises :class:`~typeprofile.inspector.TypeProfileError` when the session
    fails or the script throws; nothing partial is returned in that case.
    """
    collector = collector or ProfileCollector()
    profile, logs = collector.collect(source)
    annotated = mark_up_code(profile, source)
    LOGGER.info("Annotated %d characters of source (%d console messages)", len(source), len(logs))
    return AnnotationResult(annotated=annotated, logs=logs)


def render_console_log(logs: Iterable[LogMessage]) -> str:
    """Render console messages as ``console.<level>: <value>`` HTML lines."""
    return "".join(f"console.{escape(message.level)}: {escape(message.value)}<br/>" for message in logs)


__all__ = ["AnnotationResult", "collect_and_annotate", "render_console_log"]
