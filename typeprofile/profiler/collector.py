"""Drive an inspector session through the type-profiling lifecycle."""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..inspector.session import DebuggerSession, InspectorSession, ProtocolError, ProtocolResponse
from ..models import LogMessage, ProfileEntry
from ..utils.config import Settings
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

CONSOLE_EVENT = "Runtime.consoleAPICalled"

SessionFactory = Callable[[], DebuggerSession]


def _utf16_offset_table(source: str) -> Optional[List[int]]:
    """Map UTF-16 code unit offsets to string indices, or ``None`` when they coincide."""
    if all(ord(char) <= 0xFFFF for char in source):
        return None
    table: List[int] = []
    for index, char in enumerate(source):
        table.append(index)
        if ord(char) > 0xFFFF:
            table.append(index)
    table.append(len(source))
    return table


def remap_offsets(profile: Sequence[ProfileEntry], source: str) -> List[ProfileEntry]:
    """Convert V8's UTF-16 offsets into indices of ``source``."""
    table = _utf16_offset_table(source)
    if table is None:
        return list(profile)
    for entry in profile:
        for sample in entry.entries:
            if sample.offset < len(table):
                sample.offset = table[sample.offset]
    return list(profile)


class ProfileCollector:
    """Run a script under type profiling and harvest the samples for it.

    Every call to :meth:`collect` opens a fresh session from the factory and
    disconnects it exactly once, whichever step fails.
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        *,
        source_url: str = "test",
    ) -> None:
        self._session_factory = session_factory or InspectorSession
        self.source_url = source_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProfileCollector":
        def factory() -> DebuggerSession:
            return InspectorSession(
                settings.node_executable,
                node_options=settings.node_options,
                shutdown_timeout=settings.shutdown_timeout,
            )

        return cls(factory, source_url=settings.source_url)

    def collect(self, source: str) -> Tuple[List[ProfileEntry], List[LogMessage]]:
        session = self._session_factory()
        messages: List[LogMessage] = []

        def record_console(params: Dict[str, Any]) -> None:
            messages.append(LogMessage.from_console_event(params))

        try:
            session.connect()
            self._send(session, "Runtime.enable")
            self._send(session, "Profiler.enable")
            self._send(session, "Profiler.startTypeProfile")
            compiled = self._send(
                session,
                "Runtime.compileScript",
                {"expression": source, "sourceURL": self.source_url, "persistScript": True},
            )
            script_id = compiled.result.get("scriptId")
            if script_id is None:
                raise ProtocolError("Runtime.compileScript did not return a scriptId")

            session.on(CONSOLE_EVENT, record_console)
            self._send(session, "Runtime.runScript", {"scriptId": script_id})
            self._send(session, "HeapProfiler.collectGarbage")
            taken = self._send(session, "Profiler.takeTypeProfile")
            profile = remap_offsets(
                self._filter_profile(taken.result.get("result") or [], script_id), source
            )
            self._check_offsets(profile, source)

            self._send(session, "Profiler.stopTypeProfile")
            self._send(session, "Profiler.disable")
            self._send(session, "Runtime.disable")
        finally:
            session.disconnect()

        LOGGER.debug(
            "Collected %d profile entries and %d console messages for script %s",
            len(profile),
            len(messages),
            script_id,
        )
        return profile, messages

    def _send(
        self,
        session: DebuggerSession,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ProtocolResponse:
        LOGGER.debug("Sending %s", method)
        response = session.post(method, params)
        description = response.failure_description()
        if description is not None:
            LOGGER.warning(
                "%s failed: %s", method, description, extra={"extra_fields": {"method": method}}
            )
            raise ProtocolError(description)
        return response

    @staticmethod
    def _check_offsets(profile: Sequence[ProfileEntry], source: str) -> None:
        for entry in profile:
            for sample in entry.entries:
                if sample.offset > len(source):
                    raise ProtocolError(
                        f"Type sample offset {sample.offset} is outside the source (length {len(source)})"
                    )

    @staticmethod
    def _filter_profile(raw_entries: Sequence[Mapping[str, Any]], script_id: Any) -> List[ProfileEntry]:
        profile: List[ProfileEntry] = []
        for raw in raw_entries:
            if str(raw.get("scriptId")) != str(script_id):
                continue
            try:
                profile.append(ProfileEntry.model_validate(raw))
            except ValidationError as exc:
                raise ProtocolError(f"Malformed type profile entry: {exc}") from exc
        return profile


__all__ = ["ProfileCollector", "SessionFactory", "remap_offsets"]
