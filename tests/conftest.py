"""Shared fixtures: an in-memory stand-in for the inspector session."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pytest

from typeprofile.inspector.session import ProtocolResponse
from typeprofile.profiler.collector import ProfileCollector

SCRIPT_ID = "42"


class FakeSession:
    """Records every command and replays canned replies and notifications."""

    def __init__(self) -> None:
        self.commands: List[Tuple[str, Dict[str, Any]]] = []
        self.listeners: Dict[str, List[Any]] = {}
        self.replies: Dict[str, Any] = {}
        self.events: Dict[str, List[Tuple[str, Dict[str, Any]]]] = {}
        self.connect_error: Optional[Exception] = None
        self.connect_calls = 0
        self.disconnect_calls = 0

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.commands]

    def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error

    def disconnect(self) -> None:
        self.disconnect_calls += 1

    def on(self, event: str, listener) -> None:
        self.listeners.setdefault(event, []).append(listener)

    def post(self, method: str, params: Optional[Mapping[str, Any]] = None) -> ProtocolResponse:
        self.commands.append((method, dict(params or {})))
        for event, payload in self.events.get(method, []):
            for listener in self.listeners.get(event, []):
                listener(payload)
        reply = self.replies.get(method)
        if isinstance(reply, Exception):
            raise reply
        if reply is not None:
            return reply
        if method == "Runtime.compileScript":
            return ProtocolResponse(result={"scriptId": SCRIPT_ID})
        return ProtocolResponse()


def type_profile_reply(*entries: Dict[str, Any]) -> ProtocolResponse:
    return ProtocolResponse(result={"result": list(entries)})


def profile_entry(script_id: str, samples: Sequence[Tuple[int, Sequence[str]]]) -> Dict[str, Any]:
    return {
        "scriptId": script_id,
        "url": "test",
        "entries": [
            {"offset": offset, "types": [{"name": name} for name in names]}
            for offset, names in samples
        ],
    }


def console_event(level: str, *values: Any) -> Tuple[str, Dict[str, Any]]:
    args = [{"type": type(value).__name__, "value": value} for value in values]
    return ("Runtime.consoleAPICalled", {"type": level, "args": args})


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def collector(fake_session: FakeSession) -> ProfileCollector:
    return ProfileCollector(lambda: fake_session)
