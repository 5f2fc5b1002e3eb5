"""Debugger-protocol session backed by a local Node.js inspector relay."""
from __future__ import annotations

import json
import os
import subprocess
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Deque, Dict, List, Mapping, Optional, Protocol, Sequence

from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

CHANNEL_FD_ENV = "TYPEPROFILE_CHANNEL_FD"
STDERR_TAIL_LINES = 20

# Runs inside the child. It owns a same-thread ``inspector.Session``, reads one
# JSON command per stdin line and writes replies and notifications as JSON
# lines to the channel fd, so output of the profiled script never reaches it.
_RELAY_SOURCE = r"""
'use strict';
(function () {
  const fs = require('fs');
  const inspector = require('inspector');
  const readline = require('readline');
  const channel = Number(process.env.TYPEPROFILE_CHANNEL_FD);
  const session = new inspector.Session();
  const send = (message) => fs.writeSync(channel, JSON.stringify(message) + '\n');
  session.connect();
  session.on('inspectorNotification', (note) => {
    send({ method: note.method, params: note.params || {} });
  });
  const lines = readline.createInterface({ input: process.stdin, terminal: false });
  lines.on('line', (line) => {
    if (!line.trim()) {
      return;
    }
    const command = JSON.parse(line);
    session.post(command.method, command.params || {}, (error, result) => {
      send({
        id: command.id,
        error: error ? { code: error.code, message: error.message } : null,
        result: result || {},
      });
    });
  });
  lines.on('close', () => {
    session.disconnect();
    process.exit(0);
  });
})();
"""


class TypeProfileError(RuntimeError):
    """Base class for failures while collecting a type profile."""


class ProtocolError(TypeProfileError):
    """Raised when a command fails remotely or the profiled script throws."""


class TransportError(TypeProfileError):
    """Raised when the local connection to the inspector breaks."""


Listener = Callable[[Dict[str, Any]], None]


@dataclass
class ProtocolResponse:
    """Reply to a single protocol command."""

    result: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None

    @property
    def exception_details(self) -> Optional[Dict[str, Any]]:
        details = self.result.get("exceptionDetails")
        return details or None

    def failure_description(self) -> Optional[str]:
        """Return the remote error or thrown exception description, if any."""
        if self.error is not None:
            return str(self.error.get("message") or self.error)
        details = self.exception_details
        if details is None:
            return None
        exception = details.get("exception") or {}
        description = exception.get("description") or exception.get("value")
        if description is None:
            description = details.get("text") or "Uncaught exception"
        return str(description)


class DebuggerSession(Protocol):
    """Interface the session driver needs from a debugger connection."""

    def connect(self) -> None:
        ...

    def disconnect(self) -> None:
        ...

    def post(self, method: str, params: Optional[Mapping[str, Any]] = None) -> ProtocolResponse:
        ...

    def on(self, event: str, listener: Listener) -> None:
        ...


class InspectorSession:
    """A single inspector connection living in a dedicated Node.js process.

    Commands are strictly request/response: :meth:`post` blocks until the reply
    carrying the same id arrives. Notifications read while waiting are handed
    to the listeners registered on this instance, in arrival order.
    """

    def __init__(
        self,
        node_executable: str = "node",
        *,
        node_options: Sequence[str] = (),
        shutdown_timeout: float = 5.0,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._node_executable = node_executable
        self._node_options = list(node_options)
        self._shutdown_timeout = shutdown_timeout
        self._env = dict(env) if env else {}
        self._listeners: Dict[str, List[Listener]] = {}
        self._process: Optional[subprocess.Popen[str]] = None
        self._channel: Optional[IO[str]] = None
        self._stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self._stderr_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._next_id = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._process is not None and not self._closed

    def connect(self) -> None:
        if self._closed:
            raise TransportError("Inspector session has already been disconnected.")
        if self._process is not None:
            raise TransportError("Inspector session is already connected.")

        read_fd, write_fd = os.pipe()
        child_env = os.environ.copy()
        child_env.update(self._env)
        child_env[CHANNEL_FD_ENV] = str(write_fd)
        command = [self._node_executable, *self._node_options, "-e", _RELAY_SOURCE]

        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                env=child_env,
                pass_fds=(write_fd,),
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            os.close(read_fd)
            os.close(write_fd)
            raise TransportError(
                f"Failed to start inspector relay with '{self._node_executable}': {exc}"
            ) from exc
        os.close(write_fd)

        self._process = process
        self._channel = os.fdopen(read_fd, "r", encoding="utf-8")
        self._stderr_thread = threading.Thread(target=self._consume_stderr, daemon=True)
        self._stderr_thread.start()
        LOGGER.debug("Inspector relay started (pid=%s)", process.pid)

    def disconnect(self) -> None:
        if self._closed:
            return
        self._closed = True
        process = self._process
        if process is None:
            return
        try:
            try:
                if process.stdin is not None:
                    process.stdin.close()
            except OSError as exc:
                LOGGER.debug("Inspector relay stdin already closed: %s", exc)
            # A relay still writing notifications gets EPIPE and exits.
            if self._channel is not None:
                self._channel.close()
            try:
                process.wait(timeout=self._shutdown_timeout)
            except subprocess.TimeoutExpired:
                LOGGER.warning(
                    "Inspector relay did not exit within %.1fs; killing it", self._shutdown_timeout
                )
                process.kill()
                process.wait()
        finally:
            if self._channel is not None and not self._channel.closed:
                self._channel.close()
            if self._stderr_thread is not None:
                self._stderr_thread.join(timeout=1.0)
            if process.stderr is not None:
                process.stderr.close()
        LOGGER.debug("Inspector relay exited with code %s", process.returncode)

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def post(self, method: str, params: Optional[Mapping[str, Any]] = None) -> ProtocolResponse:
        if not self.connected:
            raise TransportError(f"Cannot send '{method}': inspector session is not connected.")

        with self._lock:
            self._next_id += 1
            command_id = self._next_id
            self._write({"id": command_id, "method": method, "params": dict(params or {})})
            while True:
                message = self._read_message(method)
                if message.get("id") == command_id:
                    return ProtocolResponse(
                        result=message.get("result") or {},
                        error=message.get("error"),
                    )
                if "method" in message:
                    self._dispatch(message)
                    continue
                LOGGER.debug("Ignoring unexpected inspector message: %s", message)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, command: Dict[str, Any]) -> None:
        assert self._process is not None and self._process.stdin is not None
        try:
            self._process.stdin.write(json.dumps(command) + "\n")
            self._process.stdin.flush()
        except OSError as exc:
            raise TransportError(
                f"Inspector relay pipe closed unexpectedly{self._describe_exit()}"
            ) from exc

    def _read_message(self, method: str) -> Dict[str, Any]:
        assert self._channel is not None
        line = self._channel.readline()
        if line == "":
            raise TransportError(
                f"Inspector relay closed the channel while awaiting '{method}'{self._describe_exit()}"
            )
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            raise TransportError(f"Malformed inspector message: {line[:200]!r}") from exc
        if not isinstance(message, dict):
            raise TransportError(f"Malformed inspector message: {line[:200]!r}")
        return message

    def _dispatch(self, message: Dict[str, Any]) -> None:
        for listener in list(self._listeners.get(message["method"], ())):
            listener(message.get("params") or {})

    def _consume_stderr(self) -> None:
        assert self._process is not None and self._process.stderr is not None
        for line in self._process.stderr:
            self._stderr_tail.append(line.rstrip("\n"))

    def _describe_exit(self) -> str:
        parts: List[str] = []
        if self._process is not None:
            try:
                code = self._process.wait(timeout=0.5)
            except subprocess.TimeoutExpired:
                code = None
            if code is not None:
                parts.append(f" (exit code {code})")
        if self._stderr_tail:
            parts.append(": " + " | ".join(self._stderr_tail))
        return "".join(parts)


__all__ = [
    "DebuggerSession",
    "InspectorSession",
    "Listener",
    "ProtocolError",
    "ProtocolResponse",
    "TransportError",
    "TypeProfileError",
]
