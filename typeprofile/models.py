"""Data structures exchanged between the session driver and the annotator."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, Field


class TypeObject(BaseModel):
    """A single runtime type observed at a profiled position."""

    name: str

    class Config:
        extra = "allow"


class TypeSample(BaseModel):
    """Types observed at one source offset."""

    offset: int = Field(..., ge=0, description="Character offset into the profiled source.")
    types: List[TypeObject] = Field(default_factory=list)

    class Config:
        extra = "allow"


class ProfileEntry(BaseModel):
    """Batch of type samples collected for one compiled script."""

    script_id: str = Field(..., alias="scriptId")
    url: str = ""
    entries: List[TypeSample] = Field(default_factory=list)

    class Config:
        extra = "allow"
        populate_by_name = True


class LogMessage(BaseModel):
    """One console call observed while the script ran."""

    level: str
    value: str

    @classmethod
    def from_console_event(cls, params: Mapping[str, Any]) -> "LogMessage":
        """Build a message from ``Runtime.consoleAPICalled`` parameters."""
        args = params.get("args") or []
        return cls(
            level=str(params.get("type", "log")),
            value=" ".join(_render_remote_object(arg) for arg in args),
        )


def _render_remote_object(remote: Dict[str, Any]) -> str:
    if "value" in remote:
        value = remote["value"]
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    if "unserializableValue" in remote:
        return str(remote["unserializableValue"])
    if "description" in remote:
        return str(remote["description"])
    return str(remote.get("type", ""))


__all__ = ["LogMessage", "ProfileEntry", "TypeObject", "TypeSample"]
