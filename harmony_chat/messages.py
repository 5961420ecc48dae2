"""
Conversation message model.

An ordered list of role-tagged entries, each optionally carrying reasoning
text ("thinking"), tool call requests, or images. Entries are immutable once
created; the conversation driver owns the list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class Role(str, Enum):
    SYSTEM = "system"
    DEVELOPER = "developer"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    @classmethod
    def coerce(cls, value: "Role | str | None") -> "Role | None":
        """Return the matching Role, or None when the value is not a known role."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ReasoningEffort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_argument(cls, argument: str) -> "ReasoningEffort | None":
        """
        Parse a user-supplied reasoning level.

        Unsupported values are not an error: a warning is logged and None is
        returned so the engine's default applies.

        Example:
            >>> ReasoningEffort.from_argument("HIGH")
            <ReasoningEffort.HIGH: 'high'>
        """
        try:
            return cls(argument.strip().lower())
        except (ValueError, AttributeError):
            logger.warning(
                f"Unsupported reasoning level '{argument}'. Using default."
            )
            return None


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the assistant."""

    id: str
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    content_type: str | None = None

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "name": self.name,
            "arguments": _copy_value(self.arguments),
        }
        if self.content_type is not None:
            result["content_type"] = self.content_type
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ToolCall":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            arguments=data.get("arguments") or {},
            content_type=data.get("content_type"),
        )


@dataclass(frozen=True)
class Entry:
    """One turn in a conversation."""

    role: Role | str
    content: str = ""
    thinking: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    images: tuple[str, ...] = ()

    def __post_init__(self):
        # Lists handed in by callers are frozen so the entry cannot change
        # after it has been appended to a history.
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))
        if not isinstance(self.images, tuple):
            object.__setattr__(self, "images", tuple(self.images))

    @classmethod
    def system(cls, content: str) -> "Entry":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def developer(cls, content: str) -> "Entry":
        return cls(role=Role.DEVELOPER, content=content)

    @classmethod
    def user(cls, content: str, images: tuple[str, ...] | list[str] = ()) -> "Entry":
        return cls(role=Role.USER, content=content, images=tuple(images))

    @classmethod
    def assistant(
        cls,
        content: str = "",
        thinking: str | None = None,
        tool_calls: tuple[ToolCall, ...] | list[ToolCall] = (),
    ) -> "Entry":
        return cls(
            role=Role.ASSISTANT,
            content=content,
            thinking=thinking,
            tool_calls=tuple(tool_calls),
        )

    @classmethod
    def tool(cls, content: str) -> "Entry":
        """Create a tool *result* entry. Tool results never carry tool calls."""
        return cls(role=Role.TOOL, content=content)

    @property
    def role_value(self) -> str:
        """The role as a plain string, whether or not it is a known Role."""
        return self.role.value if isinstance(self.role, Role) else str(self.role)

    def to_dict(self) -> dict:
        """Convert entry to a JSON-friendly dictionary, omitting empty fields."""
        result: dict[str, Any] = {"role": self.role_value, "content": self.content}
        if self.thinking is not None:
            result["thinking"] = self.thinking
        if self.tool_calls:
            result["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.images:
            result["images"] = list(self.images)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        """
        Create an Entry from a dictionary.

        Unknown roles are kept as plain strings; generators decide how to map
        them. Tool calls on a tool-role entry are discarded.
        """
        raw_role = data.get("role", Role.USER.value)
        role = Role.coerce(raw_role) or raw_role
        content = data.get("content") or ""

        tool_calls: tuple[ToolCall, ...] = ()
        if role is not Role.TOOL:
            tool_calls = tuple(
                ToolCall.from_dict(call) for call in data.get("tool_calls") or []
            )

        return cls(
            role=role,
            content=content,
            thinking=data.get("thinking"),
            tool_calls=tool_calls,
            images=tuple(data.get("images") or ()),
        )


def _copy_value(value: Any) -> Any:
    """Deep-copy nested mappings and sequences, keeping key insertion order."""
    if isinstance(value, Mapping):
        return {key: _copy_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        items = [_copy_value(item) for item in value]
        if hasattr(value, "_make"):
            return type(value)._make(items)
        return type(value)(items)
    return value
