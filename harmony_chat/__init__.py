"""
Harmony conversation protocol layer.

- messages: conversation entries, roles, reasoning effort
- generator: dialect-specific chat-template payloads
- parser: Harmony output → ordered channel segments
- reply: final-channel reply selection
- session: conversation driver around an external engine
"""

from .generator import (
    ContentBlockMessageGenerator,
    HarmonyMessageGenerator,
    MessageGenerator,
    PlainMessageGenerator,
    get_generator,
)
from .messages import Entry, ReasoningEffort, Role, ToolCall
from .parser import Segment, parse_segments
from .reply import Reply, analysis_texts, build_reply, select_reply

__all__ = [
    "ContentBlockMessageGenerator",
    "HarmonyMessageGenerator",
    "MessageGenerator",
    "PlainMessageGenerator",
    "get_generator",
    "Entry",
    "ReasoningEffort",
    "Role",
    "ToolCall",
    "Segment",
    "parse_segments",
    "Reply",
    "analysis_texts",
    "build_reply",
    "select_reply",
]
