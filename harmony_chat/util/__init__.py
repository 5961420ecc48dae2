from .harmony_format import (
    format_assistant_message,
    format_conversation,
    format_developer_message,
    format_segment,
    format_segments,
    format_system_message,
    format_tool_call,
    format_tool_message,
    format_user_message,
)

__all__ = [
    "format_assistant_message",
    "format_conversation",
    "format_developer_message",
    "format_segment",
    "format_segments",
    "format_system_message",
    "format_tool_call",
    "format_tool_message",
    "format_user_message",
]
