"""
Harmony format rendering.

Renders segments and Harmony generator output into the tagged wire format.
The production prompt is built by the model's own chat template; this
rendering is used for prompt previews and mirrors what parse_segments()
reads back.
Based on: https://cookbook.openai.com/articles/openai-harmony
"""

import json
from datetime import datetime
from typing import Iterable

from ..parser import CALL, CHANNEL, CONSTRAIN, END, MESSAGE, START, Segment

DEFAULT_MODEL_IDENTITY = "You are ChatGPT, a large language model trained by OpenAI."


def format_segment(
    role: str,
    content: str,
    channel: str | None = None,
    recipient: str | None = None,
    constrain: str | None = None,
    closing: str = END,
) -> str:
    """
    Format a single Harmony message.

    Args:
        role: Author of the message ("assistant", "functions.lookup", ...)
        content: Message body, written verbatim
        channel: Channel name; omitted entirely when None
        recipient: Target of the message, rendered as " to=<recipient>"
            (requires a channel)
        constrain: Optional content-type constraint (e.g. "json")
        closing: Closing sentinel (<|end|>, <|return|> or <|call|>)

    Example:
        >>> format_segment("assistant", "Hi", channel="final")
        '<|start|>assistant<|channel|>final<|message|>Hi<|end|>'
    """
    header = role
    if channel is not None:
        header += f"{CHANNEL}{channel}"
        if recipient is not None:
            header += f" to={recipient}"
    if constrain:
        header += f" {CONSTRAIN}{constrain}"
    return f"{START}{header}{MESSAGE}{content}{closing}"


def format_segments(segments: Iterable[Segment]) -> str:
    """Render parsed segments back into wire format."""
    return "".join(
        format_segment(
            segment.role,
            segment.content,
            channel=segment.channel,
            recipient=segment.recipient,
        )
        for segment in segments
    )


def format_system_message(
    model_identity: str | None = None,
    reasoning_effort: str | None = None,
    knowledge_cutoff: str = "2024-06",
    current_date: str | None = None,
    has_tool_calls: bool = False,
) -> str:
    """
    Format Harmony system message.

    Args:
        model_identity: Identity line (defaults to the ChatGPT identity)
        reasoning_effort: Reasoning level ("low", "medium", "high"), omitted
            when None
        knowledge_cutoff: Model knowledge cutoff date
        current_date: Current date (defaults to today)
        has_tool_calls: Whether the conversation routes calls to functions

    Returns:
        Formatted system message with Harmony tokens
    """
    if current_date is None:
        current_date = datetime.now().strftime("%Y-%m-%d")

    content_parts = [
        model_identity or DEFAULT_MODEL_IDENTITY,
        f"Knowledge cutoff: {knowledge_cutoff}",
        f"Current date: {current_date}",
    ]
    if reasoning_effort:
        content_parts.append(f"Reasoning: {reasoning_effort}")
    content_parts.append(
        "# Valid channels: analysis, commentary, final. Channel must be "
        "included for every message."
    )
    if has_tool_calls:
        content_parts.append(
            "Calls to these tools must go to the commentary channel: 'functions'."
        )

    return format_segment("system", "\n".join(content_parts))


def format_developer_message(instructions: str) -> str:
    """Format developer message carrying the instructions."""
    return format_segment("developer", f"# Instructions\n{instructions}")


def format_user_message(content: str) -> str:
    """
    Format user message with Harmony tokens.

    Example:
        >>> format_user_message("Hello!")
        '<|start|>user<|message|>Hello!<|end|>'
    """
    return format_segment("user", content)


def format_assistant_message(content: str, channel: str = "final") -> str:
    """Format assistant message on a channel ("analysis", "commentary", "final")."""
    return format_segment("assistant", content, channel=channel)


def format_tool_call(name: str, arguments: dict) -> str:
    """
    Format an assistant tool call on the commentary channel.

    Example:
        >>> format_tool_call("lookup", {"q": "x"})
        '<|start|>assistant<|channel|>commentary to=functions.lookup <|constrain|>json<|message|>{"q":"x"}<|call|>'
    """
    return format_segment(
        "assistant",
        json.dumps(arguments, separators=(",", ":"), ensure_ascii=False),
        channel="commentary",
        recipient=f"functions.{name}",
        constrain="json",
        closing=CALL,
    )


def format_tool_message(tool_name: str, content: str) -> str:
    """
    Format tool response message with Harmony tokens.

    Example:
        >>> format_tool_message("functions.get_weather", '{"temp": 20}')
        '<|start|>functions.get_weather to=assistant<|channel|>commentary<|message|>{"temp": 20}<|end|>'
    """
    return format_segment(f"{tool_name} to=assistant", content, channel="commentary")


def format_conversation(
    messages: list[dict],
    additional_context: dict | None = None,
    current_date: str | None = None,
) -> str:
    """
    Format Harmony generator output as a complete prompt.

    Args:
        messages: Output of HarmonyMessageGenerator.generate()
        additional_context: Template context ("model_identity",
            "reasoning_effort")
        current_date: Date for the system message (defaults to today)

    Returns:
        Prompt string ending with an open assistant turn

    Example:
        >>> prompt = format_conversation([{"role": "user", "content": "Hi"}])
        >>> prompt.endswith("<|start|>assistant")
        True
    """
    context = additional_context or {}
    has_tool_calls = any(msg.get("tool_calls") for msg in messages)

    formatted_parts = [
        format_system_message(
            model_identity=context.get("model_identity"),
            reasoning_effort=context.get("reasoning_effort"),
            current_date=current_date,
            has_tool_calls=has_tool_calls,
        )
    ]

    # Tool results answer the oldest unanswered call
    pending_calls: list[str] = []

    for msg in messages:
        role = msg.get("role")
        content = msg.get("content", "")

        if role == "developer":
            formatted_parts.append(format_developer_message(content))
        elif role == "assistant":
            if msg.get("thinking"):
                formatted_parts.append(
                    format_assistant_message(msg["thinking"], channel="analysis")
                )
            for tool_call in msg.get("tool_calls", []):
                formatted_parts.append(
                    format_tool_call(tool_call["name"], tool_call.get("arguments", {}))
                )
                pending_calls.append(tool_call["name"])
            if content or not msg.get("tool_calls"):
                formatted_parts.append(format_assistant_message(content))
        elif role == "tool":
            tool_name = pending_calls.pop(0) if pending_calls else "tool"
            formatted_parts.append(format_tool_message(f"functions.{tool_name}", content))
        else:
            formatted_parts.append(format_user_message(content))

    # Add incomplete assistant message to prompt completion
    formatted_parts.append(f"{START}assistant")

    return "".join(formatted_parts)
