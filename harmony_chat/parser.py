"""
Harmony response parser.

Decodes raw model output into ordered segments:

    <|start|>assistant<|channel|>analysis<|message|>...thinking...<|end|>
    <|start|>assistant<|channel|>commentary to=functions.lookup <|constrain|>json<|message|>{...}<|end|>
    <|start|>assistant<|channel|>final<|message|>...answer...<|return|>

The scan is a single forward pass using str.find (no regex backtracking).
Any input yields a list: text outside the grammar is ignored and an
unterminated trailing segment is dropped.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

START = "<|start|>"
CHANNEL = "<|channel|>"
CONSTRAIN = "<|constrain|>"
MESSAGE = "<|message|>"
END = "<|end|>"
RETURN = "<|return|>"
CALL = "<|call|>"

RECIPIENT_PREFIX = "to="


@dataclass(frozen=True)
class Segment:
    """One channel-addressed message decoded from model output."""

    role: str
    channel: str | None
    recipient: str | None
    content: str


def parse_header(header: str) -> tuple[str, str | None, str | None]:
    """
    Split a segment header into (role, channel, recipient).

    channel is None only when the header has no channel sentinel; an empty
    channel after the sentinel is returned as "".

    Example:
        >>> parse_header("assistant<|channel|>commentary to=functions.lookup")
        ('assistant', 'commentary', 'functions.lookup')
    """
    channel_at = header.find(CHANNEL)
    if channel_at == -1:
        return header.strip(), None, None

    role = header[:channel_at].strip()
    remainder = header[channel_at + len(CHANNEL) :]

    # Constraint annotations (e.g. "<|constrain|>json") are not modeled
    constrain_at = remainder.find(CONSTRAIN)
    if constrain_at != -1:
        remainder = remainder[:constrain_at]

    recipient = None
    space_at = remainder.find(" ")
    if space_at == -1:
        channel = remainder
    else:
        channel = remainder[:space_at]
        tail = remainder[space_at:].strip()
        if tail.startswith(RECIPIENT_PREFIX):
            recipient = tail[len(RECIPIENT_PREFIX) :].strip()

    return role, channel.strip(), recipient


def parse_segments(text: str) -> list[Segment]:
    """
    Parse Harmony-formatted model output into segments, in source order.

    Args:
        text: Raw text returned by the inference engine

    Returns:
        List of Segment (empty if no complete segment is present)
    """
    segments: list[Segment] = []
    if not text:
        return segments

    cursor = 0
    # Cached closing positions; -1 stays valid because the cursor only advances
    next_end: int | None = None
    next_return: int | None = None
    while True:
        start_at = text.find(START, cursor)
        if start_at == -1:
            break

        header_start = start_at + len(START)
        message_at = text.find(MESSAGE, header_start)
        if message_at == -1:
            logger.debug(
                f"[PARSE_HARMONY] Dropping unterminated header at offset {start_at}"
            )
            break

        content_start = message_at + len(MESSAGE)
        next_end = _next_occurrence(text, END, content_start, next_end)
        next_return = _next_occurrence(text, RETURN, content_start, next_return)
        closing_at, closing = _nearer(next_end, next_return)
        if closing_at == -1:
            logger.debug(
                f"[PARSE_HARMONY] Dropping unterminated content at offset "
                f"{content_start}"
            )
            break

        role, channel, recipient = parse_header(text[header_start:message_at])
        segments.append(
            Segment(
                role=role,
                channel=channel,
                recipient=recipient,
                content=text[content_start:closing_at],
            )
        )
        cursor = closing_at + len(closing)

    return segments


def _next_occurrence(text: str, sentinel: str, start: int, cached: int | None) -> int:
    """Index of sentinel at or after start, reusing a lookup that is still ahead."""
    if cached is not None and (cached == -1 or cached >= start):
        return cached
    return text.find(sentinel, start)


def _nearer(end_at: int, return_at: int) -> tuple[int, str]:
    """Pick the nearer of <|end|> or <|return|>; (-1, "") when neither exists."""
    if end_at == -1 and return_at == -1:
        return -1, ""
    if return_at == -1 or (end_at != -1 and end_at < return_at):
        return end_at, END
    return return_at, RETURN
