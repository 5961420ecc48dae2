"""Reply selection over parsed Harmony segments."""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .parser import Segment, parse_segments

logger = logging.getLogger(__name__)

FINAL_CHANNEL = "final"
ANALYSIS_CHANNEL = "analysis"


@dataclass
class Reply:
    """The user-facing answer extracted from one model response."""

    text: str
    analysis: list[str] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)
    fallback: bool = False


def select_reply(
    segments: Sequence[Segment],
    raw_text: str,
    final_channel: str = FINAL_CHANNEL,
) -> str:
    """
    Pick the reply text from parsed segments.

    Uses the content of the last segment on the final channel, trimmed. If the
    output has no final segment, the whole raw text (trimmed) is the reply.
    """
    final = _last_on_channel(segments, final_channel)
    if final is None:
        return raw_text.strip()
    return final.content.strip()


def analysis_texts(
    segments: Sequence[Segment], analysis_channel: str = ANALYSIS_CHANNEL
) -> list[str]:
    """Trimmed contents of analysis-channel segments, in order."""
    return [
        segment.content.strip()
        for segment in segments
        if segment.channel == analysis_channel
    ]


def build_reply(
    raw_text: str,
    final_channel: str = FINAL_CHANNEL,
    analysis_channel: str = ANALYSIS_CHANNEL,
) -> Reply:
    """Parse raw model output and select the reply."""
    segments = parse_segments(raw_text)
    fallback = _last_on_channel(segments, final_channel) is None
    if fallback:
        logger.info(
            f"[REPLY] No '{final_channel}' segment in {len(segments)} parsed "
            f"segment(s), using raw text"
        )

    return Reply(
        text=select_reply(segments, raw_text, final_channel),
        analysis=analysis_texts(segments, analysis_channel),
        segments=segments,
        fallback=fallback,
    )


def _last_on_channel(segments: Sequence[Segment], channel: str) -> Segment | None:
    # Equality, not truthiness: an empty channel "" is a real channel
    for segment in reversed(segments):
        if segment.channel == channel:
            return segment
    return None
