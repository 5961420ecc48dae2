"""
Message generators: convert conversation entries into chat-template payloads.

Each dialect produces the nested dict/list structure its chat template
expects. Generators are pure: they never mutate the entries they are given
and never raise on unexpected roles (unknown roles are treated as user turns).

Dialects are selected by name through get_generator():
- plain: {"role", "content"} with string content
- harmony: GPT-OSS Harmony messages (hoisted model identity, thinking,
  tool_calls)
- content_blocks: Qwen2-VL style typed content blocks
"""

import json
import logging
from typing import Sequence

from .messages import Entry, ReasoningEffort, Role

logger = logging.getLogger(__name__)


class MessageGenerator:
    """Base class for dialect-specific message generators."""

    dialect = ""

    def generate(self, entries: Sequence[Entry]) -> list[dict]:
        raise NotImplementedError

    def build_context(self, entries: Sequence[Entry]) -> dict:
        """Dialect-specific template context derived from the entries."""
        return {}

    def additional_context(
        self,
        entries: Sequence[Entry],
        reasoning_effort: ReasoningEffort | str | None = None,
    ) -> dict | None:
        """
        Build the auxiliary mapping handed to the chat template renderer.

        Returns:
            Mapping with dialect context plus "reasoning_effort" when given,
            or None if there is nothing to pass.
        """
        context = self.build_context(entries)
        if reasoning_effort is not None and not isinstance(
            reasoning_effort, ReasoningEffort
        ):
            reasoning_effort = ReasoningEffort.from_argument(reasoning_effort)
        if reasoning_effort is not None:
            context["reasoning_effort"] = reasoning_effort.value
        return context or None


class PlainMessageGenerator(MessageGenerator):
    """Baseline dialect: every entry becomes {"role", "content"}."""

    dialect = "plain"

    def generate(self, entries: Sequence[Entry]) -> list[dict]:
        return [
            {"role": _role_or_user(entry).value, "content": entry.content}
            for entry in entries
        ]


class ContentBlockMessageGenerator(MessageGenerator):
    """
    Dialect whose content is a list of typed blocks (Qwen2-VL style).

    Example:
        >>> ContentBlockMessageGenerator().generate([Entry.user("Hi")])
        [{'role': 'user', 'content': [{'type': 'text', 'text': 'Hi'}]}]
    """

    dialect = "content_blocks"

    def generate(self, entries: Sequence[Entry]) -> list[dict]:
        messages = []
        for entry in entries:
            content = [{"type": "text", "text": entry.content}]
            content.extend({"type": "image"} for _ in entry.images)
            messages.append({"role": _role_or_user(entry).value, "content": content})
        return messages


class HarmonyMessageGenerator(MessageGenerator):
    """
    GPT-OSS Harmony dialect.

    The first system entry is not emitted as a message: its content is
    hoisted into the template context as "model_identity", and any later
    system entries are dropped. Without a system entry nothing is hoisted,
    even when a developer entry is present.
    """

    dialect = "harmony"

    def generate(self, entries: Sequence[Entry]) -> list[dict]:
        messages = []
        for entry in entries:
            role = _role_or_user(entry)

            if role is Role.SYSTEM:
                continue

            message = {"role": role.value, "content": entry.content}

            if role is Role.ASSISTANT:
                if entry.thinking is not None:
                    message["thinking"] = entry.thinking
                if entry.tool_calls:
                    message["tool_calls"] = [
                        call.to_dict() for call in entry.tool_calls
                    ]

            messages.append(message)

        return messages

    def build_context(self, entries: Sequence[Entry]) -> dict:
        identity = self.model_identity(entries)
        if identity is None:
            return {}
        return {"model_identity": identity}

    def model_identity(self, entries: Sequence[Entry]) -> str | None:
        """Content of the first system entry, or None if there is none."""
        for entry in entries:
            if Role.coerce(entry.role) is Role.SYSTEM:
                return entry.content
        return None


GENERATORS: dict[str, type[MessageGenerator]] = {
    PlainMessageGenerator.dialect: PlainMessageGenerator,
    HarmonyMessageGenerator.dialect: HarmonyMessageGenerator,
    ContentBlockMessageGenerator.dialect: ContentBlockMessageGenerator,
}


def get_generator(dialect: str) -> MessageGenerator:
    """
    Create the generator registered for a dialect name.

    Raises:
        ValueError: If no generator is registered under that name
    """
    try:
        generator_cls = GENERATORS[dialect]
    except KeyError:
        available = ", ".join(sorted(GENERATORS))
        raise ValueError(
            f"Unknown message dialect '{dialect}' (available: {available})"
        ) from None
    return generator_cls()


def dump_messages(messages: list[dict]) -> str:
    """Serialize generated messages as pretty-printed JSON for logging."""
    try:
        return json.dumps(messages, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.debug(f"[GENERATOR] Could not serialize messages: {e}")
        return "[]"


def _role_or_user(entry: Entry) -> Role:
    role = Role.coerce(entry.role)
    if role is None:
        logger.debug(f"[GENERATOR] Unknown role '{entry.role}', treating as user")
        return Role.USER
    return role
