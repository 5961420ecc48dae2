"""
Chat session driver.

Owns the ordered conversation history and runs one inference round-trip
per user turn:
- history → message generator → GenerationRequest
- GenerationRequest → engine (external callable) → raw text
- raw text → segment parser → reply selection → assistant turn appended

Model loading, tokenization and the interactive loop live outside this
module; the engine is any callable taking a GenerationRequest and returning
the model's raw text.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from .config import Settings, settings as default_settings
from .generator import MessageGenerator, dump_messages, get_generator
from .messages import Entry, ReasoningEffort, ToolCall
from .reply import Reply, build_reply
from .util.harmony_format import format_conversation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """Everything the external template renderer and engine need for a turn."""

    messages: list[dict]
    additional_context: dict | None
    reasoning_effort: ReasoningEffort | None
    prompt_preview: str = ""


Engine = Callable[[GenerationRequest], str]


class ChatSession:
    """
    Conversation driver for a single chat.

    Seeds the history with the configured system and developer prompts
    (each only when non-empty). Not thread-safe: one session per caller.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        generator: MessageGenerator | None = None,
    ):
        self.settings = settings or default_settings
        self.generator = generator or get_generator(self.settings.DIALECT)
        self._history: list[Entry] = []

        if self.settings.SYSTEM_PROMPT:
            self._history.append(Entry.system(self.settings.SYSTEM_PROMPT))
        if self.settings.DEVELOPER_PROMPT:
            self._history.append(Entry.developer(self.settings.DEVELOPER_PROMPT))

        effort = self.settings.REASONING_EFFORT
        logger.info(
            f"[SESSION] Started with dialect={self.generator.dialect}, "
            f"reasoning effort: {effort.value if effort else 'default (medium)'}"
        )

    @property
    def history(self) -> tuple[Entry, ...]:
        """Snapshot of the conversation so far."""
        return tuple(self._history)

    def add_user(self, text: str) -> Entry:
        """
        Append a user turn.

        Raises:
            ValueError: If the text is empty or whitespace only
        """
        trimmed = text.strip()
        if not trimmed:
            raise ValueError("User message must not be empty")
        entry = Entry.user(trimmed)
        self._history.append(entry)
        return entry

    def add_assistant(
        self,
        text: str,
        thinking: str | None = None,
        tool_calls: Sequence[ToolCall] = (),
    ) -> Entry:
        entry = Entry.assistant(text, thinking=thinking, tool_calls=tuple(tool_calls))
        self._history.append(entry)
        return entry

    def add_tool_result(self, text: str) -> Entry:
        entry = Entry.tool(text)
        self._history.append(entry)
        return entry

    def build_request(self) -> GenerationRequest:
        """Generate the template payload for the current history."""
        entries = self.history
        effort = self.settings.REASONING_EFFORT
        messages = self.generator.generate(entries)
        additional_context = self.generator.additional_context(entries, effort)

        logger.debug(f"[SESSION] Messages payload:\n{dump_messages(messages)}")

        preview = ""
        if self.generator.dialect == "harmony":
            prompt = format_conversation(messages, additional_context)
            preview = prompt[: self.settings.PROMPT_PREVIEW_CHARS]
            logger.debug(f"[SESSION] Prompt preview: {preview}")

        return GenerationRequest(
            messages=messages,
            additional_context=additional_context,
            reasoning_effort=effort,
            prompt_preview=preview,
        )

    def complete(self, engine: Engine) -> Reply:
        """
        Run one inference round-trip and record the assistant reply.

        Engine errors propagate unchanged; the history is only extended when
        the engine returns.
        """
        request = self.build_request()
        raw_response = engine(request)

        reply = build_reply(
            raw_response,
            final_channel=self.settings.FINAL_CHANNEL,
            analysis_channel=self.settings.ANALYSIS_CHANNEL,
        )

        if self.settings.SHOW_ANALYSIS:
            for analysis in reply.analysis:
                logger.info(f"[analysis] {analysis}")

        self.add_assistant(reply.text)
        return reply

    def send(self, text: str, engine: Engine) -> Reply:
        """Append a user turn and complete it."""
        self.add_user(text)
        return self.complete(engine)
