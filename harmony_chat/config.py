import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .messages import ReasoningEffort

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    SYSTEM_PROMPT: str = "You are ChatGPT, a large language model trained by OpenAI."
    DEVELOPER_PROMPT: str = "Answer questions helpfully and keep responses concise."
    REASONING_EFFORT: ReasoningEffort | None = ReasoningEffort.MEDIUM
    SHOW_ANALYSIS: bool = False  # Surface analysis-channel text alongside replies
    DIALECT: str = "harmony"  # plain, harmony, content_blocks
    FINAL_CHANNEL: str = "final"
    ANALYSIS_CHANNEL: str = "analysis"
    PROMPT_PREVIEW_CHARS: int = 400

    model_config = SettingsConfigDict(
        env_prefix="HARMONY_", env_file=".env", extra="ignore"
    )

    @field_validator("REASONING_EFFORT", mode="before")
    @classmethod
    def _parse_reasoning_effort(cls, value):
        if value is None or isinstance(value, ReasoningEffort):
            return value
        if isinstance(value, str) and not value.strip():
            return None
        effort = ReasoningEffort.from_argument(value)
        if effort is None:
            logger.warning(
                f"Falling back to reasoning effort '{ReasoningEffort.MEDIUM.value}'"
            )
            return ReasoningEffort.MEDIUM
        return effort


settings = Settings()
