"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── Marking engine ───────────────────────────────────────
    default_max_marks: int = 10  # used when maxMarks is missing or not a number
    rubric_cache_size: int = 64  # compiled rubrics kept in memory per worker
    live_analysis_budget_ms: float = 100.0  # slower passes are logged as warnings

    # ── Marking oracle (LLM) ─────────────────────────────────
    marking_model: str = "openai/gpt-4o-mini"
    marking_max_tokens: int = 800
    marking_temperature: float = 0.1
    marking_timeout: int = 30  # seconds
    max_concurrent_marking: int = 10  # concurrent oracle calls per worker

    # Provider API keys (read by LiteLLM automatically via env)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    dashscope_api_key: str = ""

    # ── Helpers ───────────────────────────────────────────────

    def get_marking_llm_config(self) -> LLMConfig:
        """Build the :class:`LLMConfig` used for oracle marking calls."""
        return LLMConfig(
            model=self.marking_model,
            max_tokens=self.marking_max_tokens,
            temperature=self.marking_temperature,
            timeout=self.marking_timeout,
            response_format="json_object",
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
