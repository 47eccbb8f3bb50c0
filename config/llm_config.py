"""Generation parameters for marking-oracle calls.

Priority chain (low → high):
    .env defaults (``Settings.get_marking_llm_config``)  →  per-call overrides
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LiteLLM call parameters. ``None`` means "use the model's default"."""

    model: str | None = Field(default=None, description="LiteLLM model identifier")
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    seed: int | None = Field(default=None, description="Random seed for reproducibility")
    timeout: float | None = Field(default=None, gt=0, description="Request timeout (s)")
    response_format: str | None = Field(
        default=None, description="'json_object' for structured output"
    )

    def merge(self, overrides: LLMConfig) -> LLMConfig:
        """Return a new LLMConfig with non-None fields of *overrides* applied."""
        base = self.model_dump(exclude_none=True)
        base.update(overrides.model_dump(exclude_none=True))
        return LLMConfig(**base)

    def to_litellm_kwargs(self) -> dict:
        """Keyword arguments for ``litellm.acompletion()`` (model excluded)."""
        kw: dict = {
            name: getattr(self, name)
            for name in ("max_tokens", "temperature", "seed", "timeout")
            if getattr(self, name) is not None
        }
        if self.response_format:
            kw["response_format"] = {"type": self.response_format}
        return kw
