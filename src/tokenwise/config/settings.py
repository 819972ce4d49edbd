"""Configuration settings for Tokenwise using Pydantic Settings."""

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenwise.config.validation import (
    validate_budget_ratios,
    validate_margin_percent,
    validate_ttl,
)
from tokenwise.core.context.budget import BudgetRatios


class TokenEngineSettings(BaseSettings):
    """Main configuration settings for the token engine."""

    model_config = SettingsConfigDict(
        env_prefix="TOKENWISE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Context Window ===
    context_window: int = Field(
        default=200_000,
        description="Nominal context window of the active model (tokens)",
        gt=0,
    )

    safety_margin_percent: float = Field(
        default=0.05,
        description="Fraction of the context window never allocated",
    )

    near_limit_threshold: float = Field(
        default=0.90,
        description="Utilization fraction at which the context counts as near its limit",
        gt=0.0,
        le=1.0,
    )

    # === Budget Ratios ===
    budget_system_ratio: float = Field(default=0.05, ge=0.0, le=1.0)
    budget_tools_ratio: float = Field(default=0.10, ge=0.0, le=1.0)
    budget_history_ratio: float = Field(default=0.65, ge=0.0, le=1.0)
    budget_response_ratio: float = Field(default=0.15, ge=0.0, le=1.0)
    budget_reserve_ratio: float = Field(default=0.05, ge=0.0, le=1.0)

    # === Compaction & Routing ===
    compaction_strategy: Literal["tiered", "always-llm"] = Field(
        default="tiered",
        description="Compaction strategy used when history exceeds its budget",
    )

    preferred_provider: Literal["anthropic", "openai", "ollama"] = Field(
        default="anthropic",
        description="Provider used for model routing and summarization",
    )

    max_tool_result_chars: int = Field(
        default=50_000,
        description="Hard character cap for a single tool result",
        gt=0,
    )

    result_cache_ttl_ms: int = Field(
        default=5 * 60 * 1000,
        description="Default TTL for cached tool results (milliseconds, 1s to 24h)",
    )

    # === Provider Credentials (summarization) ===
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")

    openai_api_key: str | None = Field(default=None, description="OpenAI API key")

    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of a local Ollama server",
    )

    # === Logging Configuration ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Application log level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    @field_validator("anthropic_api_key", "openai_api_key")
    @classmethod
    def validate_api_key_format(cls, v: str | None) -> str | None:
        """Validate API key format."""
        if v is not None and len(v.strip()) == 0:
            raise ValueError("API key cannot be empty string")
        return v

    @field_validator("safety_margin_percent")
    @classmethod
    def check_margin_percent(cls, v: float) -> float:
        """Validate the safety margin fraction."""
        if not validate_margin_percent(v):
            raise ValueError(f"Safety margin must be in [0, 1), got {v}")
        return v

    @field_validator("result_cache_ttl_ms")
    @classmethod
    def check_result_cache_ttl(cls, v: int) -> int:
        """Validate the result cache TTL."""
        if not validate_ttl(v):
            raise ValueError(f"Result cache TTL must be between 1000 and 86400000 ms, got {v}")
        return v

    @field_validator("log_file")
    @classmethod
    def expand_path(cls, v: Path | None) -> Path | None:
        """Expand user home directory in paths."""
        if v is None:
            return None
        return Path(os.path.expanduser(str(v)))

    @model_validator(mode="after")
    def check_budget_ratios(self) -> "TokenEngineSettings":
        """Reject ratio tables that do not sum to 1.0."""
        if not validate_budget_ratios(self.budget_ratios):
            raise ValueError(
                "Budget ratios must sum to 1.0 "
                f"(got {sum(self.budget_ratios.as_dict().values()):.4f})"
            )
        return self

    @property
    def budget_ratios(self) -> BudgetRatios:
        """Budget ratios assembled from the individual ratio fields."""
        return BudgetRatios(
            system=self.budget_system_ratio,
            tools=self.budget_tools_ratio,
            history=self.budget_history_ratio,
            response=self.budget_response_ratio,
            reserve=self.budget_reserve_ratio,
        )

    @property
    def current_llm_api_key(self) -> str:
        """Get the API key for the preferred provider (empty for Ollama)."""
        if self.preferred_provider == "anthropic":
            return self.anthropic_api_key or ""
        elif self.preferred_provider == "openai":
            return self.openai_api_key or ""
        return ""


# Global settings instance
_settings: TokenEngineSettings | None = None


def get_settings() -> TokenEngineSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = TokenEngineSettings()  # type: ignore
    return _settings


def reload_settings() -> TokenEngineSettings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = TokenEngineSettings()  # type: ignore
    return _settings
