"""Project configuration and paths.

Loads settings from config/settings.yaml and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# === Paths ===
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")


class LLMSettings(BaseModel):
    """Completion provider settings."""
    default_provider_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-sonnet-20240229"
    max_tokens: int = 1500
    temperature: float = 0.7
    response_format: str = "json_object"
    request_timeout_seconds: float = 60.0


class GenerationSettings(BaseModel):
    """Batch generation settings."""
    concurrency_limit: int = Field(default=3, ge=1)
    max_content_blocks: int = 10
    max_context_length: int = 10_000
    fallback_delay_seconds: float = 1.0
    # Per-request timeout inside a window; None or 0 disables it
    request_timeout_seconds: Optional[float] = 120.0
    default_model_id: str = "gpt-5-mini"


class Settings(BaseModel):
    """Top-level application settings."""
    llm: LLMSettings = Field(default_factory=LLMSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    sections_path: Optional[str] = None

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults."""
        settings_path = path or CONFIG_DIR / "settings.yaml"
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()


def get_openai_api_key() -> str:
    """Get OpenAI API key from environment."""
    key = os.getenv("OPENAI_API_KEY", "")
    if not key:
        raise ValueError("OPENAI_API_KEY not set in environment")
    return key


def get_anthropic_api_key() -> str:
    """Get Anthropic API key from environment."""
    key = os.getenv("ANTHROPIC_API_KEY", "")
    if not key:
        raise ValueError("ANTHROPIC_API_KEY not set in environment")
    return key


def has_openai_api_key() -> bool:
    return bool(os.getenv("OPENAI_API_KEY", ""))


def has_anthropic_api_key() -> bool:
    return bool(os.getenv("ANTHROPIC_API_KEY", ""))


# Singleton settings instance
settings = Settings.load()
