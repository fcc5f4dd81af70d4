"""Shared test fixtures for Magazine AI."""

import json
import sys
from pathlib import Path

import pytest

# Ensure src is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.config import GenerationSettings, Settings
from src.magazine_ai.content_generator.model_client import CompletionProvider, ModelClient
from src.magazine_ai.content_generator.models import (
    CompletionResult,
    GenerationContext,
    GenerationRequest,
    Usage,
)
from src.magazine_ai.section_config import ModelProvider, SectionRegistry


class FakeProvider(CompletionProvider):
    """Provider returning canned responses and recording every call."""

    name = "fake"

    def __init__(self, responses=None, error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict] = []

    async def complete(self, messages, model):
        self.calls.append({"messages": messages, "model": model})
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if self.responses else json.dumps({"title": "Generated"})
        return CompletionResult(
            content=content,
            usage=Usage(prompt_tokens=100, completion_tokens=50, total_tokens=150),
            model=model.provider_model,
            provider=self.name,
        )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings() -> Settings:
    """Default settings with no fallback delay."""
    return Settings(generation=GenerationSettings(fallback_delay_seconds=0))


@pytest.fixture(scope="session")
def registry() -> SectionRegistry:
    """Registry loaded from the bundled sections.yaml."""
    return SectionRegistry.load()


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances with custom responses or errors."""
    return FakeProvider


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def model_client(registry, fake_provider) -> ModelClient:
    """Client routing OpenAI models to the fake provider."""
    return ModelClient(registry, providers={ModelProvider.OPENAI: fake_provider})


@pytest.fixture
def sample_section_data() -> dict:
    """Return a stored custom section with two content blocks."""
    return {
        "id": "section-1",
        "type": "custom-section",
        "title": "Spring Launch",
        "content": {
            "contentBlocks": [
                {
                    "type": "TipsList",
                    "props": {
                        "title": "Spring Tips",
                        "tips": [{"title": "Hydrate", "content": "Drink water"}],
                    },
                },
                {"type": "FeatureList", "props": {}},
            ],
        },
    }


@pytest.fixture
def sample_request() -> GenerationRequest:
    """Return a pro-tips request for the default model."""
    return GenerationRequest(
        section_type="pro-tips",
        model_id="gpt-5-mini",
        requested_blocks=["tips"],
        context=GenerationContext(title="Summer skincare", audience="estheticians"),
    )
