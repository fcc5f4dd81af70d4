"""Tests for SectionContentGenerator.

Tests cover:
- Per-block failure isolation and partial success
- Aggregate error messages
- Schema / model resolution failures
- Request validation limits
- Instruction layering and usage accounting
- Custom sections with dynamic mappings
"""

import json

import pytest

from src.common.config import GenerationSettings, Settings
from src.magazine_ai.content_generator.generator import SectionContentGenerator
from src.magazine_ai.content_generator.model_client import ModelClient
from src.magazine_ai.content_generator.models import (
    GenerationContext,
    GenerationRequest,
    RequestValidationError,
    SectionConfigurationError,
    UnknownModelError,
)
from src.magazine_ai.section_config import ModelProvider


@pytest.fixture
def generator(model_client, registry, settings) -> SectionContentGenerator:
    return SectionContentGenerator(model_client, registry, settings=settings)


def _request(**overrides) -> GenerationRequest:
    values = {
        "section_type": "pro-tips",
        "model_id": "gpt-5-mini",
        "requested_blocks": ["tips"],
    }
    values.update(overrides)
    return GenerationRequest(**values)


# === Block isolation ===


class TestBlockIsolation:
    @pytest.mark.asyncio
    async def test_missing_block_does_not_abort_siblings(self, generator):
        result = await generator.generate(_request(requested_blocks=["missingBlock", "tips"]))

        first, second = result.block_results
        assert first.block_name == "missingBlock"
        assert first.success is False
        assert 'No configuration found for block "missingBlock"' in first.error
        assert second.block_name == "tips"
        assert second.success is True
        assert result.success is True

    @pytest.mark.asyncio
    async def test_partial_success_still_reports_error(self, generator):
        result = await generator.generate(_request(requested_blocks=["missingBlock", "tips"]))
        assert result.success is True
        assert result.error.startswith("Failed blocks: missingBlock (")
        assert result.failed_blocks == ["missingBlock"]

    @pytest.mark.asyncio
    async def test_all_blocks_failed(self, generator):
        result = await generator.generate(_request(requested_blocks=["a", "b"]))
        assert result.success is False
        assert result.data is None
        assert result.error.startswith("No content blocks were successfully generated.")
        assert "a (" in result.error and "b (" in result.error

    @pytest.mark.asyncio
    async def test_model_call_error_becomes_block_failure(self, registry, settings, make_provider):
        failing = make_provider(error=RuntimeError("provider down"))
        client = ModelClient(
            registry,
            providers={ModelProvider.OPENAI: failing},
            fallback_on_error=False,
        )
        generator = SectionContentGenerator(client, registry, settings=settings)

        result = await generator.generate(_request())

        assert result.success is False
        assert result.block_results[0].error == "provider down"

    @pytest.mark.asyncio
    async def test_no_error_when_everything_succeeds(self, generator):
        result = await generator.generate(_request())
        assert result.success is True
        assert result.error is None
        assert result.data == {"tips": {"title": "Generated"}}


# === Resolution failures ===


class TestResolutionFailures:
    @pytest.mark.asyncio
    async def test_unknown_section_type(self, generator):
        with pytest.raises(SectionConfigurationError, match="Invalid section type"):
            await generator.generate(_request(section_type="no-such-section"))

    @pytest.mark.asyncio
    async def test_unknown_model(self, generator, fake_provider):
        with pytest.raises(UnknownModelError):
            await generator.generate(_request(model_id="gpt-99"))
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_unavailable_model(self, generator):
        with pytest.raises(SectionConfigurationError, match="not available"):
            await generator.generate(_request(model_id="claude-3-sonnet"))

    @pytest.mark.asyncio
    async def test_mapping_override_for_unregistered_type(self, generator):
        mapping = {
            "content_blocks": [
                {"name": "intro", "fields": [{"name": "headline", "type": "text"}]},
            ]
        }
        result = await generator.generate(
            _request(section_type="landing", requested_blocks=["intro"], section_mapping=mapping)
        )
        assert result.success is True
        assert "intro" in result.data


# === Validation ===


class TestValidation:
    @pytest.mark.asyncio
    async def test_empty_blocks_rejected(self, generator):
        with pytest.raises(RequestValidationError):
            await generator.generate(_request(requested_blocks=[]))

    @pytest.mark.asyncio
    async def test_too_many_blocks_rejected(self, generator):
        with pytest.raises(RequestValidationError, match="max 10"):
            await generator.generate(_request(requested_blocks=[f"b{i}" for i in range(11)]))

    @pytest.mark.asyncio
    async def test_context_too_long_rejected(self, model_client, registry):
        settings = Settings(generation=GenerationSettings(max_context_length=20))
        generator = SectionContentGenerator(model_client, registry, settings=settings)
        context = GenerationContext(user_instruction="x" * 21)
        with pytest.raises(RequestValidationError, match="Context too long"):
            await generator.generate(_request(context=context))


# === Prompt and usage ===


class TestPromptAndUsage:
    @pytest.mark.asyncio
    async def test_instruction_layers_in_user_message(self, generator, fake_provider):
        context = GenerationContext(
            global_instruction="Use British spelling.",
            custom_instruction="Keep it short.",
            user_instruction="Focus on SPF.",
        )
        await generator.generate(_request(context=context))

        user = fake_provider.calls[0]["messages"][1]["content"]
        assert user.startswith("Use British spelling.\n\n")
        assert user.index("Additional instructions: Keep it short.") < user.index(
            "User request: Focus on SPF."
        )

    @pytest.mark.asyncio
    async def test_usage_summary(self, generator):
        result = await generator.generate(
            _request(section_type="maries-corner", requested_blocks=["mariesPicks", "sideStories"])
        )
        assert result.usage.tokens_used == 300
        assert result.usage.model == "gpt-5-mini"
        assert result.usage.cost == pytest.approx(300 / 1000 * 0.015)

    @pytest.mark.asyncio
    async def test_composite_block_merged_into_data(self, registry, settings, make_provider):
        provider = make_provider(responses=[json.dumps({"title": "T", "products": [{"name": "P"}]})])
        client = ModelClient(registry, providers={ModelProvider.OPENAI: provider})
        generator = SectionContentGenerator(client, registry, settings=settings)

        result = await generator.generate(
            _request(section_type="maries-corner", requested_blocks=["mainStory"])
        )

        assert result.data["mainStory"]["title"] == "T"
        assert result.data["mariesPicks"]["products"] == [{"name": "P"}]
        assert "sideStories" not in result.data

    @pytest.mark.asyncio
    async def test_later_block_wins_on_key_collision(self, registry, settings, make_provider):
        provider = make_provider(responses=[
            json.dumps({"title": "T", "products": [{"name": "First"}]}),
            json.dumps({"products": [{"name": "Second"}]}),
        ])
        client = ModelClient(registry, providers={ModelProvider.OPENAI: provider})
        generator = SectionContentGenerator(client, registry, settings=settings)

        result = await generator.generate(
            _request(section_type="maries-corner", requested_blocks=["mainStory", "mariesPicks"])
        )

        assert result.data["mariesPicks"] == {"products": [{"name": "Second"}]}

    @pytest.mark.asyncio
    async def test_on_block_called_in_order(self, generator):
        seen = []
        await generator.generate(
            _request(section_type="maries-corner", requested_blocks=["sideStories", "mariesPicks"]),
            on_block=seen.append,
        )
        assert seen == ["sideStories", "mariesPicks"]

    @pytest.mark.asyncio
    async def test_synthetic_flag_propagates(self, registry, settings):
        client = ModelClient(registry, providers={})
        client.fallback.delay_seconds = 0
        generator = SectionContentGenerator(client, registry, settings=settings)
        result = await generator.generate(_request())
        assert result.block_results[0].synthetic is True


# === Custom sections ===


class TestCustomSection:
    @pytest.mark.asyncio
    async def test_dynamic_mapping_used(self, generator, fake_provider, sample_section_data):
        result = await generator.generate(_request(
            section_type="custom-section",
            requested_blocks=["TipsList"],
            section_data=sample_section_data,
        ))

        assert result.success is True
        system = fake_provider.calls[0]["messages"][0]["content"]
        assert '"title": "Spring Tips"' in system

    @pytest.mark.asyncio
    async def test_block_not_on_section_fails(self, generator, sample_section_data):
        result = await generator.generate(_request(
            section_type="custom-section",
            requested_blocks=["QuoteBlock"],
            section_data=sample_section_data,
        ))
        assert result.success is False
        assert "QuoteBlock" in result.error
