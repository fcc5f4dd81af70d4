"""Tests for the section_config module.

Tests cover:
- Loading the bundled sections.yaml
- Model catalogue lookups
- Curated prompt template composition
- Custom-section block library and dynamic mapping
"""

import pytest

from src.magazine_ai.section_config import (
    GENERIC_BLOCK_NAME,
    FieldType,
    ModelProvider,
    SectionMapping,
    SectionRegistry,
    build_generic_mapping,
    detect_content_blocks,
)


# === Loading ===


class TestRegistryLoading:
    def test_bundled_sections_loaded(self, registry):
        assert "maries-corner" in registry.section_types
        assert "pro-tips" in registry.section_types
        assert "custom-section" in registry.section_types

    def test_section_schema_blocks(self, registry):
        mapping = registry.get_section_schema("maries-corner")
        assert mapping.block_names == ["mainStory", "mariesPicks", "sideStories"]

    def test_unknown_section_returns_none(self, registry):
        assert registry.get_section_schema("no-such-section") is None

    def test_array_item_fields_parsed(self, registry):
        block = registry.get_section_schema("maries-corner").get_block("mariesPicks")
        products = block.get_field("products")
        assert products.type == FieldType.ARRAY
        assert products.item_fields

    def test_load_from_custom_path(self, tmp_path):
        path = tmp_path / "sections.yaml"
        path.write_text(
            "models:\n"
            "  tiny:\n"
            "    provider: openai\n"
            "    provider_model: gpt-4o-mini\n"
            "sections:\n"
            "  notes:\n"
            "    content_blocks:\n"
            "      - name: body\n"
            "        fields:\n"
            "          - {name: text, type: text}\n",
            encoding="utf-8",
        )
        registry = SectionRegistry.load(path)
        assert registry.section_types == ["notes"]
        assert registry.get_model_definition("tiny").provider_model == "gpt-4o-mini"


# === Models ===


class TestModelCatalogue:
    def test_known_models(self, registry):
        assert registry.get_model_definition("gpt-5").provider_model == "gpt-4o"
        assert registry.get_model_definition("gpt-5-nano").provider_model == "gpt-3.5-turbo"

    def test_default_model(self, registry):
        assert registry.get_default_model().id == "gpt-5-mini"

    def test_unavailable_model_excluded(self, registry):
        available = [m.id for m in registry.get_available_models()]
        assert "claude-3-sonnet" not in available
        assert registry.get_model_definition("claude-3-sonnet").provider == ModelProvider.ANTHROPIC

    def test_unknown_model_returns_none(self, registry):
        assert registry.get_model_definition("gpt-99") is None

    def test_estimate_cost(self, registry):
        model = registry.get_model_definition("gpt-5")
        assert model.estimate_cost(1500) == pytest.approx(0.003)


# === Prompt templates ===


class TestPromptTemplates:
    def test_section_system_precedes_block_system(self, registry):
        template = registry.get_prompt_template("maries-corner", "mainStory")
        assert template is not None
        assert template.system.startswith("You are an expert beauty content creator")
        assert template.system.index("warm and encouraging.") < template.system.index(
            "Generate the main article content"
        )

    def test_context_and_guidelines_folded_into_system(self, registry):
        system = registry.get_prompt_template("maries-corner", "mainStory").system
        markers = [
            "Context:\n- Magazine: Glamlink Beauty Magazine",
            "Generate the main article content",
            "Guidelines:\n- Content should be 300-800 words",
        ]
        positions = [system.index(marker) for marker in markers]
        assert positions == sorted(positions)

    def test_examples_folded_into_system(self, registry):
        system = registry.get_prompt_template("maries-corner", "sideStories").system
        assert system.endswith(
            "Examples:\n- Never Sleep Face-Down: Sleeping on your side crushes extensions "
            "and shortens their life."
        )

    def test_section_without_global_context(self, registry):
        system = registry.get_prompt_template("cover-pro-feature", "professional").system
        assert "Context:" not in system
        assert system.endswith("and featured quote.")

    def test_user_placeholders_left_unfilled(self, registry):
        template = registry.get_prompt_template("maries-corner", "mainStory")
        assert "{topic}" in template.user

    def test_missing_block_template(self, registry):
        assert registry.get_prompt_template("maries-corner", "noSuchBlock") is None

    def test_custom_section_has_no_template(self, registry):
        assert registry.get_prompt_template("custom-section", "content") is None


# === Dynamic mapping ===


class TestDynamicMapping:
    def test_block_config_exact_match(self, registry):
        assert registry.get_block_config("TipsList").name == "TipsList"

    def test_block_config_loose_match(self, registry):
        block = registry.get_block_config("tips-list")
        assert block is not None
        assert block.get_field("tips") is not None

    def test_block_config_unknown(self, registry):
        assert registry.get_block_config("Carousel3D") is None

    def test_detect_content_blocks_dedupes(self):
        section = {
            "content": {
                "contentBlocks": [
                    {"type": "TipsList"},
                    {"type": "FeatureList"},
                    {"type": "TipsList"},
                ]
            }
        }
        assert detect_content_blocks(section) == ["TipsList", "FeatureList"]

    def test_detect_content_blocks_without_content(self):
        assert detect_content_blocks({"title": "x"}) == []

    def test_custom_section_mapping_from_blocks(self, registry, sample_section_data):
        mapping = registry.get_dynamic_section_mapping(sample_section_data)
        assert mapping.block_names == ["TipsList", "FeatureList"]
        assert [b.priority for b in mapping.content_blocks] == [1, 2]

    def test_static_section_uses_static_mapping(self, registry):
        mapping = registry.get_dynamic_section_mapping({"type": "pro-tips"})
        assert mapping is registry.get_section_schema("pro-tips")

    def test_unknown_blocks_fall_back_to_generic(self, registry):
        section = {
            "type": "custom-section",
            "title": "Hello",
            "content": {"contentBlocks": [{"type": "Carousel3D"}]},
        }
        mapping = registry.get_dynamic_section_mapping(section)
        assert mapping.block_names == [GENERIC_BLOCK_NAME]


class TestGenericMapping:
    def test_fields_from_common_text_fields(self):
        mapping = build_generic_mapping({"title": "T", "body": "<p>Body</p>"})
        block = mapping.get_block(GENERIC_BLOCK_NAME)
        assert [f.name for f in block.fields] == ["title", "body"]
        assert block.get_field("title").type == FieldType.TEXT
        assert block.get_field("body").type == FieldType.HTML

    def test_default_fields_when_none_present(self):
        mapping = build_generic_mapping({})
        block = mapping.get_block(GENERIC_BLOCK_NAME)
        assert [f.name for f in block.fields] == ["title", "content"]

    def test_mapping_validates_from_dict(self):
        mapping = SectionMapping.model_validate({
            "content_blocks": [{"name": "a", "fields": [{"name": "x", "type": "number"}]}]
        })
        assert mapping.get_block("a").get_field("x").type == FieldType.NUMBER
