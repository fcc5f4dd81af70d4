"""Section registry — block schemas, prompt templates, and model definitions.

Loads the section configuration from a YAML file (sections.yaml next to this
module by default). The registry is read-only once loaded; the content
generator only queries it.

Usage:
    registry = SectionRegistry.load()
    mapping = registry.get_section_schema("maries-corner")
    prompt = registry.get_prompt_template("maries-corner", "mainStory")
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from src.common.logging import setup_logging

from .models import (
    BlockFieldSchema,
    ContentBlockSchema,
    FieldType,
    ModelDefinition,
    PromptTemplate,
    SectionMapping,
    SectionPromptTemplate,
)

logger = setup_logging(module_name="section_config.registry")

DEFAULT_SECTIONS_PATH = Path(__file__).parent / "sections.yaml"

CUSTOM_SECTION_TYPE = "custom-section"
GENERIC_BLOCK_NAME = "genericContent"

# Section data keys inspected when building a generic mapping
_COMMON_TEXT_FIELDS = ("title", "subtitle", "description", "content", "text", "body")


def _bullets(heading: str, lines: list[str]) -> str:
    return heading + "\n" + "\n".join(f"- {line}" for line in lines)


def _normalize_block_type(name: str) -> str:
    return re.sub(r"[-_]", "", name).lower()


class SectionRegistry:
    """In-memory section configuration registry.

    Args:
        sections: Block schemas keyed by section type.
        prompt_templates: Curated prompts keyed by section type.
        models: Model definitions keyed by abstract model id.
        block_library: Content block types usable inside a custom section.
    """

    def __init__(
        self,
        sections: dict[str, SectionMapping] | None = None,
        prompt_templates: dict[str, SectionPromptTemplate] | None = None,
        models: dict[str, ModelDefinition] | None = None,
        block_library: dict[str, ContentBlockSchema] | None = None,
    ):
        self._sections = sections or {}
        self._prompt_templates = prompt_templates or {}
        self._models = models or {}
        self._block_library = block_library or {}

    @classmethod
    def load(cls, path: str | Path | None = None) -> SectionRegistry:
        """Load the registry from a YAML file.

        Args:
            path: Path to the YAML file. Defaults to the bundled sections.yaml.

        Returns:
            SectionRegistry instance.
        """
        p = Path(path) if path else DEFAULT_SECTIONS_PATH
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        registry = cls.from_dict(data)
        logger.info(
            "Loaded section registry from %s (%d sections, %d models)",
            p.name,
            len(registry._sections),
            len(registry._models),
        )
        return registry

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SectionRegistry:
        """Build a registry from already-parsed configuration data."""
        models = {
            model_id: ModelDefinition(id=model_id, **(raw or {}))
            for model_id, raw in (data.get("models") or {}).items()
        }
        sections = {
            section_type: SectionMapping.model_validate(raw)
            for section_type, raw in (data.get("sections") or {}).items()
        }
        prompt_templates = {
            section_type: SectionPromptTemplate.model_validate(raw)
            for section_type, raw in (data.get("prompt_templates") or {}).items()
        }
        block_library = {
            block_type: ContentBlockSchema(name=block_type, **(raw or {}))
            for block_type, raw in (data.get("block_library") or {}).items()
        }
        return cls(
            sections=sections,
            prompt_templates=prompt_templates,
            models=models,
            block_library=block_library,
        )

    # --- Lookups ---

    def get_section_schema(self, section_type: str) -> Optional[SectionMapping]:
        return self._sections.get(section_type)

    def get_prompt_template(
        self, section_type: str, block_name: str
    ) -> Optional[PromptTemplate]:
        """Curated prompt for a (section type, block) pair.

        The section-level system prompt and its global context precede the
        block-level system prompt, its guidelines and examples. The user
        prompt is returned with its placeholders unfilled.
        """
        section_template = self._prompt_templates.get(section_type)
        if section_template is None:
            return None
        block_template = section_template.content_blocks.get(block_name)
        if block_template is None:
            return None

        parts = [section_template.system]
        if section_template.global_context:
            parts.append(_bullets("Context:", section_template.global_context))
        parts.append(block_template.system)
        if block_template.context:
            parts.append(_bullets("Guidelines:", block_template.context))
        if block_template.examples:
            parts.append(_bullets("Examples:", block_template.examples))
        return PromptTemplate(system="\n\n".join(parts), user=block_template.user)

    def get_model_definition(self, model_id: str) -> Optional[ModelDefinition]:
        return self._models.get(model_id)

    def get_default_model(self) -> Optional[ModelDefinition]:
        for model in self._models.values():
            if model.is_default:
                return model
        return next(iter(self._models.values()), None)

    def get_available_models(self) -> list[ModelDefinition]:
        return [m for m in self._models.values() if m.available]

    @property
    def section_types(self) -> list[str]:
        return list(self._sections)

    def get_block_config(self, block_type: str) -> Optional[ContentBlockSchema]:
        """Look up a custom-section block type in the block library.

        Tries an exact match first, then a match ignoring case, dashes and
        underscores.
        """
        block = self._block_library.get(block_type)
        if block is not None:
            return block
        wanted = _normalize_block_type(block_type)
        for name, candidate in self._block_library.items():
            if _normalize_block_type(name) == wanted:
                logger.debug("Matched block type %s to %s", block_type, name)
                return candidate
        return None

    # --- Dynamic mapping ---

    def get_dynamic_section_mapping(self, section_data: dict[str, Any]) -> SectionMapping:
        """Derive a section mapping from the section's stored content.

        Custom sections always get a mapping built from the content blocks
        they actually hold. Other section types use their static mapping
        when one exists. Anything left falls back to a generic mapping.
        """
        section_type = section_data.get("type", "")
        if section_type != CUSTOM_SECTION_TYPE:
            static_mapping = self.get_section_schema(section_type)
            if static_mapping is not None:
                return static_mapping

        block_types = detect_content_blocks(section_data)
        if not block_types:
            logger.warning(
                "No content blocks found for section type %r, using generic mapping",
                section_type,
            )
            return build_generic_mapping(section_data)

        blocks: list[ContentBlockSchema] = []
        for priority, block_type in enumerate(block_types, start=1):
            config = self.get_block_config(block_type)
            if config is None:
                logger.warning("No block library entry for %s, skipping", block_type)
                continue
            # Keep the block name as stored on the section so lookups by
            # requested block name still match
            blocks.append(config.model_copy(update={"name": block_type, "priority": priority}))

        if not blocks:
            return build_generic_mapping(section_data)

        return SectionMapping(
            display_name=section_data.get("title") or "Custom Section",
            description="Mapping derived from the section's content blocks",
            category="custom",
            complexity="medium",
            content_blocks=blocks,
        )


def detect_content_blocks(section_data: dict[str, Any]) -> list[str]:
    """Content block types stored on a section, in order, without duplicates."""
    content = section_data.get("content") or {}
    if not isinstance(content, dict):
        return []
    seen: list[str] = []
    for block in content.get("contentBlocks") or []:
        block_type = block.get("type") if isinstance(block, dict) else None
        if block_type and block_type not in seen:
            seen.append(block_type)
    return seen


def build_generic_mapping(section_data: dict[str, Any]) -> SectionMapping:
    """Mapping with a single block made of the common text fields present."""
    fields: list[BlockFieldSchema] = []
    for name in _COMMON_TEXT_FIELDS:
        value = section_data.get(name)
        if value is None:
            continue
        is_html = isinstance(value, str) and "<" in value
        fields.append(
            BlockFieldSchema(
                name=name,
                display_name=name.capitalize(),
                type=FieldType.HTML if is_html else FieldType.TEXT,
                description=f"{name} field",
            )
        )

    if not fields:
        fields = [
            BlockFieldSchema(name="title", display_name="Title", description="Content title"),
            BlockFieldSchema(
                name="content",
                display_name="Content",
                type=FieldType.HTML,
                description="Main content",
            ),
        ]

    return SectionMapping(
        display_name="Generic Content",
        description="Generic mapping for unrecognized content structure",
        category="generic",
        complexity="medium",
        content_blocks=[
            ContentBlockSchema(
                name=GENERIC_BLOCK_NAME,
                display_name="Content",
                description="Auto-detected content fields",
                fields=fields,
            )
        ],
    )
