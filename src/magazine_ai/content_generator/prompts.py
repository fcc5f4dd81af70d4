"""Prompt construction for section content blocks.

Two paths:
- curated: a template registered for the exact (section type, block) pair,
  with {placeholder} variables filled from the section data and context,
  followed by the JSON-only rule and the expected structure
- generic: a prompt synthesized from the block's field schema, anchored on
  the block's current content so the model edits instead of rewriting
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from src.common.logging import setup_logging
from src.magazine_ai.section_config.models import (
    BlockFieldSchema,
    ContentBlockSchema,
    FieldType,
)

from .models import GenerationContext, PromptMessages
from .parser import COMPOSITE_TRANSFORMS

logger = setup_logging(module_name="content_generator.prompts")

DEFAULT_USER_REQUEST = "Update the content"

JSON_ONLY_RULE = (
    "IMPORTANT: You must return ONLY valid JSON. "
    "Do not include any explanations or markdown."
)

MODIFICATION_INSTRUCTIONS = """\
MODIFICATION INSTRUCTIONS:
- Start with the current state shown above
- Apply the modifications requested by the user
- If user says "add" or "add more", APPEND to existing arrays
- If user says "replace" or "new", REPLACE the content
- If user says "remove" or "delete", REMOVE as requested
- If user says "update" or "change", MODIFY specific items
- Default behavior: ADD to arrays, UPDATE individual fields
- Return the COMPLETE modified result, not just the changes"""

# Example values used in the JSON skeleton, per field type
ITEM_EXAMPLES: dict[FieldType, Any] = {
    FieldType.HTML: "<p>HTML content here</p>",
    FieldType.TEXT: "text content",
    FieldType.NUMBER: 0,
    FieldType.BOOLEAN: True,
}
FIELD_EXAMPLES: dict[FieldType, Any] = {
    FieldType.HTML: "<p>HTML content</p>",
    FieldType.TEXT: "text content",
    FieldType.NUMBER: 0,
    FieldType.BOOLEAN: True,
}
UNDEFINED_ITEM_EXAMPLE = {"example": "object"}


def build_template_variables(
    section_data: Mapping[str, Any],
    context: GenerationContext,
) -> dict[str, str]:
    """Variables available to curated prompt templates.

    Every variable has a default so a template never ships with an empty slot.
    """
    sd = section_data
    extra = context.variables
    variables = {
        "topic": context.title or context.theme or "beauty and wellness",
        "focus": context.theme or "professional beauty advice",
        "audience": context.audience or "beauty professionals and enthusiasts",
        "name": sd.get("name") or sd.get("title") or "Featured Professional",
        "specialization": sd.get("specialization") or "beauty professional",
        "background": sd.get("background") or "experienced beauty professional",
        "achievements": sd.get("achievements") or "industry recognition",
        "productName": sd.get("name") or "Featured Product",
        "category": sd.get("category") or "beauty product",
        "features": sd.get("features") or "premium quality",
        "targetUse": sd.get("targetUse") or "professional use",
        "treatmentName": sd.get("name") or "Featured Treatment",
        "type": sd.get("type") or "beauty treatment",
        "concerns": sd.get("concerns") or "skin improvement",
        "duration": sd.get("duration") or "60 minutes",
        "suitableFor": sd.get("suitableFor") or "all skin types",
        "starName": sd.get("starName") or "Rising Star",
        "careerStage": sd.get("careerStage") or "emerging professional",
        "recentWork": sd.get("recentWork") or "recent projects",
        "theme": context.theme or "inspiration and motivation",
        "focusAreas": extra.get("focusAreas") or "platform improvements",
        "targetUsers": extra.get("targetUsers") or "beauty professionals",
        "updateType": extra.get("updateType") or "feature updates",
        "skillLevel": extra.get("skillLevel") or "all levels",
    }
    return {key: _as_text(value) for key, value in variables.items()}


def fill_template(template: str, variables: Mapping[str, str]) -> str:
    """Replace {name} placeholders; unknown placeholders are left as-is."""
    text = template
    for key, value in variables.items():
        text = text.replace("{" + key + "}", value)
    return text


def apply_instruction_layers(user_prompt: str, context: GenerationContext) -> str:
    """Layer global, custom, and user instructions onto a user prompt.

    The global instruction leads, custom and user instructions follow the
    base prompt, each in its own paragraph. Absent layers are skipped.
    """
    prompt = user_prompt
    if context.global_instruction:
        prompt = f"{context.global_instruction}\n\n{prompt}"
    if context.custom_instruction:
        prompt = f"{prompt}\n\nAdditional instructions: {context.custom_instruction}"
    if context.user_instruction:
        prompt = f"{prompt}\n\nUser request: {context.user_instruction}"
    return prompt


def resolve_current_block_data(
    block_name: str,
    section_data: Mapping[str, Any],
    context: GenerationContext,
) -> dict[str, Any]:
    """Current stored content of a block.

    Custom sections keep blocks in section_data["content"]["contentBlocks"];
    other sections pass them through context.current_data.
    """
    content = section_data.get("content")
    if isinstance(content, Mapping):
        for block in content.get("contentBlocks") or []:
            if isinstance(block, Mapping) and block.get("type") == block_name:
                props = block.get("props")
                if props:
                    return dict(props)
                break

    current = context.current_data or {}
    if current.get(block_name):
        return dict(current[block_name])
    return {}


def describe_field(block_field: BlockFieldSchema) -> tuple[list[str], Any]:
    """Description lines and example value for one schema field."""
    header = f"- {block_field.label}: {block_field.description}"

    if block_field.type == FieldType.ARRAY:
        if block_field.item_fields:
            item_example: dict[str, Any] = {}
            lines = [f"{header} (array with items containing):"]
            for item_name, item in block_field.item_fields.items():
                item_example[item_name] = ITEM_EXAMPLES.get(item.type, "content")
                item_description = item.description or item.display_name or item_name
                lines.append(f"    - {item_name}: {item_description} ({item.type.value})")
            return lines, [item_example]

        logger.warning(
            "Array field %r has no item_fields definition; using a generic example",
            block_field.name,
        )
        return [f"{header} (array)"], [dict(UNDEFINED_ITEM_EXAMPLE)]

    return [f"{header} ({block_field.type.value})"], FIELD_EXAMPLES.get(block_field.type, "content")


def describe_fields(
    block_fields: list[BlockFieldSchema],
) -> tuple[list[str], dict[str, Any]]:
    """Description lines and the expected JSON structure for a set of fields."""
    descriptions: list[str] = []
    structure: dict[str, Any] = {}
    for block_field in block_fields:
        lines, example = describe_field(block_field)
        descriptions.extend(lines)
        structure[block_field.name] = example
    return descriptions, structure


def response_format_sections(block_fields: list[BlockFieldSchema]) -> list[str]:
    descriptions, structure = describe_fields(block_fields)
    return [
        "Field definitions for reference:\n" + "\n".join(descriptions),
        "Expected JSON structure:\n" + json.dumps(structure, indent=2, ensure_ascii=False),
    ]


class PromptBuilder:
    """Builds the system/user messages for one content block.

    Args:
        registry: Section registry providing curated prompt templates.
        transforms: Composite block rules, used to describe the keys a
            composite block answers with; defaults to COMPOSITE_TRANSFORMS.
    """

    def __init__(self, registry, transforms=None):
        self.registry = registry
        self.transforms = COMPOSITE_TRANSFORMS if transforms is None else transforms

    def build(
        self,
        section_type: str,
        block_name: str,
        section_data: Mapping[str, Any],
        context: GenerationContext,
        block_schema: ContentBlockSchema,
        selected_fields: Optional[Mapping[str, list[str]]] = None,
    ) -> PromptMessages:
        """Build the prompt for a block, curated template first.

        Curated prompts are followed by the JSON-only rule and the expected
        structure, so JSON response mode always has a JSON instruction to
        match.

        Args:
            section_type: Section type (e.g. "maries-corner")
            block_name: Content block name within the section
            section_data: Stored section record
            context: Request context (topic, audience, instructions)
            block_schema: The block's field schema
            selected_fields: Optional block -> field names to generate

        Returns:
            PromptMessages without instruction layers applied
        """
        template = self.registry.get_prompt_template(section_type, block_name)
        if template is not None:
            variables = build_template_variables(section_data, context)
            response_fields = self.curated_response_fields(section_type, block_name, block_schema)
            system = "\n\n".join(
                [template.system, JSON_ONLY_RULE] + response_format_sections(response_fields)
            )
            return PromptMessages(
                system=system,
                user=fill_template(template.user, variables),
            )

        logger.info("No curated template for %s.%s, building from schema", section_type, block_name)
        return self.build_generic(block_name, section_data, context, block_schema, selected_fields)

    def curated_response_fields(
        self,
        section_type: str,
        block_name: str,
        block_schema: ContentBlockSchema,
    ) -> list[BlockFieldSchema]:
        """Fields a curated block is expected to answer with.

        A composite block answers for several section keys at once; its
        fields are the transform's source keys, described by the
        destination blocks of the same section.
        """
        rules = self.transforms.get((section_type, block_name))
        if not rules:
            return [f for f in block_schema.fields if f.ai_eligible]

        section = self.registry.get_section_schema(section_type)
        fields: dict[str, BlockFieldSchema] = {}
        for rule in rules:
            destination = section.get_block(rule.destination) if section else None
            for source in rule.sources:
                block_field = destination.get_field(source) if destination else None
                block_field = block_field or block_schema.get_field(source)
                if block_field is None:
                    logger.debug("No schema for composite key %s of %s", source, block_name)
                    continue
                fields.setdefault(source, block_field)
        return list(fields.values())

    def build_generic(
        self,
        block_name: str,
        section_data: Mapping[str, Any],
        context: GenerationContext,
        block_schema: ContentBlockSchema,
        selected_fields: Optional[Mapping[str, list[str]]] = None,
    ) -> PromptMessages:
        """Synthesize a prompt from the block's field schema."""
        if selected_fields and block_name in selected_fields:
            field_names = list(selected_fields[block_name])
        else:
            field_names = block_schema.eligible_field_names

        block_fields: list[BlockFieldSchema] = []
        for field_name in field_names:
            block_field = block_schema.get_field(field_name)
            if block_field is None:
                logger.debug("Selected field %s not in %s schema", field_name, block_name)
                continue
            block_fields.append(block_field)

        current = resolve_current_block_data(block_name, section_data, context)
        request_text = context.user_instruction or DEFAULT_USER_REQUEST

        if block_schema.ai_prompts and block_schema.ai_prompts.system:
            framing = block_schema.ai_prompts.system
        else:
            framing = (
                "You are an AI content editor for a beauty magazine. "
                f'Generate content for the "{block_name}" section.'
            )

        system = "\n\n".join([
            framing,
            JSON_ONLY_RULE,
            "You are MODIFYING existing content based on the user's request.",
            "CURRENT STATE OF CONTENT:\n" + json.dumps(current, indent=2, ensure_ascii=False),
            f"USER REQUEST: {request_text}",
            MODIFICATION_INSTRUCTIONS,
        ] + response_format_sections(block_fields))
        user = (
            f"Modify the {block_name} content based on this request: {request_text}\n\n"
            "Current content has been provided in the system message.\n"
            "Return the COMPLETE modified JSON with all existing and new data."
        )
        return PromptMessages(system=system, user=user)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)
