"""Model response parsing for content blocks.

Parsing never raises: JSON output is remapped into the section's data shape,
anything else is kept as plain text under the block name.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from src.common.logging import setup_logging
from src.magazine_ai.section_config.models import ContentBlockSchema

logger = setup_logging(module_name="content_generator.parser")


@dataclass(frozen=True)
class DestinationRule:
    """Builds one destination key of a composite block.

    The rule applies only when at least one of its source keys is present
    in the parsed payload.

    Attributes:
        destination: Key written into the section data
        sources: Parsed keys that trigger the rule
        fields: Destination object fields copied from the parsed payload,
            with the default used when the parsed payload lacks them
        constants: Fixed values merged into the destination object
        list_key: Wrap parsed[sources[0]] as {list_key: value, **constants}
        passthrough: Write parsed[sources[0]] as-is
    """
    destination: str
    sources: tuple[str, ...]
    fields: dict[str, Any] = field(default_factory=dict)
    constants: dict[str, Any] = field(default_factory=dict)
    list_key: Optional[str] = None
    passthrough: bool = False

    def applies_to(self, parsed: dict[str, Any]) -> bool:
        return any(key in parsed for key in self.sources)

    def build(self, parsed: dict[str, Any]) -> Any:
        if self.passthrough:
            return parsed[self.sources[0]]
        if self.list_key:
            return {**self.constants, self.list_key: parsed[self.sources[0]]}
        value = {name: parsed.get(name) or default for name, default in self.fields.items()}
        value.update(self.constants)
        return value


# Composite blocks whose payload is split across several section keys,
# keyed by (section type, block name)
COMPOSITE_TRANSFORMS: dict[tuple[str, str], tuple[DestinationRule, ...]] = {
    ("maries-corner", "mainStory"): (
        DestinationRule(
            destination="mainStory",
            sources=("title", "articleTitle", "content"),
            fields={"title": "", "articleTitle": "", "content": ""},
            constants={"authorName": "Marie Marks"},
        ),
        DestinationRule(
            destination="mariesPicks",
            sources=("products",),
            constants={"title": "MARIE'S PICKS"},
            list_key="products",
        ),
        DestinationRule(
            destination="sideStories",
            sources=("tips",),
            passthrough=True,
        ),
    ),
}


def extract_json_text(raw_text: str) -> str:
    """Strip a surrounding ```json fence if the model added one."""
    text = raw_text
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        parts = text.split("```")
        if len(parts) >= 3:
            text = parts[1]
    return text.strip()


class ResponseParser:
    """Parses raw model output into section data.

    Args:
        transforms: Composite block rules; defaults to COMPOSITE_TRANSFORMS.
    """

    def __init__(
        self,
        transforms: dict[tuple[str, str], tuple[DestinationRule, ...]] | None = None,
    ):
        self.transforms = COMPOSITE_TRANSFORMS if transforms is None else transforms

    def parse(
        self,
        section_type: str,
        block_name: str,
        raw_text: str,
        block_schema: ContentBlockSchema | None = None,
    ) -> dict[str, Any]:
        """Parse a model response for one block.

        Args:
            section_type: Section type the block belongs to
            block_name: Content block name
            raw_text: Raw model output
            block_schema: The block's schema, if resolved

        Returns:
            Mapping of section data keys to generated values
        """
        try:
            parsed = json.loads(extract_json_text(raw_text))
        except (json.JSONDecodeError, TypeError):
            logger.warning("Response for %s is not JSON, keeping it as plain text", block_name)
            return {block_name: {"content": raw_text}}

        rules = self.transforms.get((section_type, block_name))
        if rules and isinstance(parsed, dict):
            result: dict[str, Any] = {}
            for rule in rules:
                if rule.applies_to(parsed):
                    result[rule.destination] = rule.build(parsed)
            logger.debug(
                "Applied composite transform for %s.%s -> %s",
                section_type,
                block_name,
                list(result),
            )
            return result

        if block_schema is not None and isinstance(parsed, dict):
            unknown = [k for k in parsed if block_schema.get_field(k) is None]
            if unknown:
                logger.debug("Response for %s has keys outside its schema: %s", block_name, unknown)

        return {block_name: parsed}
