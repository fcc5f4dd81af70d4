"""Pydantic models for section configuration.

These models describe the read-only contract between the section registry
and the content generator: block field schemas, curated prompt templates,
and model definitions.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# === Enums ===

class FieldType(str, Enum):
    """Value types a block field can hold."""
    TEXT = "text"
    HTML = "html"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


class ModelProvider(str, Enum):
    """Completion providers a model definition can point at."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


# === Block schemas ===

class ItemFieldSchema(BaseModel):
    """Schema of one key inside an array-of-object field."""
    type: FieldType = FieldType.TEXT
    display_name: str = ""
    description: str = ""


class BlockFieldSchema(BaseModel):
    """A single field of a content block."""
    name: str
    display_name: str = ""
    type: FieldType = FieldType.TEXT
    description: str = ""
    ai_eligible: bool = True
    required: bool = False
    item_fields: Optional[dict[str, ItemFieldSchema]] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name


class PromptTemplate(BaseModel):
    """A system/user message pair."""
    system: str
    user: str = ""


class ContentBlockSchema(BaseModel):
    """Named, independently generatable sub-unit of a section."""
    name: str
    display_name: str = ""
    description: str = ""
    priority: int = 0
    fields: list[BlockFieldSchema] = Field(default_factory=list)
    ai_prompts: Optional[PromptTemplate] = None

    def get_field(self, name: str) -> Optional[BlockFieldSchema]:
        for block_field in self.fields:
            if block_field.name == name:
                return block_field
        return None

    @property
    def eligible_field_names(self) -> list[str]:
        """Names of the fields flagged for AI generation, in schema order."""
        return [f.name for f in self.fields if f.ai_eligible]


class SectionMapping(BaseModel):
    """Block schema for a whole section type."""
    display_name: str = ""
    description: str = ""
    category: str = ""
    complexity: str = "medium"
    default_model: Optional[str] = None
    content_blocks: list[ContentBlockSchema] = Field(default_factory=list)

    def get_block(self, name: str) -> Optional[ContentBlockSchema]:
        for block in self.content_blocks:
            if block.name == name:
                return block
        return None

    @property
    def block_names(self) -> list[str]:
        return [b.name for b in self.content_blocks]


# === Prompt templates ===

class BlockPromptTemplate(BaseModel):
    """Curated prompt for one (section type, block) pair."""
    name: str = ""
    system: str
    user: str
    examples: list[str] = Field(default_factory=list)
    context: list[str] = Field(default_factory=list)


class SectionPromptTemplate(BaseModel):
    """Curated prompts for every block of a section type."""
    display_name: str = ""
    description: str = ""
    system: str
    global_context: list[str] = Field(default_factory=list)
    content_blocks: dict[str, BlockPromptTemplate] = Field(default_factory=dict)


# === Models ===

class ModelDefinition(BaseModel):
    """Abstract model identifier and its provider binding."""
    id: str
    label: str = ""
    description: str = ""
    provider: ModelProvider = ModelProvider.OPENAI
    provider_model: str = ""
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    cost_per_1k_tokens: float = Field(default=0.0, ge=0)
    available: bool = True
    is_default: bool = False

    def estimate_cost(self, total_tokens: int) -> float:
        """Cost in USD for the given token count."""
        return (total_tokens / 1000) * self.cost_per_1k_tokens
