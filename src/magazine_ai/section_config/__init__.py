# Section Config — block schemas, curated prompts, model catalogue
"""
Read-only section configuration consumed by the content generator.

The bundled sections.yaml describes every magazine section type, the
content blocks it is made of, curated prompt templates, and the model
catalogue that maps abstract model ids to provider models.
"""

from .models import (
    BlockFieldSchema,
    BlockPromptTemplate,
    ContentBlockSchema,
    FieldType,
    ItemFieldSchema,
    ModelDefinition,
    ModelProvider,
    PromptTemplate,
    SectionMapping,
    SectionPromptTemplate,
)
from .registry import (
    CUSTOM_SECTION_TYPE,
    GENERIC_BLOCK_NAME,
    SectionRegistry,
    build_generic_mapping,
    detect_content_blocks,
)

__all__ = [
    "BlockFieldSchema",
    "BlockPromptTemplate",
    "ContentBlockSchema",
    "FieldType",
    "ItemFieldSchema",
    "ModelDefinition",
    "ModelProvider",
    "PromptTemplate",
    "SectionMapping",
    "SectionPromptTemplate",
    "SectionRegistry",
    "CUSTOM_SECTION_TYPE",
    "GENERIC_BLOCK_NAME",
    "build_generic_mapping",
    "detect_content_blocks",
]
