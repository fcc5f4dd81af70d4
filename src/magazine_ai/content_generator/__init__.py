# Content Generator — prompts, model calls and parsing per content block
"""
Turns a section's block configuration into generated field values:
- PromptBuilder: curated templates or schema-derived generic prompts
- ModelClient: provider routing with a synthetic fallback strategy
- ResponseParser: JSON parsing with composite-block remapping
- SectionContentGenerator: per-request driver with per-block failure isolation
"""

from .generator import SectionContentGenerator
from .model_client import (
    AnthropicProvider,
    CompletionProvider,
    ModelClient,
    OpenAIProvider,
    SyntheticFallbackProvider,
)
from .models import (
    CompletionResult,
    ContentBlockResult,
    GenerationContext,
    GenerationRequest,
    GenerationResult,
    PromptMessages,
    ProviderResponseError,
    RequestValidationError,
    SectionConfigurationError,
    UnknownModelError,
    Usage,
    UsageSummary,
)
from .parser import COMPOSITE_TRANSFORMS, DestinationRule, ResponseParser
from .prompts import PromptBuilder, apply_instruction_layers
from .validation import resolve_section_mapping, validate_request

__all__ = [
    "SectionContentGenerator",
    "AnthropicProvider",
    "CompletionProvider",
    "ModelClient",
    "OpenAIProvider",
    "SyntheticFallbackProvider",
    "CompletionResult",
    "ContentBlockResult",
    "GenerationContext",
    "GenerationRequest",
    "GenerationResult",
    "PromptMessages",
    "ProviderResponseError",
    "RequestValidationError",
    "SectionConfigurationError",
    "UnknownModelError",
    "Usage",
    "UsageSummary",
    "COMPOSITE_TRANSFORMS",
    "DestinationRule",
    "ResponseParser",
    "PromptBuilder",
    "apply_instruction_layers",
    "resolve_section_mapping",
    "validate_request",
]
