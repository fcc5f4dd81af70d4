"""Data models for the content generator module."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional, Union

from src.magazine_ai.section_config.models import SectionMapping


class SectionConfigurationError(ValueError):
    """Raised when a request's section schema or model cannot be resolved."""


class UnknownModelError(SectionConfigurationError):
    """Raised for a model id missing from the model catalogue."""


class RequestValidationError(ValueError):
    """Raised when a generation request breaks the request limits."""


class ProviderResponseError(RuntimeError):
    """Raised when a provider response does not have the expected shape."""


@dataclass(frozen=True)
class GenerationContext:
    """Free-text context attached to a generation request."""
    title: Optional[str] = None
    theme: Optional[str] = None
    audience: Optional[str] = None
    global_instruction: Optional[str] = None
    custom_instruction: Optional[str] = None
    user_instruction: Optional[str] = None
    current_data: Optional[dict[str, Any]] = None
    # Extra template variables (focusAreas, skillLevel, ...)
    variables: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GenerationContext:
        """Build a context from a camelCase or snake_case dictionary."""
        data = dict(data or {})

        def pick(*keys: str) -> Any:
            value = None
            for key in keys:
                candidate = data.pop(key, None)
                if value is None:
                    value = candidate
            return value

        return cls(
            title=pick("title"),
            theme=pick("theme"),
            audience=pick("audience", "targetAudience", "target_audience"),
            global_instruction=pick("globalInstruction", "global_instruction", "globalPrompt"),
            custom_instruction=pick("customInstruction", "custom_instruction", "customPrompt"),
            user_instruction=pick("userInstruction", "user_instruction", "userPrompt"),
            current_data=pick("currentData", "current_data"),
            variables={k: str(v) for k, v in data.items() if isinstance(v, (str, int, float))},
        )

    def text_length(self) -> int:
        """Total characters of free-text context."""
        parts = [
            self.title,
            self.theme,
            self.audience,
            self.global_instruction,
            self.custom_instruction,
            self.user_instruction,
        ]
        return sum(len(p) for p in parts if p) + sum(len(v) for v in self.variables.values())


@dataclass(frozen=True)
class GenerationRequest:
    """One section's worth of blocks to generate."""
    section_type: str
    model_id: str
    requested_blocks: tuple[str, ...]
    section_data: Mapping[str, Any] = field(default_factory=dict)
    context: GenerationContext = field(default_factory=GenerationContext)
    section_mapping: Optional[Union[SectionMapping, dict[str, Any]]] = None
    selected_fields: Optional[dict[str, list[str]]] = None

    def __post_init__(self) -> None:
        # Accept lists from callers; store an immutable tuple
        if not isinstance(self.requested_blocks, tuple):
            object.__setattr__(self, "requested_blocks", tuple(self.requested_blocks))
        if isinstance(self.section_mapping, dict):
            object.__setattr__(
                self, "section_mapping", SectionMapping.model_validate(self.section_mapping)
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GenerationRequest:
        """Build a request from its JSON form (camelCase keys accepted)."""
        blocks = data.get("requestedBlocks") or data.get("contentBlocks") or data.get("requested_blocks") or []
        return cls(
            section_type=data.get("sectionType") or data.get("section_type", ""),
            model_id=data.get("modelId") or data.get("model_id", ""),
            requested_blocks=tuple(blocks),
            section_data=data.get("sectionData") or data.get("section_data") or {},
            context=GenerationContext.from_dict(data.get("context")),
            section_mapping=data.get("sectionMapping") or data.get("section_mapping"),
            selected_fields=data.get("selectedFields") or data.get("selected_fields"),
        )


@dataclass(frozen=True)
class PromptMessages:
    """System/user message pair sent to the model."""
    system: str
    user: str

    def to_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


@dataclass(frozen=True)
class Usage:
    """Token usage reported for one completion."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class CompletionResult:
    """Raw completion text plus usage metadata."""
    content: str
    usage: Usage = field(default_factory=Usage)
    model: str = ""
    provider: str = ""
    synthetic: bool = False


@dataclass(frozen=True)
class ContentBlockResult:
    """Outcome of one block attempt. A retry produces a new instance."""
    block_name: str
    fields: dict[str, Any] = field(default_factory=dict)
    success: bool = False
    error: Optional[str] = None
    usage: Optional[Usage] = None
    synthetic: bool = False


@dataclass(frozen=True)
class UsageSummary:
    """Usage aggregated over a request's block calls."""
    tokens_used: int = 0
    cost: float = 0.0
    model: str = ""


@dataclass(frozen=True)
class GenerationResult:
    """Complete section generation result."""
    section_type: str
    success: bool
    data: Optional[dict[str, Any]] = None
    block_results: tuple[ContentBlockResult, ...] = ()
    error: Optional[str] = None
    usage: Optional[UsageSummary] = None

    @property
    def failed_blocks(self) -> list[str]:
        return [r.block_name for r in self.block_results if not r.success]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
