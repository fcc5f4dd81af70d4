"""Request checks run before any block is generated."""

from __future__ import annotations

import dataclasses

from src.common.config import GenerationSettings
from src.magazine_ai.section_config.registry import CUSTOM_SECTION_TYPE

from .models import GenerationRequest, RequestValidationError


def validate_request(request: GenerationRequest, settings: GenerationSettings) -> None:
    """Reject requests outside the generation limits.

    Raises:
        RequestValidationError: On a missing section type, model id or
            block list, too many blocks, or oversized context text
    """
    if not request.section_type:
        raise RequestValidationError("Missing required field: section_type")
    if not request.model_id:
        raise RequestValidationError("Missing required field: model_id")
    if not request.requested_blocks:
        raise RequestValidationError("Missing required field: requested_blocks")

    if len(request.requested_blocks) > settings.max_content_blocks:
        raise RequestValidationError(
            f"Too many content blocks requested (max {settings.max_content_blocks})"
        )

    if request.context.text_length() > settings.max_context_length:
        raise RequestValidationError(
            f"Context too long (max {settings.max_context_length} characters)"
        )


def resolve_section_mapping(request: GenerationRequest, registry) -> GenerationRequest:
    """Attach a block mapping derived from a custom section's stored blocks.

    Requests that already carry a mapping, and requests for any other
    section type, are returned unchanged.
    """
    if request.section_mapping is not None or request.section_type != CUSTOM_SECTION_TYPE:
        return request

    section_data = {**request.section_data, "type": CUSTOM_SECTION_TYPE}
    mapping = registry.get_dynamic_section_mapping(section_data)
    return dataclasses.replace(request, section_mapping=mapping)
