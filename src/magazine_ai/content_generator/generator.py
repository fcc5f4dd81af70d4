"""Section content generator — one request, block by block.

Each requested block is generated independently: prompt, completion, parse.
A failing block becomes a failed ContentBlockResult and never stops its
siblings. Only an unresolvable section schema or model fails the request
as a whole.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

from src.common.config import Settings
from src.common.logging import setup_logging
from src.magazine_ai.section_config.models import ModelDefinition, SectionMapping

from .model_client import ModelClient
from .models import (
    ContentBlockResult,
    GenerationRequest,
    GenerationResult,
    PromptMessages,
    SectionConfigurationError,
    UsageSummary,
)
from .parser import ResponseParser
from .prompts import PromptBuilder, apply_instruction_layers
from .validation import resolve_section_mapping, validate_request

logger = setup_logging(module_name="content_generator.generator")

NO_BLOCKS_GENERATED = "No content blocks were successfully generated."


class SectionContentGenerator:
    """Generates the requested content blocks of one section.

    Args:
        model_client: Client used for every completion call.
        registry: Section registry (schemas, templates, model catalogue).
        prompt_builder: Defaults to a PromptBuilder over the registry.
        parser: Defaults to a ResponseParser with the built-in transforms.
        settings: Defaults to settings loaded from config/settings.yaml.
    """

    def __init__(
        self,
        model_client: ModelClient,
        registry,
        prompt_builder: PromptBuilder | None = None,
        parser: ResponseParser | None = None,
        settings: Settings | None = None,
    ):
        self.model_client = model_client
        self.registry = registry
        self.prompt_builder = prompt_builder or PromptBuilder(registry)
        self.parser = parser or ResponseParser()
        self.settings = settings or Settings.load()

    def resolve_schema(self, request: GenerationRequest) -> SectionMapping:
        """Block mapping for the request, the request's own override first.

        Raises:
            SectionConfigurationError: If no mapping can be found
        """
        if request.section_mapping is not None:
            return request.section_mapping
        mapping = self.registry.get_section_schema(request.section_type)
        if mapping is None:
            raise SectionConfigurationError(f"Invalid section type: {request.section_type}")
        return mapping

    def resolve_model(self, model_id: str) -> ModelDefinition:
        """Catalogue entry for model_id; it must be available.

        Raises:
            SectionConfigurationError: If the model is unknown or unavailable
        """
        model = self.model_client.resolve_model(model_id)
        if not model.available:
            raise SectionConfigurationError(f"Model {model_id} is not available")
        return model

    async def generate(
        self,
        request: GenerationRequest,
        on_block: Optional[Callable[[str], Any]] = None,
    ) -> GenerationResult:
        """Generate every requested block of a section.

        Args:
            request: The generation request
            on_block: Called with each block name before it is generated;
                may be a coroutine function

        Returns:
            GenerationResult; success when at least one block succeeded

        Raises:
            RequestValidationError: If the request breaks the request limits
            SectionConfigurationError: If the schema or model cannot be resolved
        """
        validate_request(request, self.settings.generation)
        request = resolve_section_mapping(request, self.registry)
        mapping = self.resolve_schema(request)
        model = self.resolve_model(request.model_id)

        logger.info(
            "Generating %d block(s) for %s with %s",
            len(request.requested_blocks),
            request.section_type,
            model.id,
        )

        block_results: list[ContentBlockResult] = []
        for block_name in request.requested_blocks:
            if on_block is not None:
                outcome = on_block(block_name)
                if inspect.isawaitable(outcome):
                    await outcome
            block_results.append(await self._generate_block(request, mapping, block_name))

        return self._aggregate(request.section_type, model, block_results)

    async def _generate_block(
        self,
        request: GenerationRequest,
        mapping: SectionMapping,
        block_name: str,
    ) -> ContentBlockResult:
        block_schema = mapping.get_block(block_name)
        if block_schema is None:
            error = f'No configuration found for block "{block_name}" in section mapping'
            logger.warning(error)
            return ContentBlockResult(block_name=block_name, success=False, error=error)

        try:
            prompt = self.prompt_builder.build(
                request.section_type,
                block_name,
                request.section_data,
                request.context,
                block_schema,
                request.selected_fields,
            )
            messages = PromptMessages(
                system=prompt.system,
                user=apply_instruction_layers(prompt.user, request.context),
            )
            completion = await self.model_client.complete(messages.to_messages(), request.model_id)
            fields = self.parser.parse(
                request.section_type, block_name, completion.content, block_schema
            )
        except Exception as e:
            logger.error("Block %s of %s failed: %s", block_name, request.section_type, e)
            return ContentBlockResult(block_name=block_name, success=False, error=str(e))

        return ContentBlockResult(
            block_name=block_name,
            fields=fields,
            success=True,
            usage=completion.usage,
            synthetic=completion.synthetic,
        )

    def _aggregate(
        self,
        section_type: str,
        model: ModelDefinition,
        block_results: list[ContentBlockResult],
    ) -> GenerationResult:
        succeeded = [r for r in block_results if r.success]
        failed = [r for r in block_results if not r.success]

        data: dict[str, Any] = {}
        for result in succeeded:
            data.update(result.fields)

        error = None
        if failed:
            error = "Failed blocks: " + ", ".join(f"{r.block_name} ({r.error})" for r in failed)
            if not succeeded:
                error = f"{NO_BLOCKS_GENERATED} {error}"

        tokens_used = sum(r.usage.total_tokens for r in succeeded if r.usage is not None)
        logger.info(
            "%s: %d/%d block(s) generated, %d tokens",
            section_type,
            len(succeeded),
            len(block_results),
            tokens_used,
        )
        return GenerationResult(
            section_type=section_type,
            success=bool(succeeded),
            data=data if succeeded else None,
            block_results=tuple(block_results),
            error=error,
            usage=UsageSummary(
                tokens_used=tokens_used,
                cost=model.estimate_cost(tokens_used),
                model=model.id,
            ),
        )
