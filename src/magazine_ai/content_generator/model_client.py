"""Model client — completion providers plus a synthetic fallback.

The client resolves an abstract model id through the model catalogue, then
sends the messages to the provider registered for that model. When no
provider is configured, or the provider call fails, the synthetic fallback
provider answers instead; its results carry synthetic=True.

Usage:
    client = ModelClient.from_environment(registry)
    completion = await client.complete(messages, "gpt-5-mini")
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any

from src.common.config import (
    LLMSettings,
    Settings,
    get_anthropic_api_key,
    get_openai_api_key,
    has_anthropic_api_key,
    has_openai_api_key,
)
from src.common.logging import setup_logging
from src.magazine_ai.section_config.models import ModelDefinition, ModelProvider

from .models import CompletionResult, ProviderResponseError, UnknownModelError, Usage

logger = setup_logging(module_name="content_generator.model_client")

SYNTHETIC_USAGE = Usage(prompt_tokens=150, completion_tokens=300, total_tokens=450)


def sampling_parameters(model: ModelDefinition, llm_settings: LLMSettings) -> tuple[int, float]:
    """max_tokens and temperature for a model; unset values come from LLMSettings."""
    max_tokens = model.max_tokens if model.max_tokens is not None else llm_settings.max_tokens
    temperature = model.temperature if model.temperature is not None else llm_settings.temperature
    return max_tokens, temperature


class CompletionProvider(ABC):
    """A completion backend."""

    name: str = ""

    @abstractmethod
    async def complete(
        self, messages: list[dict[str, str]], model: ModelDefinition
    ) -> CompletionResult:
        """Send role-tagged messages and return the completion text."""


class OpenAIProvider(CompletionProvider):
    """OpenAI chat completions with JSON response mode."""

    name = "openai"

    def __init__(
        self,
        llm_settings: LLMSettings | None = None,
        api_key: str | None = None,
        client: Any = None,
    ):
        self.settings = llm_settings or Settings.load().llm
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            import openai

            self._client = openai.AsyncOpenAI(
                api_key=self._api_key or get_openai_api_key(),
                timeout=self.settings.request_timeout_seconds,
            )
        return self._client

    async def complete(
        self, messages: list[dict[str, str]], model: ModelDefinition
    ) -> CompletionResult:
        provider_model = model.provider_model or self.settings.default_provider_model
        client = self._get_client()
        max_tokens, temperature = sampling_parameters(model, self.settings)

        response = await client.chat.completions.create(
            model=provider_model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": self.settings.response_format},
        )

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderResponseError(f"Unexpected OpenAI response shape: {e}") from e
        if content is None:
            content = "{}"
        if not isinstance(content, str):
            raise ProviderResponseError("OpenAI response content is not text")

        usage = getattr(response, "usage", None)
        logger.info(
            "OpenAI %s response received, tokens used: %s",
            provider_model,
            getattr(usage, "total_tokens", "n/a"),
        )
        return CompletionResult(
            content=content,
            usage=Usage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            ),
            model=provider_model,
            provider=self.name,
        )


class AnthropicProvider(CompletionProvider):
    """Anthropic messages API. The system prompt is sent separately."""

    name = "anthropic"

    def __init__(
        self,
        llm_settings: LLMSettings | None = None,
        api_key: str | None = None,
        client: Any = None,
    ):
        self.settings = llm_settings or Settings.load().llm
        self._api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            import anthropic

            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key or get_anthropic_api_key(),
                timeout=self.settings.request_timeout_seconds,
            )
        return self._client

    async def complete(
        self, messages: list[dict[str, str]], model: ModelDefinition
    ) -> CompletionResult:
        provider_model = model.provider_model or self.settings.anthropic_model
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        chat = [m for m in messages if m["role"] != "system"]
        max_tokens, temperature = sampling_parameters(model, self.settings)

        response = await self._get_client().messages.create(
            model=provider_model,
            max_tokens=max_tokens,
            system=system,
            messages=chat,
            temperature=temperature,
        )

        try:
            content = response.content[0].text
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderResponseError(f"Unexpected Anthropic response shape: {e}") from e

        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "input_tokens", 0) or 0
        completion_tokens = getattr(usage, "output_tokens", 0) or 0
        return CompletionResult(
            content=content,
            usage=Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            model=provider_model,
            provider=self.name,
        )


class SyntheticFallbackProvider(CompletionProvider):
    """Deterministic stand-in used when no real provider can answer.

    Args:
        delay_seconds: Artificial latency standing in for a network call.
    """

    name = "synthetic"

    def __init__(self, delay_seconds: float = 1.0):
        self.delay_seconds = delay_seconds

    async def complete(
        self, messages: list[dict[str, str]], model: ModelDefinition
    ) -> CompletionResult:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        user_message = next((m["content"] for m in messages if m["role"] == "user"), "")
        logger.warning(
            "[synthetic] Generating fallback content for prompt: %s...",
            user_message[:100],
        )
        return CompletionResult(
            content=generate_synthetic_content(user_message),
            usage=SYNTHETIC_USAGE,
            model=model.id,
            provider=self.name,
            synthetic=True,
        )


def generate_synthetic_content(user_prompt: str) -> str:
    """Canned JSON payload chosen by keywords in the user prompt."""
    if "FeatureList" in user_prompt:
        payload: dict[str, Any] = {
            "title": "New Platform Features",
            "features": [
                {
                    "title": "AI-Powered Product Recommendations",
                    "description": "Get personalized product suggestions based on your skin type and preferences",
                    "icon": "sparkles",
                },
                {
                    "title": "Virtual Consultation Booking",
                    "description": "Book video consultations with certified beauty professionals",
                    "icon": "video",
                },
                {
                    "title": "Loyalty Rewards Program",
                    "description": "Earn points on every purchase and unlock exclusive benefits",
                    "icon": "gift",
                },
            ],
        }
    elif "SneakPeeks" in user_prompt:
        payload = {
            "title": "Coming Soon",
            "items": [
                {
                    "title": "Mobile App Launch",
                    "description": "Access Glamlink on the go with our new mobile app",
                    "releaseDate": "Q2 2025",
                },
                {
                    "title": "AI Skin Analysis Tool",
                    "description": "Advanced skin analysis using computer vision technology",
                    "releaseDate": "March 2025",
                },
            ],
        }
    elif "TipsList" in user_prompt:
        payload = {
            "title": "Pro Tips for Success",
            "tips": [
                {"title": "Optimize Your Profile", "content": "Complete all profile sections to increase visibility by 40%"},
                {"title": "Regular Content Updates", "content": "Post new content weekly to maintain engagement"},
                {"title": "Respond Quickly", "content": "Reply to inquiries within 24 hours for better conversion"},
            ],
        }
    elif "Marie's Corner" in user_prompt:
        payload = {
            "title": "The Secret to Long-Lasting Lash Extensions: Professional Tips from 15 Years in the Beauty Industry",
            "articleTitle": "Mastering the Art of Lash Longevity",
            "content": (
                "<p>After fifteen years of perfecting lash extension techniques, I've learned that the "
                "secret to longevity isn't just in the application. It's in the aftercare education "
                "you provide your clients.</p>"
            ),
            "products": [
                {"name": "Premium Lash Cleansing Foam", "category": "Aftercare",
                 "description": "Oil-free formula specifically designed for lash extensions"},
                {"name": "Silk Sleep Mask", "category": "Sleep Care",
                 "description": "Protects lashes during sleep without pressure"},
                {"name": "Spoolie Brush Set", "category": "Maintenance Tools",
                 "description": "Daily grooming tools for perfect lash alignment"},
            ],
            "tips": [
                {"number": "1", "title": "Never Sleep Face-Down",
                 "content": "Sleeping on your stomach or side can crush your lashes and cause premature shedding."},
                {"number": "2", "title": "Skip the Oil-Based Products",
                 "content": "Oil breaks down lash adhesive faster than anything else."},
                {"number": "3", "title": "Brush Daily, But Gently",
                 "content": "A clean spoolie brush through dry lashes each morning keeps them fresh and aligned."},
            ],
        }
    else:
        payload = {
            "content": (
                "This is synthetic AI-generated content. A configured provider would return "
                "content based on the prompt and section type."
            ),
            "title": "AI Generated Title",
            "description": "AI generated description content would appear here.",
        }
    return json.dumps(payload, ensure_ascii=False)


class ModelClient:
    """Resolves model ids and routes completions to a provider.

    Args:
        registry: Section registry holding the model catalogue.
        providers: Real providers keyed by ModelProvider. Models whose
            provider is missing here are answered by the fallback.
        fallback: Provider used when no real provider can answer.
        fallback_on_error: When False, provider errors propagate instead of
            being answered by the fallback.
    """

    def __init__(
        self,
        registry,
        providers: dict[ModelProvider, CompletionProvider] | None = None,
        fallback: CompletionProvider | None = None,
        fallback_on_error: bool = True,
    ):
        self.registry = registry
        self.providers = providers or {}
        self.fallback = fallback or SyntheticFallbackProvider()
        self.fallback_on_error = fallback_on_error

    @classmethod
    def from_environment(cls, registry, settings: Settings | None = None) -> ModelClient:
        """Build a client with every provider whose API key is set."""
        settings = settings or Settings.load()
        providers: dict[ModelProvider, CompletionProvider] = {}
        if has_openai_api_key():
            providers[ModelProvider.OPENAI] = OpenAIProvider(settings.llm)
        if has_anthropic_api_key():
            providers[ModelProvider.ANTHROPIC] = AnthropicProvider(settings.llm)
        if not providers:
            logger.warning("No provider API keys configured; completions will be synthetic")
        return cls(
            registry,
            providers=providers,
            fallback=SyntheticFallbackProvider(settings.generation.fallback_delay_seconds),
        )

    def resolve_model(self, model_id: str) -> ModelDefinition:
        """Model definition for an abstract id.

        Raises:
            UnknownModelError: If the id is not in the catalogue
        """
        model = self.registry.get_model_definition(model_id)
        if model is None:
            raise UnknownModelError(f"Invalid model: {model_id}")
        return model

    async def complete(
        self, messages: list[dict[str, str]], model_id: str
    ) -> CompletionResult:
        """Complete the messages with the model behind model_id.

        Args:
            messages: Role-tagged messages
            model_id: Abstract model id from the catalogue

        Returns:
            CompletionResult (synthetic=True when the fallback answered)

        Raises:
            UnknownModelError: Before any provider call, for an unknown id
        """
        model = self.resolve_model(model_id)
        provider = self.providers.get(model.provider)

        if provider is None:
            logger.warning(
                "[synthetic] No %s provider configured, using fallback for %s",
                model.provider.value,
                model_id,
            )
            return await self.fallback.complete(messages, model)

        try:
            return await provider.complete(messages, model)
        except Exception as e:
            if not self.fallback_on_error:
                raise
            logger.error("%s call failed for %s: %s", provider.name, model_id, e)
            logger.warning("[synthetic] Falling back to synthetic content for %s", model_id)
            return await self.fallback.complete(messages, model)
