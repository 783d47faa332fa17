from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import anthropic
import requests
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from cvforge.errors import AdapterError, EmptyResponseError, TransportError, UpstreamError
from cvforge.llm.catalog import AIProvider
from cvforge.llm.parser import tailor_from_response
from cvforge.llm.prompts import build_prompt, system_prompt
from cvforge.types import CandidateProfile, GenerationConfig, JobPosting, ResumeOutcome

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderConfig:
    provider: AIProvider
    model: str
    base_url: str
    api_key: str
    timeout_sec: int
    generation: GenerationConfig
    max_tokens: int = 4096


class ProviderAdapter:
    """Uniform generation surface shared by every AI backend.

    Subclasses only implement :meth:`complete`, which returns the raw model text
    or raises an :class:`AdapterError` subclass.
    """

    provider: AIProvider
    serial_only = False
    supports_json_mode = True

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def model(self) -> str:
        return self.config.model

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        json_output: bool,
        generation: GenerationConfig,
    ) -> str:
        raise NotImplementedError

    async def generate_cover_letter(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        generation: GenerationConfig | None = None,
    ) -> str:
        logger.info("Generating cover letter provider=%s model=%s", self.provider.value, self.model)
        try:
            return await self.complete(
                system=system_prompt(is_resume=False),
                prompt=build_prompt(profile, job),
                json_output=False,
                generation=generation or self.config.generation,
            )
        except AdapterError as exc:
            logger.warning("Cover letter generation failed provider=%s error=%s", self.provider.value, exc)
            return self.describe_failure(exc)

    async def generate_tailored_resume(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        generation: GenerationConfig | None = None,
    ) -> ResumeOutcome:
        logger.info("Generating tailored resume provider=%s model=%s", self.provider.value, self.model)
        try:
            raw = await self.complete(
                system=system_prompt(is_resume=True),
                prompt=build_prompt(profile, job, is_resume=True),
                json_output=True,
                generation=generation or self.config.generation,
            )
        except AdapterError as exc:
            logger.warning("Resume generation failed provider=%s error=%s", self.provider.value, exc)
            return ResumeOutcome.fallback(profile, job, reason=str(exc))
        return tailor_from_response(raw, profile, job)

    def describe_failure(self, exc: AdapterError) -> str:
        return f"Error: {self.provider.value} generation failed. {exc}"


_REGISTRY: dict[AIProvider, Callable[[ProviderConfig], ProviderAdapter]] = {}


def register_adapter(*providers: AIProvider):
    def decorator(cls):
        for provider in providers:
            _REGISTRY[provider] = cls
        return cls

    return decorator


def build_adapter(config: ProviderConfig) -> ProviderAdapter:
    try:
        constructor = _REGISTRY[config.provider]
    except KeyError as exc:
        raise ValueError(f"no adapter registered for provider {config.provider.value}") from exc
    return constructor(config)


def registered_providers() -> list[AIProvider]:
    return list(_REGISTRY)


@register_adapter(AIProvider.OPENAI, AIProvider.GEMINI, AIProvider.GROQ, AIProvider.DEEPSEEK)
class OpenAICompatibleAdapter(ProviderAdapter):
    """Chat-completions backends: OpenAI itself and vendors exposing the same API."""

    _JSON_MODE = {
        AIProvider.OPENAI: True,
        AIProvider.GEMINI: False,
        AIProvider.GROQ: True,
        AIProvider.DEEPSEEK: True,
    }

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.provider = config.provider
        self.supports_json_mode = self._JSON_MODE.get(config.provider, False)
        self.client = AsyncOpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
            max_retries=0,
        )

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        json_output: bool,
        generation: GenerationConfig,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": generation.temperature,
        }
        if generation.max_tokens:
            kwargs["max_tokens"] = generation.max_tokens
        if json_output and self.supports_json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            raise UpstreamError(
                f"{self.provider.value} API error: {exc.status_code} - {exc.message}",
                provider=self.provider.value,
                status_code=exc.status_code,
                body=str(exc.body or ""),
            ) from exc
        except APIConnectionError as exc:
            raise TransportError(
                f"Could not reach {self.provider.value} at {self.config.base_url}: {exc}",
                provider=self.provider.value,
            ) from exc

        text = self._extract_chat_text(response)
        if not text.strip():
            raise EmptyResponseError(f"Empty response from {self.provider.value}.", provider=self.provider.value)
        return text

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)


@register_adapter(AIProvider.ANTHROPIC)
class AnthropicAdapter(ProviderAdapter):
    provider = AIProvider.ANTHROPIC
    supports_json_mode = False

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.client = anthropic.AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url or None,
            timeout=float(config.timeout_sec),
            max_retries=0,
        )

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        json_output: bool,
        generation: GenerationConfig,
    ) -> str:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=generation.max_tokens or self.config.max_tokens,
                temperature=generation.temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as exc:
            raise UpstreamError(
                f"anthropic API error: {exc.status_code} - {exc.message}",
                provider=self.provider.value,
                status_code=exc.status_code,
                body=str(exc.body or ""),
            ) from exc
        except anthropic.APIConnectionError as exc:
            raise TransportError(f"Could not reach anthropic: {exc}", provider=self.provider.value) from exc

        text = "".join(
            getattr(block, "text", "") for block in (message.content or []) if getattr(block, "type", "") == "text"
        )
        if not text.strip():
            raise EmptyResponseError("Empty response from anthropic.", provider=self.provider.value)
        return text


@register_adapter(AIProvider.LOCAL)
class LocalAdapter(ProviderAdapter):
    """Self-hosted Ollama-style server speaking the ``/api/generate`` protocol.

    Calls are blocking HTTP requests run in a worker thread, and the orchestrator
    never issues two of them at once.
    """

    provider = AIProvider.LOCAL
    serial_only = True

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/api/generate"

    def build_request(self, *, system: str, prompt: str, json_output: bool, generation: GenerationConfig) -> dict:
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "system": system,
            "stream": False,
            "options": {"temperature": generation.temperature},
        }
        if json_output:
            payload["format"] = "json"
        return payload

    async def complete(
        self,
        *,
        system: str,
        prompt: str,
        json_output: bool,
        generation: GenerationConfig,
    ) -> str:
        payload = self.build_request(system=system, prompt=prompt, json_output=json_output, generation=generation)
        return await asyncio.to_thread(self._post, payload)

    def _post(self, payload: dict) -> str:
        try:
            response = requests.post(self.endpoint, json=payload, timeout=self.config.timeout_sec)
        except requests.RequestException as exc:
            raise TransportError(
                f"Could not connect to local AI (Ollama) at {self.endpoint}: {exc}",
                provider=self.provider.value,
            ) from exc

        if not response.ok:
            raise UpstreamError(
                f"Local AI returned {response.status_code}: {response.text[:500]}",
                provider=self.provider.value,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise EmptyResponseError("Local AI returned a non-JSON body.", provider=self.provider.value) from exc

        text = body.get("response", "") if isinstance(body, dict) else ""
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponseError("Empty response from Ollama.", provider=self.provider.value)
        return text

    def describe_failure(self, exc: AdapterError) -> str:
        if isinstance(exc, TransportError):
            return (
                "Error: Could not connect to local AI (Ollama). "
                f"Please ensure Ollama is running at {self.endpoint}. Details: {exc}"
            )
        return f"Error: Local generation failed. {exc}"
