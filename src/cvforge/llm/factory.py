from __future__ import annotations

import logging
from collections.abc import Callable

from cvforge.config import Settings, get_settings
from cvforge.core.ports import SettingsStore
from cvforge.errors import MissingCredentialError
from cvforge.llm.catalog import AIModel, AIProvider, default_model_for, provider_for, wire_name
from cvforge.llm.providers import ProviderAdapter, ProviderConfig, build_adapter
from cvforge.types import UserSettings

logger = logging.getLogger(__name__)


class ProviderFactory:
    """Turns a provider choice plus a user's stored credentials into a live adapter."""

    def __init__(
        self,
        store: SettingsStore,
        settings: Settings | None = None,
        *,
        local_probe: Callable[[], bool] | None = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.local_probe = local_probe

    def resolve(
        self,
        provider: AIProvider | str,
        user_id: str,
        model: AIModel | str | None = None,
    ) -> ProviderAdapter:
        provider = AIProvider(provider)
        user_settings = self.store.get_user_settings(user_id)

        if provider is AIProvider.LOCAL:
            self._check_local()
            api_key = "local"
        else:
            api_key = user_settings.api_key_for(provider.value) if user_settings else ""
            if not api_key:
                raise MissingCredentialError(provider.value)

        resolved = self.resolve_model(provider, user_settings, model)
        logger.info("Resolved provider=%s model=%s user=%s", provider.value, resolved.value, user_id)

        return build_adapter(
            ProviderConfig(
                provider=provider,
                model=wire_name(resolved),
                base_url=self._base_url(provider),
                api_key=api_key,
                timeout_sec=(
                    self.settings.local_llm_timeout_sec
                    if provider is AIProvider.LOCAL
                    else self.settings.cloud_timeout_sec
                ),
                generation=self.settings.generation_config(),
                max_tokens=self.settings.anthropic_max_tokens,
            )
        )

    def resolve_model(
        self,
        provider: AIProvider,
        user_settings: UserSettings | None,
        model: AIModel | str | None = None,
    ) -> AIModel:
        """Explicit model, then the user's default, then the system default.

        A candidate belonging to another provider is skipped; when none match, the
        provider's own default model is used.
        """
        candidates = [
            model,
            user_settings.default_model if user_settings else None,
            self.settings.default_model,
        ]
        for candidate in candidates:
            if not candidate:
                continue
            parsed = _as_model(candidate)
            if parsed is None:
                logger.warning("Ignoring unknown model %r", candidate)
                continue
            if provider_for(parsed) is provider:
                return parsed
        return default_model_for(provider)

    def _check_local(self) -> None:
        if not self.settings.local_llm_enabled or not self.settings.local_llm_base_url.strip():
            raise MissingCredentialError(
                AIProvider.LOCAL.value,
                "Local AI is not configured. Set LOCAL_LLM_BASE_URL and enable LOCAL_LLM_ENABLED.",
            )
        if self.local_probe is not None and not self.local_probe():
            raise MissingCredentialError(
                AIProvider.LOCAL.value,
                f"Local AI is not reachable at {self.settings.local_llm_base_url}. Ensure Ollama is running.",
            )

    def _base_url(self, provider: AIProvider) -> str:
        return {
            AIProvider.OPENAI: self.settings.openai_base_url,
            AIProvider.GEMINI: self.settings.gemini_base_url,
            AIProvider.ANTHROPIC: self.settings.anthropic_base_url,
            AIProvider.GROQ: self.settings.groq_base_url,
            AIProvider.DEEPSEEK: self.settings.deepseek_base_url,
            AIProvider.LOCAL: self.settings.local_llm_base_url,
        }[provider]


def _as_model(value: AIModel | str) -> AIModel | None:
    if isinstance(value, AIModel):
        return value
    try:
        return AIModel(value.strip().lower())
    except ValueError:
        return None
