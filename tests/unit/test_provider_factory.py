from __future__ import annotations

import pytest

from cvforge.config import Settings
from cvforge.errors import MissingCredentialError
from cvforge.llm.catalog import AIModel, AIProvider
from cvforge.llm.factory import ProviderFactory
from cvforge.llm.providers import AnthropicAdapter, LocalAdapter, OpenAICompatibleAdapter
from cvforge.types import UserSettings


class FakeSettingsStore:
    def __init__(self, settings: dict[str, UserSettings] | None = None):
        self.settings = settings or {}
        self.calls: list[str] = []

    def get_user_settings(self, user_id: str) -> UserSettings | None:
        self.calls.append(user_id)
        return self.settings.get(user_id)

    def save_user_settings(self, user_id, api_keys, default_model):
        raise NotImplementedError


def _factory(user_settings: UserSettings | None = None, **overrides) -> ProviderFactory:
    store = FakeSettingsStore({"u1": user_settings} if user_settings else {})
    return ProviderFactory(store, Settings(**overrides))


@pytest.mark.parametrize(
    "provider",
    [AIProvider.OPENAI, AIProvider.GEMINI, AIProvider.ANTHROPIC, AIProvider.GROQ, AIProvider.DEEPSEEK],
)
def test_missing_key_raises_missing_credential(provider: AIProvider) -> None:
    with pytest.raises(MissingCredentialError) as exc_info:
        _factory(UserSettings(user_id="u1", api_keys={"other": "x"})).resolve(provider, "u1")

    assert exc_info.value.provider == provider.value
    assert "Please go to Settings" in str(exc_info.value)


def test_missing_settings_row_raises_missing_credential() -> None:
    with pytest.raises(MissingCredentialError):
        _factory().resolve("openai", "nobody")


def test_resolves_openai_compatible_adapter_with_key() -> None:
    adapter = _factory(UserSettings(user_id="u1", api_keys={"groq": "gsk"})).resolve("groq", "u1")

    assert isinstance(adapter, OpenAICompatibleAdapter)
    assert adapter.provider is AIProvider.GROQ
    assert adapter.model == "llama-3.3-70b-versatile"
    assert adapter.config.api_key == "gsk"
    assert adapter.config.base_url == "https://api.groq.com/openai/v1"
    assert adapter.config.timeout_sec == 100
    assert adapter.config.generation.temperature == 0.7


def test_model_precedence_explicit_then_user_then_system() -> None:
    user = UserSettings(user_id="u1", api_keys={"openai": "sk"}, default_model="gpt-4o-mini")
    factory = _factory(user, default_model="gpt-4o")

    assert factory.resolve_model(AIProvider.OPENAI, user, "gpt-4o") is AIModel.GPT_4O
    assert factory.resolve_model(AIProvider.OPENAI, user) is AIModel.GPT_4O_MINI
    assert factory.resolve_model(AIProvider.OPENAI, None) is AIModel.GPT_4O


def test_model_from_other_provider_is_skipped() -> None:
    user = UserSettings(user_id="u1", api_keys={"anthropic": "k"}, default_model="gpt-4o-mini")
    factory = _factory(user)

    adapter = factory.resolve(AIProvider.ANTHROPIC, "u1", "gemini-2.0-flash")

    assert isinstance(adapter, AnthropicAdapter)
    assert adapter.model == "claude-3-5-sonnet-latest"


def test_unknown_model_is_ignored() -> None:
    user = UserSettings(user_id="u1", api_keys={"openai": "sk"})
    assert _factory(user).resolve_model(AIProvider.OPENAI, user, "gpt-17") is AIModel.GPT_4O


def test_local_needs_no_key_and_runs_serially() -> None:
    factory = ProviderFactory(FakeSettingsStore(), Settings(), local_probe=lambda: True)

    adapter = factory.resolve(AIProvider.LOCAL, "u1", "phi-3-mini")

    assert isinstance(adapter, LocalAdapter)
    assert adapter.serial_only
    assert adapter.model == "phi3"
    assert adapter.config.timeout_sec == 600
    assert adapter.endpoint == "http://localhost:11434/api/generate"


def test_local_unreachable_raises_missing_credential() -> None:
    factory = ProviderFactory(FakeSettingsStore(), Settings(), local_probe=lambda: False)

    with pytest.raises(MissingCredentialError) as exc_info:
        factory.resolve(AIProvider.LOCAL, "u1")
    assert "not reachable" in str(exc_info.value)


def test_local_disabled_raises_missing_credential() -> None:
    with pytest.raises(MissingCredentialError):
        _factory(local_llm_enabled=False).resolve(AIProvider.LOCAL, "u1")


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ValueError):
        _factory().resolve("watson", "u1")
