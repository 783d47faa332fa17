from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AIProvider(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    GROQ = "groq"
    DEEPSEEK = "deepseek"
    LOCAL = "local"


class AIModel(str, Enum):
    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    GEMINI_20_FLASH = "gemini-2.0-flash"
    CLAUDE_35_SONNET = "claude-3-5-sonnet-latest"
    LLAMA_33_70B = "llama-3.3-70b-versatile"
    DEEPSEEK_CHAT = "deepseek-chat"
    MISTRAL_7B = "mistral-7b"
    LLAMA_31_8B = "llama-3.1-8b"
    PHI_3_MINI = "phi-3-mini"
    GPT4ALL = "gpt4all"


@dataclass(frozen=True, slots=True)
class ModelInfo:
    provider: AIProvider
    display_name: str
    wire_name: str


DEFAULT_MODEL = AIModel.GPT_4O

_CATALOG: dict[AIModel, ModelInfo] = {
    AIModel.GPT_4O: ModelInfo(AIProvider.OPENAI, "GPT-4o", "gpt-4o"),
    AIModel.GPT_4O_MINI: ModelInfo(AIProvider.OPENAI, "GPT-4o mini", "gpt-4o-mini"),
    AIModel.GEMINI_20_FLASH: ModelInfo(AIProvider.GEMINI, "Gemini 2.0 Flash", "gemini-2.0-flash"),
    AIModel.CLAUDE_35_SONNET: ModelInfo(
        AIProvider.ANTHROPIC, "Claude 3.5 Sonnet", "claude-3-5-sonnet-latest"
    ),
    AIModel.LLAMA_33_70B: ModelInfo(AIProvider.GROQ, "LLaMA 3.3 70B (Groq)", "llama-3.3-70b-versatile"),
    AIModel.DEEPSEEK_CHAT: ModelInfo(AIProvider.DEEPSEEK, "DeepSeek Chat", "deepseek-chat"),
    AIModel.MISTRAL_7B: ModelInfo(AIProvider.LOCAL, "Mistral 7B", "mistral"),
    AIModel.LLAMA_31_8B: ModelInfo(AIProvider.LOCAL, "LLaMA 3.1 8B", "llama3.1"),
    AIModel.PHI_3_MINI: ModelInfo(AIProvider.LOCAL, "Phi-3 Mini 3.8B", "phi3"),
    AIModel.GPT4ALL: ModelInfo(AIProvider.LOCAL, "GPT4All", "gpt4all"),
}

_PROVIDER_DEFAULTS: dict[AIProvider, AIModel] = {
    AIProvider.OPENAI: AIModel.GPT_4O,
    AIProvider.GEMINI: AIModel.GEMINI_20_FLASH,
    AIProvider.ANTHROPIC: AIModel.CLAUDE_35_SONNET,
    AIProvider.GROQ: AIModel.LLAMA_33_70B,
    AIProvider.DEEPSEEK: AIModel.DEEPSEEK_CHAT,
    AIProvider.LOCAL: AIModel.LLAMA_31_8B,
}


def model_to_string(model: AIModel) -> str:
    return model.value


def model_from_string(value: str | None) -> AIModel:
    """Map a stored or user-supplied model name to the catalog, defaulting to GPT-4o."""
    if not value:
        return DEFAULT_MODEL
    try:
        return AIModel(value.strip().lower())
    except ValueError:
        return DEFAULT_MODEL


def provider_for(model: AIModel) -> AIProvider:
    return _CATALOG[model].provider


def display_name(model: AIModel) -> str:
    return _CATALOG[model].display_name


def wire_name(model: AIModel) -> str:
    return _CATALOG[model].wire_name


def default_model_for(provider: AIProvider) -> AIModel:
    return _PROVIDER_DEFAULTS[provider]


def models_for(provider: AIProvider) -> list[AIModel]:
    return [model for model, info in _CATALOG.items() if info.provider is provider]


def local_model_for_tag(tag: str) -> AIModel | None:
    """Resolve an installed Ollama tag such as ``phi3:latest`` to a catalog model."""
    base_name = tag.strip().lower().split(":", 1)[0]
    for model in models_for(AIProvider.LOCAL):
        if _CATALOG[model].wire_name == base_name:
            return model
    return None
