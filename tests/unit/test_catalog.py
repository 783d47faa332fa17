from __future__ import annotations

import pytest

from cvforge.llm.catalog import (
    AIModel,
    AIProvider,
    default_model_for,
    local_model_for_tag,
    model_from_string,
    model_to_string,
    models_for,
    provider_for,
    wire_name,
)


def test_every_model_maps_to_exactly_one_provider() -> None:
    for model in AIModel:
        owners = [provider for provider in AIProvider if model in models_for(provider)]
        assert owners == [provider_for(model)]


@pytest.mark.parametrize("model", list(AIModel))
def test_model_string_round_trip_is_idempotent(model: AIModel) -> None:
    text = model_to_string(model)
    assert model_from_string(text) is model
    assert model_to_string(model_from_string(text)) == text


def test_model_from_string_is_case_insensitive_and_defaults() -> None:
    assert model_from_string("GPT-4o-MINI") is AIModel.GPT_4O_MINI
    assert model_from_string("  deepseek-chat ") is AIModel.DEEPSEEK_CHAT
    assert model_from_string("no-such-model") is AIModel.GPT_4O
    assert model_from_string("") is AIModel.GPT_4O
    assert model_from_string(None) is AIModel.GPT_4O


def test_provider_defaults_belong_to_their_provider() -> None:
    for provider in AIProvider:
        assert provider_for(default_model_for(provider)) is provider


def test_local_models_use_ollama_tags() -> None:
    assert wire_name(AIModel.LLAMA_31_8B) == "llama3.1"
    assert local_model_for_tag("phi3:latest") is AIModel.PHI_3_MINI
    assert local_model_for_tag("Mistral:7b-instruct") is AIModel.MISTRAL_7B
    assert local_model_for_tag("qwen2:7b") is None
