"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repoqa.rag.llm_client import (
    acomplete,
    count_tokens,
    provider_of,
    required_env_var,
    validate_api_key,
)


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="GROQ_API_KEY"):
        validate_api_key("groq/llama3-8b-8192")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test-key")
    validate_api_key("groq/llama3-8b-8192")  # should not raise


def test_validate_api_key_huggingface(monkeypatch):
    monkeypatch.delenv("HUGGINGFACE_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="HUGGINGFACE_API_KEY"):
        validate_api_key("huggingface/sentence-transformers/all-MiniLM-L6-v2")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/llama2")


def test_validate_api_key_bare_model_treated_as_openai(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("gpt-4o-mini")


def test_unlisted_provider_needs_no_key():
    assert required_env_var("someprovider/model") is None
    validate_api_key("someprovider/model")


@pytest.mark.parametrize(
    "model,provider",
    [
        ("groq/llama3-8b-8192", "groq"),
        ("HuggingFace/sentence-transformers/all-MiniLM-L6-v2", "huggingface"),
        ("gpt-4o", "openai"),
    ],
)
def test_provider_of(model, provider):
    assert provider_of(model) == provider


# ------------------------------------------------------------------
# acomplete()
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_acomplete_returns_content():
    response = MagicMock()
    response.choices[0].message.content = "Hello, world!"

    with patch("repoqa.rag.llm_client.litellm.acompletion", new=AsyncMock(return_value=response)) as mock:
        text = await acomplete("groq/llama3-8b-8192", [{"role": "user", "content": "Hi"}])

    assert text == "Hello, world!"
    kwargs = mock.call_args.kwargs
    assert kwargs["model"] == "groq/llama3-8b-8192"
    assert kwargs["num_retries"] == 0
    assert kwargs["top_p"] == 0.95


@pytest.mark.asyncio
async def test_acomplete_passes_sampling_parameters():
    response = MagicMock()
    response.choices[0].message.content = "ok"

    with patch("repoqa.rag.llm_client.litellm.acompletion", new=AsyncMock(return_value=response)) as mock:
        await acomplete("groq/x", [], max_tokens=128, temperature=0.7, top_p=0.5)

    kwargs = mock.call_args.kwargs
    assert (kwargs["max_tokens"], kwargs["temperature"], kwargs["top_p"]) == (128, 0.7, 0.5)


@pytest.mark.asyncio
async def test_acomplete_no_choices_returns_empty():
    response = MagicMock()
    response.choices = []
    with patch("repoqa.rag.llm_client.litellm.acompletion", new=AsyncMock(return_value=response)):
        assert await acomplete("groq/x", []) == ""


@pytest.mark.asyncio
async def test_acomplete_none_content_returns_empty():
    response = MagicMock()
    response.choices[0].message.content = None
    with patch("repoqa.rag.llm_client.litellm.acompletion", new=AsyncMock(return_value=response)):
        assert await acomplete("groq/x", []) == ""


@pytest.mark.asyncio
async def test_acomplete_propagates_errors():
    with patch(
        "repoqa.rag.llm_client.litellm.acompletion",
        new=AsyncMock(side_effect=RuntimeError("rate limited")),
    ):
        with pytest.raises(RuntimeError, match="rate limited"):
            await acomplete("groq/x", [])


# ------------------------------------------------------------------
# count_tokens()
# ------------------------------------------------------------------


def test_count_tokens_uses_litellm():
    with patch("repoqa.rag.llm_client.litellm.token_counter", return_value=7) as mock:
        assert count_tokens("groq/x", "some text") == 7
    mock.assert_called_once_with(model="groq/x", text="some text")


def test_count_tokens_fallback_on_error():
    with patch("repoqa.rag.llm_client.litellm.token_counter", side_effect=Exception("unknown model")):
        assert count_tokens("weird/model", "a" * 40) == 10


def test_count_tokens_fallback_minimum_one():
    with patch("repoqa.rag.llm_client.litellm.token_counter", side_effect=Exception("unknown model")):
        assert count_tokens("weird/model", "ab") == 1
