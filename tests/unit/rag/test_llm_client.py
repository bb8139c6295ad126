"""Tests for the async LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repoindex.rag.llm_client import complete, embed, provider_of, validate_api_key


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    validate_api_key("anthropic/claude-haiku-4-5-20251001")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/llama3")


def test_validate_api_key_unknown_provider_uses_prefix(monkeypatch):
    monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="TOGETHER_API_KEY"):
        validate_api_key("together/llama-3-70b")


def test_validate_api_key_bare_model_treated_as_openai(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("gpt-4o-mini")


@pytest.mark.parametrize("model,provider", [
    ("anthropic/claude-sonnet-4-20250514", "anthropic"),
    ("OpenAI/text-embedding-3-small", "openai"),
    ("gpt-4o", "openai"),
])
def test_provider_of(model, provider):
    assert provider_of(model) == provider


# ------------------------------------------------------------------
# complete()
# ------------------------------------------------------------------


def _completion(content):
    response = MagicMock()
    response.choices[0].message.content = content
    return response


@pytest.mark.asyncio
async def test_complete_returns_stripped_content():
    with patch(
        "repoindex.rag.llm_client.litellm.acompletion",
        new=AsyncMock(return_value=_completion("  Hello.\n")),
    ):
        assert await complete("openai/gpt-4o", [{"role": "user", "content": "Hi"}]) == "Hello."


@pytest.mark.asyncio
async def test_complete_none_content_is_empty_string():
    with patch(
        "repoindex.rag.llm_client.litellm.acompletion",
        new=AsyncMock(return_value=_completion(None)),
    ):
        assert await complete("openai/gpt-4o", []) == ""


@pytest.mark.asyncio
async def test_complete_passes_params_to_litellm():
    mock = AsyncMock(return_value=_completion("ok"))
    messages = [{"role": "user", "content": "Hi"}]
    with patch("repoindex.rag.llm_client.litellm.acompletion", new=mock):
        await complete("anthropic/claude-haiku-4-5-20251001", messages, max_tokens=200)
    kwargs = mock.call_args.kwargs
    assert kwargs["model"] == "anthropic/claude-haiku-4-5-20251001"
    assert kwargs["messages"] == messages
    assert kwargs["max_tokens"] == 200
    assert kwargs["num_retries"] == 3


@pytest.mark.asyncio
async def test_complete_propagates_errors():
    with patch(
        "repoindex.rag.llm_client.litellm.acompletion",
        new=AsyncMock(side_effect=RuntimeError("provider down")),
    ):
        with pytest.raises(RuntimeError, match="provider down"):
            await complete("openai/gpt-4o", [])


# ------------------------------------------------------------------
# embed()
# ------------------------------------------------------------------


def _embedding(vector):
    response = MagicMock()
    response.data = [{"embedding": vector}]
    return response


@pytest.mark.asyncio
async def test_embed_returns_vector_and_collapses_newlines():
    mock = AsyncMock(return_value=_embedding([0.1, 0.2]))
    with patch("repoindex.rag.llm_client.litellm.aembedding", new=mock):
        vector = await embed("openai/text-embedding-3-small", "src/a.ts\nDoes things\n")
    assert vector == [0.1, 0.2]
    assert mock.call_args.kwargs["input"] == ["src/a.ts Does things"]


@pytest.mark.asyncio
async def test_embed_rejects_empty_text():
    with patch("repoindex.rag.llm_client.litellm.aembedding", new=AsyncMock()) as mock:
        with pytest.raises(ValueError):
            await embed("openai/text-embedding-3-small", "\n\n")
    mock.assert_not_called()
