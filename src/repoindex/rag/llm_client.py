"""Async LiteLLM client wrapper with retry and API key validation.

All text-generation and embedding calls (module summaries, architecture
synthesis, query embeddings) route through this module.
LiteLLM's built-in retry is used (num_retries=3, exponential backoff).
API key presence is validated before a run begins.
"""

from __future__ import annotations

import os

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string (default openai)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return  # No key required (e.g. ollama)

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


async def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 2048,
    temperature: float = 0.0,
    num_retries: int = 3,
) -> str:
    """Call litellm.acompletion() with retry/backoff. Returns the stripped content string.

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    response = await litellm.acompletion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return (response.choices[0].message.content or "").strip()


async def embed(model: str, text: str, num_retries: int = 3) -> list[float]:
    """Call litellm.aembedding() with retry/backoff. Returns the embedding vector.

    Newlines are collapsed to spaces before embedding.

    Raises:
        ValueError: If *text* is empty after cleaning.
    """
    cleaned = " ".join(text.split("\n")).strip()
    if not cleaned:
        raise ValueError("Cannot embed empty text")
    response = await litellm.aembedding(
        model=model,
        input=[cleaned],
        num_retries=num_retries,
    )
    return response.data[0]["embedding"]
