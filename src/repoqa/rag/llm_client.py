"""LiteLLM chat completion for answer generation, plus provider key checks.

Models are named ``provider/model`` as LiteLLM expects. A bare model name
is routed to OpenAI. Retries are opt-in through ``num_retries``; the
answer generator passes 0.
"""

from __future__ import annotations

import os

import litellm

litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

# provider prefix -> env var holding its key (None: local, no key)
_KEY_ENV_VARS: dict[str, str | None] = {
    "groq": "GROQ_API_KEY",
    "huggingface": "HUGGINGFACE_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "cohere": "COHERE_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,
    "ollama_chat": None,
}

_CHARS_PER_TOKEN = 4


def provider_of(model: str) -> str:
    provider, sep, _ = model.partition("/")
    return provider.lower() if sep else "openai"


def required_env_var(model: str) -> str | None:
    return _KEY_ENV_VARS.get(provider_of(model))


def validate_api_key(model: str) -> None:
    """Fail early when *model*'s provider key is absent from the environment.

    Providers without an entry (and local ones) are not checked.

    Raises:
        EnvironmentError: Naming the variable to set.
    """
    env_var = required_env_var(model)
    if env_var and not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider_of(model)}'. "
            f"Set the {env_var} environment variable."
        )


async def acomplete(
    model: str,
    messages: list[dict],
    max_tokens: int = 4096,
    temperature: float = 0.2,
    top_p: float = 0.95,
    num_retries: int = 0,
) -> str:
    """Run one chat completion and return the first choice's text.

    An empty choice list or a null message body yields ``""``. Provider
    errors propagate unchanged.
    """
    response = await litellm.acompletion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        top_p=top_p,
        num_retries=num_retries,
    )
    choices = response.choices
    if not choices:
        return ""
    return choices[0].message.content or ""


def count_tokens(model: str, text: str) -> int:
    """Tokens in *text* per LiteLLM; about one per four characters for unknown models."""
    try:
        return litellm.token_counter(model=model, text=text)
    except Exception:
        return max(1, len(text) // _CHARS_PER_TOKEN)
