"""Provider/runtime configuration for the LLM layer.

Architectural role:
    Centralizes model/provider selection and credential lookup for
    `clai.llm.client.LLMClient.from_env`.

Provider scope:
    Only OpenAI-compatible chat-completion endpoints are listed, because
    structured summaries rely on function calling in the OpenAI wire format.

Model selection:
    `MODEL_NAME` wins when set; otherwise each provider entry carries its own
    `default_model`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are
    resolved at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; `LLMClient.from_env` turns it
    into an `LLMError`.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Primary model routing controls.
PROVIDER = os.getenv("PROVIDER", "openai").strip().lower()
MODEL_NAME = os.getenv("MODEL_NAME", "").strip() or None
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))

# Rough prompt budget; content beyond it is trimmed before the model call.
PROMPT_TOKEN_BUDGET = int(os.getenv("PROMPT_TOKEN_BUDGET", "12000"))
CHARS_PER_TOKEN_ESTIMATE = 4

KEY_DIR = os.getenv("KEY_DIR", "config")

# OpenAI-compatible chat-completion endpoints.
# `key_env` names the environment variable checked before `<KEY_DIR>/<provider>.key`.
PROVIDERS = {

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_env": None,
        "default_model": "local-model",
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_env": "OPENAI_API_KEY",
        "default_model": "gpt-3.5-turbo",
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_env": "GROQ_API_KEY",
        "default_model": "llama-3.1-8b-instant",
    },

    "together": {
        "url": "https://api.together.xyz/v1/chat/completions",
        "key_env": "TOGETHER_API_KEY",
        "default_model": "meta-llama/Llama-3.3-70B-Instruct-Turbo",
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_env": "OPENROUTER_API_KEY",
        "default_model": "openai/gpt-4o-mini",
    },

    "mistral": {
        "url": "https://api.mistral.ai/v1/chat/completions",
        "key_env": "MISTRAL_API_KEY",
        "default_model": "mistral-small-latest",
    },

}


def load_key(provider):
    """Resolve the API key for a provider entry.

    Resolution order:
        1. The provider's `key_env` environment variable.
        2. Raw contents of `<KEY_DIR>/<provider>.key`, relative to the working
           directory.

    Returns:
        Key string, or `None` for keyless providers and missing keys.
    """
    config = PROVIDERS.get(provider) or {}
    key_env = config.get("key_env")
    if not key_env:
        return None

    env_value = os.getenv(key_env)
    if env_value:
        return env_value.strip()

    path = os.path.join(KEY_DIR, f"{provider}.key")
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def provider_requires_key(provider):
    """Return whether the provider entry names a key variable."""
    config = PROVIDERS.get(provider) or {}
    return bool(config.get("key_env"))


def model_for(provider):
    """Return `MODEL_NAME` or the provider's default model."""
    config = PROVIDERS.get(provider) or {}
    return MODEL_NAME or config.get("default_model")
