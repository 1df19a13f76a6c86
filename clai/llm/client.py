"""Transport client for OpenAI-compatible chat completions.

Architectural role:
    Executes HTTP requests against the configured model provider and returns
    either plain completion text or the parsed arguments of a forced function
    call. Instances are constructed explicitly and passed to callers; there is
    no process-wide client.

Model invocation flow:
    `service.summarize_*` -> `LLMClient.complete_structured(prompt, schema)` ->
    POST chat completion with a single forced tool -> JSON arguments.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with the
    configured timeout.

Failure handling model:
    Transport and protocol failures raise `LLMError` carrying a sanitized,
    provider-labeled message that never includes the API key.
"""

from __future__ import annotations

import json
from typing import Any

import requests

from clai.llm.provider_config import (
    LLM_TIMEOUT_SECONDS,
    PROVIDER,
    PROVIDERS,
    load_key,
    model_for,
    provider_requires_key,
)


class LLMError(RuntimeError):
    """Model call failed or returned an unusable response."""


def _build_sanitized_http_error(provider_name: str, err: requests.exceptions.RequestException) -> str:
    """Build provider-labeled HTTP error text without exposing raw internals.

    Args:
        provider_name: Active provider label.
        err: Request exception instance.

    Returns:
        Sanitized error string with optional status code.
    """
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


class LLMClient:
    """OpenAI-compatible chat-completion client.

    Args:
        api_key: Bearer token; `None` for keyless local servers.
        url: Chat-completions endpoint.
        model: Model name; defaults to the provider's configured model.
        provider: Label used in error messages.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str | None,
        url: str = PROVIDERS["openai"]["url"],
        model: str | None = None,
        provider: str = "openai",
        timeout: float = LLM_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.model = model or model_for(provider)
        self.provider = provider
        self.timeout = timeout

    @classmethod
    def from_env(cls, provider: str = PROVIDER, api_key: str | None = None) -> "LLMClient":
        """Build a client from `PROVIDER`, `MODEL_NAME` and key resolution.

        Raises:
            LLMError: Unknown provider, or a provider that needs a key has none.
        """
        config = PROVIDERS.get(provider)
        if config is None:
            raise LLMError(f"INVALID PROVIDER: {provider}")

        key = api_key or load_key(provider)
        if provider_requires_key(provider) and not key:
            raise LLMError(f"{config['key_env']} is not set")

        return cls(api_key=key, url=config["url"], model=model_for(provider), provider=provider)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = requests.post(
                self.url,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as err:
            raise LLMError(_build_sanitized_http_error(self.provider, err)) from err
        except ValueError as err:
            raise LLMError(f"{self.provider.upper()} RETURNED INVALID JSON") from err

        if not isinstance(data, dict) or not data.get("choices"):
            raise LLMError(f"{self.provider.upper()} RETURNED NO CHOICES")
        return data

    def complete(
        self,
        prompt: str,
        temperature: float = 0.6,
        model: str | None = None,
    ) -> str:
        """Generate a plain text completion for a single user prompt."""
        data = self._post({
            "model": model or self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        })
        message = data["choices"][0].get("message") or {}
        return (message.get("content") or "").strip()

    def complete_structured(
        self,
        prompt: str,
        response_schema: dict[str, Any],
        function_name: str = "generate_response",
        temperature: float = 0.6,
        model: str | None = None,
    ) -> dict[str, Any]:
        """Generate a completion shaped by a JSON schema via a forced function call.

        Args:
            prompt: User prompt.
            response_schema: Mapping of property name to JSON-schema fragment;
                every property is required.
            function_name: Name of the single tool the model must call.
            temperature: Sampling temperature.
            model: Optional per-call model override.

        Returns:
            Parsed function-call arguments.

        Raises:
            LLMError: Transport failure, missing call arguments, or invalid JSON.

        Compatibility:
            Reads `tool_calls` first and falls back to the legacy
            `function_call` field for servers that still answer in that shape.
        """
        parameters = {
            "type": "object",
            "properties": response_schema,
            "required": list(response_schema.keys()),
        }
        data = self._post({
            "model": model or self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "tools": [{
                "type": "function",
                "function": {"name": function_name, "parameters": parameters},
            }],
            "tool_choice": {"type": "function", "function": {"name": function_name}},
        })

        message = data["choices"][0].get("message") or {}
        arguments = None
        tool_calls = message.get("tool_calls") or []
        if tool_calls:
            arguments = (tool_calls[0].get("function") or {}).get("arguments")
        if not arguments:
            arguments = (message.get("function_call") or {}).get("arguments")
        if not arguments:
            raise LLMError("No function call arguments received")

        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as err:
            raise LLMError("Function call arguments are not valid JSON") from err
        if not isinstance(parsed, dict):
            raise LLMError("Function call arguments are not a JSON object")
        return parsed
