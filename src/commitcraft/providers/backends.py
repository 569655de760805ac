"""Provider-specific streaming backends.

Every backend turns (prompt, ModelConfig) into an iterator of text
fragments and checks the cancellation token between fragments.
"""

from collections.abc import Iterator
from typing import Any, Protocol, runtime_checkable

import openai
from anthropic import Anthropic

from commitcraft.models.llm_models import ModelConfig
from commitcraft.providers.stream import CancellationToken

# Anthropic accepts temperature in [0, 1]
ANTHROPIC_MAX_TEMPERATURE = 1.0


@runtime_checkable
class StreamingBackend(Protocol):
    """Contract shared by every provider backend."""

    def stream(
        self,
        prompt: str,
        config: ModelConfig,
        token: CancellationToken,
    ) -> Iterator[str]:
        """Yield text fragments in generation order."""


class AnthropicBackend:
    """Streams from the Anthropic Messages API."""

    def __init__(self, api_key: str | None = None, client: Any | None = None) -> None:
        self._client = client or Anthropic(api_key=api_key)

    def _request_kwargs(self, prompt: str, config: ModelConfig) -> dict[str, Any]:
        params = config.parameters
        kwargs: dict[str, Any] = {
            "model": config.upstream_model,
            "max_tokens": params.max_output_tokens,
            "temperature": min(params.temperature, ANTHROPIC_MAX_TEMPERATURE),
            "messages": [{"role": "user", "content": prompt}],
        }
        if config.system_prompt:
            kwargs["system"] = config.system_prompt
        if params.top_p is not None:
            kwargs["top_p"] = params.top_p
        if params.top_k is not None:
            kwargs["top_k"] = params.top_k
        if params.stop_sequences:
            kwargs["stop_sequences"] = list(params.stop_sequences)
        return kwargs

    def stream(self, prompt: str, config: ModelConfig, token: CancellationToken) -> Iterator[str]:
        with self._client.messages.stream(**self._request_kwargs(prompt, config)) as response:
            for text in response.text_stream:
                if token.is_cancelled:
                    return
                yield text


class OpenAICompatibleBackend:
    """Streams from the OpenAI Chat Completions API or a compatible server.

    Used for "openai" itself and for "custom" / "ollama" endpoints, which
    only differ in base_url and key.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._client = client or openai.OpenAI(api_key=api_key, base_url=base_url)

    def _request_kwargs(self, prompt: str, config: ModelConfig) -> dict[str, Any]:
        params = config.parameters
        messages: list[dict[str, str]] = []
        if config.system_prompt:
            messages.append({"role": "system", "content": config.system_prompt})
        messages.append({"role": "user", "content": prompt})
        kwargs: dict[str, Any] = {
            "model": config.upstream_model,
            "messages": messages,
            "max_tokens": params.max_output_tokens,
            "temperature": params.temperature,
            "stream": True,
        }
        if params.top_p is not None:
            kwargs["top_p"] = params.top_p
        if params.stop_sequences:
            kwargs["stop"] = list(params.stop_sequences)
        # top_k has no Chat Completions equivalent
        return kwargs

    def stream(self, prompt: str, config: ModelConfig, token: CancellationToken) -> Iterator[str]:
        response = self._client.chat.completions.create(**self._request_kwargs(prompt, config))
        try:
            for chunk in response:
                if token.is_cancelled:
                    return
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        finally:
            close = getattr(response, "close", None)
            if close is not None:
                close()
