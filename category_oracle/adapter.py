"""LLM adapters for the category oracle.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.

        Returns:
            Raw string response from the model (expected to be JSON).
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Configured for deterministic, non-streaming JSON-object output.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 512,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: API key. The client falls back to OPENAI_API_KEY when omitted.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        from openai import OpenAI

        client_kwargs: dict = {}
        if api_key:
            client_kwargs["api_key"] = api_key
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def generate(self, prompt: str) -> str:
        """Call the chat completion API and return the message content."""
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            top_p=1,
            max_tokens=self._max_tokens,
            response_format={"type": "json_object"},
            stream=False,
        )
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock response used for local testing. Carries the keys of every
# oracle output schema; validation projects out the ones it needs.
# ---------------------------------------------------------------------------
_MOCK_RESPONSE = {
    "isValidCategory": True,
    "validationReason": "Mock verdict: description accepted for testing purposes.",
    "description": "Mock description generated for testing purposes.",
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed valid JSON response.

    Used for local runs and CI where no LLM API is available.
    """

    def generate(self, prompt: str) -> str:
        return _MOCK_RESPONSE_JSON


def build_llm_adapter(
    adapter_name: str,
    *,
    model: str = "gpt-4o-mini",
    max_tokens: int = 512,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> BaseLLMAdapter:
    """Instantiate the adapter selected by name.

    ``mock``   -> MockLLMAdapter  (no API key required)
    ``openai`` -> OpenAILLMAdapter
    """
    normalized = adapter_name.strip().lower()
    if normalized == "mock":
        return MockLLMAdapter()
    if normalized == "openai":
        return OpenAILLMAdapter(
            model=model,
            max_tokens=max_tokens,
            api_key=api_key,
            base_url=base_url,
        )
    raise ValueError(f"Unknown LLM adapter '{adapter_name}'.")
