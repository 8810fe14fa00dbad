"""
OpenAI chat client implementation.

Connects to OpenAI or any OpenAI-compatible endpoint (Ollama, vLLM) through
the async client.
"""

import re
from dataclasses import dataclass
from typing import Any, cast

from openai import AsyncOpenAI, OpenAIError

from agentcoord.domain.exceptions import WorkerError
from agentcoord.domain.interfaces import LLMClientInterface


@dataclass
class OpenAIClientConfig:
    """Configuration for OpenAIClient.

    This typed config ensures unknown fields are rejected at construction time.
    """

    model: str = "gpt-4o-mini"
    base_url: str | None = None  # None uses the OpenAI API
    api_key: str | None = None  # None reads OPENAI_API_KEY
    timeout: float = 120.0


class OpenAIClient(LLMClientInterface):
    """Sends chat completions through AsyncOpenAI."""

    config_class = OpenAIClientConfig

    def __init__(self, config: OpenAIClientConfig | None = None, **kwargs: Any):
        """
        Args:
            config: Typed configuration object (preferred)
            **kwargs: Field overrides used when config is omitted
        """
        if config is None:
            config = OpenAIClientConfig(**kwargs)

        self._config = config
        self._client: AsyncOpenAI | None = None

    @property
    def model(self) -> str:
        return self._config.model

    def _get_client(self) -> AsyncOpenAI:
        # Built on first use so a missing API key only fails the call that needs it
        if self._client is None:
            try:
                self._client = AsyncOpenAI(
                    base_url=self._config.base_url,
                    api_key=self._config.api_key,
                    timeout=self._config.timeout,
                )
            except OpenAIError as e:
                raise WorkerError("llm", f"LLM client unavailable: {e}") from e
        return self._client

    async def complete(
        self,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """Send one system + user exchange and return the reply text."""
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        kwargs: dict[str, Any] = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            response = await self._get_client().chat.completions.create(
                model=self._config.model,
                messages=cast(Any, messages),
                temperature=temperature,
                **kwargs,
            )
        except OpenAIError as e:
            raise WorkerError("llm", f"LLM request failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def extract_code(content: str, language: str | None = None) -> str:
    """
    Pull the first fenced code block out of a reply.

    Args:
        content: Model reply
        language: Preferred fence language (e.g. 'svelte', 'swift')

    Returns:
        Block body, or the stripped reply if it has no fenced block
    """
    if not content or content.isspace():
        return ""

    if language:
        match = re.search(rf"```{re.escape(language)}[^\n]*\n(.*?)```", content, re.DOTALL)
        if match:
            return match.group(1).rstrip()

    match = re.search(r"```[\w+-]*\n(.*?)```", content, re.DOTALL)
    if match:
        return match.group(1).rstrip()

    return content.strip()
