"""
Mock LLM client for testing without a model.

Returns predefined responses in sequence.
"""

from agentcoord.domain.interfaces import LLMClientInterface


class MockLLMClient(LLMClientInterface):
    """Returns predefined responses for testing."""

    def __init__(self, responses: list[str] | None = None, default: str | None = None):
        """
        Args:
            responses: Response strings to return in sequence
            default: Returned once responses run out (None raises instead)
        """
        self._responses = list(responses or [])
        self._default = default
        self._call_count = 0
        self.prompts: list[tuple[str, str]] = []

    async def complete(
        self,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """Return the next predefined response."""
        self.prompts.append((system, prompt))
        index = self._call_count
        self._call_count += 1
        if index < len(self._responses):
            return self._responses[index]
        if self._default is not None:
            return self._default
        raise RuntimeError("MockLLMClient exhausted responses")

    @property
    def call_count(self) -> int:
        """Number of times complete() has been called."""
        return self._call_count

    def reset(self) -> None:
        """Reset the call counter to reuse responses."""
        self._call_count = 0
        self.prompts.clear()
