"""
LLM client implementations.
"""

from agentcoord.infrastructure.llm.mock import MockLLMClient
from agentcoord.infrastructure.llm.openai_client import (
    OpenAIClient,
    OpenAIClientConfig,
    extract_code,
)

__all__ = [
    "MockLLMClient",
    "OpenAIClient",
    "OpenAIClientConfig",
    "extract_code",
]
