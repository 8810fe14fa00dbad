"""
Infrastructure layer for agent coordination.

Contains adapters for external concerns (LLM, knowledge store, side-effect
sink, event persistence, worker registry, HTTP).
"""

from agentcoord.infrastructure.knowledge import FilesystemKnowledgeStore
from agentcoord.infrastructure.llm import (
    MockLLMClient,
    OpenAIClient,
)
from agentcoord.infrastructure.persistence import (
    FilesystemSideEffectSink,
    FilesystemTaskEventStore,
    InMemoryTaskEventStore,
)
from agentcoord.infrastructure.registry import WorkerDependencies, WorkerRegistry

__all__ = [
    # Persistence
    "InMemoryTaskEventStore",
    "FilesystemTaskEventStore",
    "FilesystemSideEffectSink",
    # Knowledge
    "FilesystemKnowledgeStore",
    # LLM
    "OpenAIClient",
    "MockLLMClient",
    # Registry
    "WorkerRegistry",
    "WorkerDependencies",
]
