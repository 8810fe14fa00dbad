"""
Wiring: build a CoordinatorState from configuration.

This is the only place that picks concrete adapters. Tests and embedders
can pass their own LLM client, knowledge store, sink, event store or
worker factories.
"""

import logging

from agentcoord.application.context_cache import ContextCache
from agentcoord.application.coordinator import Coordinator
from agentcoord.application.executor import TaskExecutor
from agentcoord.application.state import CoordinatorState
from agentcoord.config import CoordinatorConfig
from agentcoord.domain.interfaces import (
    KnowledgeStoreInterface,
    LLMClientInterface,
    SideEffectSinkInterface,
    TaskEventStoreInterface,
)
from agentcoord.domain.models import WorkerType
from agentcoord.infrastructure.knowledge import FilesystemKnowledgeStore
from agentcoord.infrastructure.llm import OpenAIClient, OpenAIClientConfig
from agentcoord.infrastructure.persistence import (
    FilesystemSideEffectSink,
    FilesystemTaskEventStore,
    InMemoryTaskEventStore,
)
from agentcoord.infrastructure.registry import (
    WorkerDependencies,
    WorkerFactory,
    WorkerRegistry,
)

logger = logging.getLogger(__name__)


def build_state(
    config: CoordinatorConfig | None = None,
    *,
    llm: LLMClientInterface | None = None,
    knowledge_store: KnowledgeStoreInterface | None = None,
    sink: SideEffectSinkInterface | None = None,
    event_store: TaskEventStoreInterface | None = None,
    factories: dict[WorkerType, WorkerFactory] | None = None,
) -> CoordinatorState:
    """
    Assemble cache, registry, executor and coordinator.

    Args:
        config: Configuration (defaults to CoordinatorConfig())
        llm: Chat client (defaults to OpenAIClient from config.llm)
        knowledge_store: Snapshot source (defaults to the design system on disk)
        sink: Side-effect sink (defaults to the design system on disk)
        event_store: Event store (JSONL under config.event_dir, else in memory)
        factories: Worker factory overrides

    Returns:
        A ready CoordinatorState
    """
    config = config or CoordinatorConfig()
    root = config.design_system_path

    if llm is None:
        llm = OpenAIClient(
            OpenAIClientConfig(
                model=config.llm.model,
                base_url=config.llm.base_url,
                api_key=config.llm.api_key,
                timeout=config.llm.timeout,
            )
        )
    if knowledge_store is None:
        knowledge_store = FilesystemKnowledgeStore(root)
    if sink is None:
        sink = FilesystemSideEffectSink(root)
    if event_store is None:
        event_store = (
            FilesystemTaskEventStore(config.event_dir)
            if config.event_dir is not None
            else InMemoryTaskEventStore()
        )

    cache = ContextCache(knowledge_store, ttl=config.cache_ttl)
    registry = WorkerRegistry(
        WorkerDependencies(cache=cache, llm=llm, sink=sink, config=config),
        factories=factories,
    )
    executor = TaskExecutor(
        registry,
        cache,
        step_timeout=config.step_timeout,
        auto_apply_side_effects=config.auto_apply_side_effects,
    )
    coordinator = Coordinator(
        executor,
        registry,
        cache,
        event_store=event_store,
        max_concurrent_tasks=config.max_concurrent_tasks,
    )
    logger.debug(
        f"Coordinator state built (design system: {root}, "
        f"max concurrent tasks: {config.max_concurrent_tasks})"
    )
    return CoordinatorState(
        config=config,
        cache=cache,
        workers=registry,
        coordinator=coordinator,
        event_store=event_store,
    )
