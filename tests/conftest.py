"""Shared pytest fixtures for agentcoord tests."""

import time
from collections.abc import Callable

import pytest

from agentcoord.application.context_cache import ContextCache
from agentcoord.application.coordinator import Coordinator
from agentcoord.application.executor import TaskExecutor
from agentcoord.config import CoordinatorConfig
from agentcoord.domain.interfaces import KnowledgeStoreInterface, SideEffectSinkInterface
from agentcoord.domain.models import (
    ComponentSummary,
    ContextSnapshot,
    SideEffectDescriptor,
    SideEffectResult,
    WorkerType,
    freeze,
)
from agentcoord.infrastructure.llm.mock import MockLLMClient
from agentcoord.infrastructure.persistence.task_events import InMemoryTaskEventStore
from agentcoord.infrastructure.registry import WorkerDependencies, WorkerRegistry
from agentcoord.infrastructure.workers.mock import MockWorker


def make_snapshot(version: str = "1.2.0", built_at: float | None = None) -> ContextSnapshot:
    """A small design system: two color tokens and one Button component."""
    return ContextSnapshot(
        version=version,
        tokens=freeze(
            {
                "colors": {"primary": {"500": "#3B82F6"}, "neutral": {"0": "#FFFFFF"}},
                "spacing": {"4": "16px"},
            }
        ),
        components=freeze(
            {
                "Button": ComponentSummary(
                    name="Button",
                    path="components/Button.md",
                    summary="Triggers an action",
                    variants=("primary", "secondary"),
                    states=("hover", "disabled"),
                    platforms=("web", "ios", "android"),
                )
            }
        ),
        built_at=time.time() if built_at is None else built_at,
    )


class StubKnowledgeStore(KnowledgeStoreInterface):
    """Counts load() calls; raises `error` when set."""

    def __init__(self, error: Exception | None = None):
        self.load_count = 0
        self.error = error

    async def load(self) -> ContextSnapshot:
        self.load_count += 1
        if self.error is not None:
            raise self.error
        return make_snapshot(version=f"1.0.{self.load_count}")


class RecordingSink(SideEffectSinkInterface):
    """Records descriptors and returns a canned result."""

    def __init__(self, result: SideEffectResult | None = None):
        self.result = result or SideEffectResult(
            success=True, applied=("Updated INDEX.md",), new_version="1.1.0"
        )
        self.applied: list[SideEffectDescriptor] = []
        self.removed: list[tuple[str, bool]] = []

    async def apply(self, descriptor: SideEffectDescriptor) -> SideEffectResult:
        self.applied.append(descriptor)
        return self.result

    async def remove(self, component: str, commit: bool = False) -> SideEffectResult:
        self.removed.append((component, commit))
        return self.result


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def snapshot() -> ContextSnapshot:
    return make_snapshot()


@pytest.fixture
def snapshot_factory() -> Callable[..., ContextSnapshot]:
    return make_snapshot


@pytest.fixture
def knowledge_store() -> StubKnowledgeStore:
    return StubKnowledgeStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(knowledge_store: StubKnowledgeStore, clock: FakeClock) -> ContextCache:
    """Context cache over the stub store with a 60 second TTL."""
    return ContextCache(knowledge_store, ttl=60.0, clock=clock)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def event_store() -> InMemoryTaskEventStore:
    return InMemoryTaskEventStore()


@pytest.fixture
def make_registry(
    cache: ContextCache, sink: RecordingSink
) -> Callable[[dict[WorkerType, MockWorker]], WorkerRegistry]:
    """Build a registry whose factories hand out the given mock workers."""

    def build(workers: dict[WorkerType, MockWorker]) -> WorkerRegistry:
        deps = WorkerDependencies(
            cache=cache, llm=MockLLMClient(default="ok"), sink=sink
        )
        factories = {
            worker_type: (lambda _deps, w=worker: w)
            for worker_type, worker in workers.items()
        }
        return WorkerRegistry(deps, factories=factories)

    return build


@pytest.fixture
def make_coordinator(
    cache: ContextCache,
    event_store: InMemoryTaskEventStore,
    make_registry: Callable[[dict[WorkerType, MockWorker]], WorkerRegistry],
) -> Callable[..., Coordinator]:
    """Build a coordinator around mock workers."""

    def build(
        workers: dict[WorkerType, MockWorker],
        step_timeout: float = 5.0,
        max_concurrent_tasks: int = 3,
        auto_apply_side_effects: bool = False,
    ) -> Coordinator:
        registry = make_registry(workers)
        executor = TaskExecutor(
            registry,
            cache,
            step_timeout=step_timeout,
            auto_apply_side_effects=auto_apply_side_effects,
        )
        return Coordinator(
            executor,
            registry,
            cache,
            event_store=event_store,
            max_concurrent_tasks=max_concurrent_tasks,
        )

    return build


@pytest.fixture
def design_system(tmp_path):
    """A design system checkout on disk with tokens, a component and a changelog."""
    root = tmp_path / "design-system"
    (root / "tokens").mkdir(parents=True)
    (root / "components").mkdir()
    (root / "tokens" / "colors.json").write_text(
        '{"primary": {"500": "#3B82F6"}, "neutral": {"0": "#FFFFFF"}}'
    )
    (root / "tokens" / "spacing.json").write_text('{"4": "16px"}')
    (root / "components" / "Button.md").write_text(
        "# Button\n\nTriggers an action.\n\n"
        "## Variants\n\n### Primary\n\n### Secondary\n\n"
        "## States\n\n### Hover\n\n### Disabled\n\n"
        "## Code Examples\n\n### Web (Svelte)\n\n### iOS (SwiftUI)\n\n"
    )
    (root / "components" / "README.md").write_text("# Components\n")
    (root / "CHANGELOG.md").write_text("# Changelog\n\n## [1.4.0] - 2025-01-01\n\n- Button\n")
    return root


@pytest.fixture
def config(design_system) -> CoordinatorConfig:
    return CoordinatorConfig(design_system_path=design_system)
