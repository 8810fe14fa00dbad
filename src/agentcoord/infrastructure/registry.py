"""
Worker Registry.

Maps each WorkerType to a factory and memoizes the instance it builds.
Default factories construct the concrete workers from a shared
WorkerDependencies bundle:

    registry = WorkerRegistry(deps)
    generator = registry.get("component-generator")  # same as "generator"

Factories are synchronous, so the first get() for a type always wins.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from agentcoord.application.context_cache import ContextCache
from agentcoord.config import CoordinatorConfig
from agentcoord.domain.interfaces import (
    LLMClientInterface,
    SideEffectSinkInterface,
    WorkerInterface,
    WorkerProviderInterface,
)
from agentcoord.domain.models import WorkerType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerDependencies:
    """Collaborators shared by every worker a registry builds."""

    cache: ContextCache
    llm: LLMClientInterface
    sink: SideEffectSinkInterface
    config: CoordinatorConfig = field(default_factory=CoordinatorConfig)


WorkerFactory = Callable[[WorkerDependencies], WorkerInterface]


def _generator(deps: WorkerDependencies) -> WorkerInterface:
    from agentcoord.infrastructure.workers.generator import GeneratorWorker

    return GeneratorWorker(deps.llm, deps.config.generator)


def _reviewer(deps: WorkerDependencies) -> WorkerInterface:
    from agentcoord.infrastructure.workers.reviewer import ReviewerWorker

    return ReviewerWorker(deps.config.design_system_path, deps.llm, deps.config.reviewer)


def _quality(deps: WorkerDependencies) -> WorkerInterface:
    from agentcoord.infrastructure.workers.quality import QualityWorker

    return QualityWorker(deps.config.quality)


def _updater(deps: WorkerDependencies) -> WorkerInterface:
    from agentcoord.infrastructure.workers.updater import UpdaterWorker

    return UpdaterWorker(deps.sink, deps.cache, deps.config.updater)


DEFAULT_FACTORIES: dict[WorkerType, WorkerFactory] = {
    WorkerType.GENERATOR: _generator,
    WorkerType.REVIEWER: _reviewer,
    WorkerType.QUALITY_CHECKER: _quality,
    WorkerType.PERSISTENCE_UPDATER: _updater,
}


class WorkerRegistry(WorkerProviderInterface):
    """
    Lazily constructs and memoizes one worker per WorkerType.

    Instances live until reset(). Callers that already hold an instance keep
    using it after a reset; the next get() builds a new one.
    """

    def __init__(
        self,
        deps: WorkerDependencies,
        factories: dict[WorkerType, WorkerFactory] | None = None,
    ):
        """
        Args:
            deps: Collaborators passed to every factory
            factories: Overrides merged over DEFAULT_FACTORIES
        """
        self._deps = deps
        self._factories: dict[WorkerType, WorkerFactory] = dict(DEFAULT_FACTORIES)
        if factories:
            self._factories.update(factories)
        self._instances: dict[WorkerType, WorkerInterface] = {}

    def register(self, worker_type: WorkerType | str, factory: WorkerFactory) -> None:
        """
        Replace the factory for a worker type.

        Any memoized instance of that type is dropped.

        Args:
            worker_type: Type to register (enum member or identifier)
            factory: Callable building the worker from WorkerDependencies

        Raises:
            UnknownWorkerType: If worker_type names no known worker
        """
        key = WorkerType.parse(worker_type)
        self._factories[key] = factory
        self._instances.pop(key, None)

    def get(self, worker_type: WorkerType | str) -> WorkerInterface:
        """
        Get the worker for a type, constructing it on first use.

        Args:
            worker_type: Enum member or identifier (aliases accepted)

        Returns:
            The memoized worker instance

        Raises:
            UnknownWorkerType: If worker_type names no known worker
        """
        key = WorkerType.parse(worker_type)
        worker = self._instances.get(key)
        if worker is None:
            worker = self._factories[key](self._deps)
            self._instances[key] = worker
            logger.debug(f"Constructed worker '{key.value}' ({type(worker).__name__})")
        return worker

    def active_types(self) -> tuple[WorkerType, ...]:
        return tuple(self._instances)

    def available(self) -> list[str]:
        """Identifiers of every worker type with a factory."""
        return [w.value for w in self._factories]

    def reset(self) -> None:
        """Drop all memoized workers (useful for reconfiguration and tests)."""
        if self._instances:
            logger.info(f"Resetting {len(self._instances)} worker instance(s)")
        self._instances.clear()
