"""Process-wide coordinator state, built once and passed explicitly."""

import time
from dataclasses import dataclass, field

from agentcoord.application.context_cache import ContextCache
from agentcoord.application.coordinator import Coordinator
from agentcoord.config import CoordinatorConfig
from agentcoord.domain.interfaces import (
    TaskEventStoreInterface,
    WorkerProviderInterface,
)


@dataclass(frozen=True)
class CoordinatorState:
    """Everything a transport needs to serve requests.

    There are no module-level singletons; whoever builds this object owns
    it and hands it to the HTTP app or CLI command that uses it.
    """

    config: CoordinatorConfig
    cache: ContextCache
    workers: WorkerProviderInterface
    coordinator: Coordinator
    event_store: TaskEventStoreInterface
    started_at: float = field(default_factory=time.time)

    def uptime(self) -> float:
        """Seconds since the state was built."""
        return time.time() - self.started_at
