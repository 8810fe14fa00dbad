"""
Domain interfaces (Ports) for agent coordination.

These abstract base classes define the contracts that adapters must satisfy.
They have no external dependencies and represent the core domain boundaries.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from agentcoord.domain.models import (
        ContextSnapshot,
        SideEffectDescriptor,
        SideEffectResult,
        WorkerTask,
        WorkerType,
    )
    from agentcoord.domain.task_event import TaskEvent, TaskEventType


class WorkerInterface(ABC):
    """
    Port for a pipeline worker.

    A worker is invoked once per pipeline step. It may call the knowledge
    store, an LLM or the side-effect sink; from the executor's point of view
    the invocation is atomic and either returns an output mapping or raises.

    Note (Timeouts & Cancellation):
        The executor wraps every invocation in a timeout. Implementations must
        let asyncio.CancelledError propagate so that in-flight I/O is released.
    """

    @abstractmethod
    async def invoke(self, task: "WorkerTask") -> "Mapping[str, Any]":
        """
        Run this worker's part of a task.

        Args:
            task: Payload, context snapshot and earlier step outputs

        Returns:
            JSON-compatible output mapping

        Raises:
            WorkerError: For domain failures (any exception counts as failure)
        """
        pass


class KnowledgeStoreInterface(ABC):
    """
    Port for contextual reference data (design tokens, prior components).

    Read-mostly; the Context Cache decides when load() is called.
    """

    @abstractmethod
    async def load(self) -> "ContextSnapshot":
        """
        Build a fresh snapshot.

        Returns:
            A new immutable ContextSnapshot

        Raises:
            Exception: Any failure; the cache converts it to ContextUnavailable
        """
        pass


class SideEffectSinkInterface(ABC):
    """
    Port for externally visible, non-reversible actions.

    File writes, index/changelog updates, commits and version bumps. Results
    are returned explicitly; nothing is left running in the background.
    """

    @abstractmethod
    async def apply(self, descriptor: "SideEffectDescriptor") -> "SideEffectResult":
        """
        Apply the described changes.

        Args:
            descriptor: Files and bookkeeping to apply for one component

        Returns:
            SideEffectResult listing applied actions and errors
        """
        pass

    @abstractmethod
    async def remove(self, component: str, commit: bool = False) -> "SideEffectResult":
        """
        Delete a component's files and index entry.

        Args:
            component: Component name
            commit: Commit the removal

        Returns:
            SideEffectResult listing applied actions and errors
        """
        pass


class LLMClientInterface(ABC):
    """Port for a chat-completion model used by generative workers."""

    @abstractmethod
    async def complete(
        self,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """
        Send one system + user exchange and return the reply text.

        Args:
            system: System message
            prompt: User message
            temperature: Sampling temperature
            max_tokens: Optional completion budget

        Returns:
            Reply content (may be empty)
        """
        pass


class TaskEventStoreInterface(ABC):
    """Port for task lifecycle event persistence."""

    @abstractmethod
    def store_event(self, event: "TaskEvent") -> str:
        """Store an event, returning its event_id."""
        pass

    @abstractmethod
    def get_events(
        self,
        task_id: str,
        event_type: "TaskEventType | None" = None,
    ) -> list["TaskEvent"]:
        """Events for one task, oldest first, optionally filtered by type."""
        pass


class WorkerProviderInterface(ABC):
    """
    Port for looking up worker instances by type.

    Implementations construct each worker at most once and hand out the
    same instance until reset().
    """

    @abstractmethod
    def get(self, worker_type: "WorkerType | str") -> WorkerInterface:
        """
        Return the worker for worker_type, constructing it on first use.

        Raises:
            UnknownWorkerType: If worker_type names no known worker
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Forget all constructed workers."""
        pass

    @abstractmethod
    def active_types(self) -> tuple["WorkerType", ...]:
        """Worker types constructed so far, in construction order."""
        pass
