"""
Persistence implementations: task event stores and the side-effect sink.
"""

from agentcoord.infrastructure.persistence.side_effects import (
    FilesystemSideEffectSink,
    SideEffectError,
)
from agentcoord.infrastructure.persistence.task_events import (
    FilesystemTaskEventStore,
    InMemoryTaskEventStore,
)

__all__ = [
    "FilesystemSideEffectSink",
    "FilesystemTaskEventStore",
    "InMemoryTaskEventStore",
    "SideEffectError",
]
