"""
Mock worker for testing without an LLM or filesystem.

Returns predefined outputs in sequence. An Exception instance in the
sequence is raised instead of returned.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from agentcoord.domain.interfaces import WorkerInterface
from agentcoord.domain.models import WorkerTask


class MockWorker(WorkerInterface):
    """Returns predefined outputs for testing."""

    def __init__(
        self,
        responses: list[Mapping[str, Any] | Exception] | None = None,
        delay: float = 0.0,
        repeat_last: bool = True,
    ):
        """
        Args:
            responses: Outputs (or exceptions to raise) in call order
            delay: Seconds to sleep before answering
            repeat_last: Keep returning the last response once exhausted
        """
        self._responses = list(responses or [{}])
        self._delay = delay
        self._repeat_last = repeat_last
        self._call_count = 0
        self.tasks: list[WorkerTask] = []

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        """Return (or raise) the next predefined response."""
        self.tasks.append(task)
        index = self._call_count
        self._call_count += 1
        if self._delay:
            await asyncio.sleep(self._delay)

        if index >= len(self._responses):
            if not self._repeat_last:
                raise RuntimeError("MockWorker exhausted responses")
            index = len(self._responses) - 1

        response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        """Number of times invoke() has been called."""
        return self._call_count

    def reset(self) -> None:
        """Reset the call counter to reuse responses."""
        self._call_count = 0
        self.tasks.clear()
