"""
Domain exceptions for agent coordination.

These represent failures of the coordination rules, not programming errors.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentcoord.domain.models import WorkerType


class CoordinationError(Exception):
    """Base class for all coordination failures."""


class ValidationError(CoordinationError):
    """
    Raised when a task request is rejected before execution.

    Covers unknown task kinds, unknown worker identifiers and payloads
    missing the fields their task kind requires. No worker is invoked.
    """

    def __init__(self, message: str, field: str | None = None):
        """
        Args:
            message: Human-readable error message
            field: Offending request field, if known
        """
        super().__init__(message)
        self.field = field


class UnknownWorkerType(ValidationError):
    """Raised when a worker identifier does not name a known worker type."""

    def __init__(self, identifier: str, available: tuple[str, ...] = ()):
        listing = ", ".join(available) or "(none)"
        super().__init__(
            f"Unknown worker type '{identifier}'. Available workers: {listing}",
            field="requestedWorkers",
        )
        self.identifier = identifier


class ContextUnavailable(CoordinationError):
    """
    Raised when the context snapshot cannot be rebuilt.

    A stale snapshot is never served in its place, so any step that depends
    on context cannot run.
    """


class WorkerError(CoordinationError):
    """Raised by a worker when its invocation fails for a domain reason."""

    def __init__(self, worker: "WorkerType | str", message: str):
        super().__init__(message)
        self.worker = worker


class StepFailure(CoordinationError):
    """A pipeline step that did not produce an output."""

    def __init__(self, worker: "WorkerType", message: str, timed_out: bool = False):
        """
        Args:
            worker: The worker whose step failed
            message: Failure description (exception text or timeout notice)
            timed_out: True when the step exceeded its timeout budget
        """
        super().__init__(message)
        self.worker = worker
        self.timed_out = timed_out


class RequiredStepFailure(StepFailure):
    """A required step failed or timed out; the task is aborted."""


class OptionalStepFailure(StepFailure):
    """An optional step failed or timed out; recorded and skipped past."""


class ConfigurationError(CoordinationError):
    """Raised when configuration files or values are invalid or missing."""
