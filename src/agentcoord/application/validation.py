"""
Request validation.

Turns a raw TaskRequest into a ValidatedRequest with a TaskKind, the
requested workers that the kind's pipeline can actually run, and a payload
that satisfies the kind's JSON schema. Nothing here invokes a worker.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import jsonschema

from agentcoord.domain.exceptions import ValidationError
from agentcoord.domain.models import TaskKind, TaskRequest, WorkerType, freeze
from agentcoord.domain.pipeline import is_composite, pipeline_workers
from agentcoord.schemas import validate_payload


@dataclass(frozen=True)
class ValidatedRequest:
    """A request whose kind, workers and payload have been checked."""

    kind: TaskKind
    requested_workers: tuple[WorkerType, ...]
    payload: Mapping[str, Any]


def _runnable_workers(kind: TaskKind) -> tuple[WorkerType, ...]:
    # Composite tasks run generate-artifact pipelines for their components
    if is_composite(kind):
        return pipeline_workers(TaskKind.GENERATE_ARTIFACT)
    return pipeline_workers(kind)


def validate_request(request: TaskRequest) -> ValidatedRequest:
    """
    Check a request before anything runs.

    Args:
        request: Request as received

    Returns:
        ValidatedRequest with normalized kind and workers and a read-only payload

    Raises:
        ValidationError: Unknown kind, unknown worker identifier or a payload
            missing required fields
    """
    kind = TaskKind.parse(request.kind)

    runnable = _runnable_workers(kind)
    requested: list[WorkerType] = []
    for identifier in request.requested_workers:
        worker = WorkerType.parse(identifier)
        # Known workers that are not part of this pipeline are ignored
        if worker in runnable and worker not in requested:
            requested.append(worker)

    if not isinstance(request.payload, Mapping):
        raise ValidationError("'payload' must be a JSON object", field="payload")
    try:
        validate_payload(kind.value, request.payload)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        where = f"payload/{location}" if location else "payload"
        raise ValidationError(
            f"Invalid {kind.value} payload at {where}: {e.message}", field="payload"
        ) from e

    return ValidatedRequest(
        kind=kind,
        requested_workers=tuple(requested),
        payload=freeze(request.payload),
    )
