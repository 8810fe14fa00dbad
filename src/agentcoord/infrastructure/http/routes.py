"""JSON API routes."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from agentcoord import __version__
from agentcoord.application.state import CoordinatorState
from agentcoord.domain.models import TaskKind, TaskRequest, WorkerType

router = APIRouter()


class CoordinateBody(BaseModel):
    """Wire shape of a task request; legacy keys pass through as extras."""

    model_config = ConfigDict(extra="allow")

    kind: str | None = None
    requestedWorkers: list[str] | None = None  # noqa: N815 - wire name
    payload: dict[str, Any] | None = None


class ComponentBody(BaseModel):
    """Shortcut body for /api/generate/component."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str | None = None
    description: str | None = None
    variants: list[str] | None = None
    features: list[str] | None = None
    platforms: list[str] | None = None
    basedOn: str | None = None  # noqa: N815 - wire name
    autoUpdate: bool | None = None  # noqa: N815 - wire name


GENERATE_COMPONENT_WORKERS = (
    WorkerType.GENERATOR,
    WorkerType.REVIEWER,
    WorkerType.QUALITY_CHECKER,
)


def _state(request: Request) -> CoordinatorState:
    return request.app.state.coordinator_state


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def _task_request(body: CoordinateBody) -> TaskRequest:
    return TaskRequest.from_dict(body.model_dump(exclude_none=True))


# -- Health --------------------------------------------------------------------


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "uptime": round(_state(request).uptime(), 3),
    }


# -- Tasks ---------------------------------------------------------------------


@router.post("/api/agent/coordinate")
async def coordinate(request: Request, body: CoordinateBody) -> dict[str, Any]:
    """Run a task to completion. A failed task is still a 200 response."""
    result = await _state(request).coordinator.execute(_task_request(body))
    return _ok(result.to_dict())


@router.post("/api/generate/component")
async def generate_component(request: Request, body: ComponentBody) -> dict[str, Any]:
    """Generate, review and check one component."""
    task = TaskRequest(
        kind=TaskKind.GENERATE_ARTIFACT,
        requested_workers=GENERATE_COMPONENT_WORKERS,
        payload=body.model_dump(exclude_none=True),
    )
    result = await _state(request).coordinator.execute(task)
    return _ok(result.to_dict())


@router.post("/api/tasks/queue")
async def queue_task(request: Request, body: CoordinateBody) -> dict[str, Any]:
    coordinator = _state(request).coordinator
    task_id = coordinator.queue(_task_request(body))
    return _ok({"taskId": task_id, "queueDepth": coordinator.get_status().queue_depth})


@router.post("/api/tasks/drain")
async def drain_tasks(request: Request) -> dict[str, Any]:
    results = await _state(request).coordinator.drain_queue()
    return _ok([r.to_dict() for r in results])


# -- Status --------------------------------------------------------------------


@router.get("/api/agents/status")
async def agents_status(request: Request) -> dict[str, Any]:
    return _ok(_state(request).coordinator.get_status().to_dict())


@router.get("/api/metrics")
async def metrics(request: Request) -> dict[str, Any]:
    return _ok(_state(request).coordinator.get_metrics().to_dict())


# -- Context -------------------------------------------------------------------


@router.get("/api/context/design-system")
async def design_system(request: Request) -> dict[str, Any]:
    """Current snapshot summary, rebuilding it if absent or expired."""
    cache = _state(request).cache
    snapshot = await cache.load()
    return _ok({**snapshot.summary(), "age": cache.age()})


@router.post("/api/cache/clear")
async def clear_cache(request: Request) -> dict[str, Any]:
    _state(request).cache.invalidate()
    return {"success": True, "message": "Context cache cleared"}


@router.post("/api/context/update")
async def update_context(request: Request) -> dict[str, Any]:
    snapshot = await _state(request).cache.refresh()
    return _ok(snapshot.summary())
