"""Tests for Coordinator: execution, metrics, events, queue, admission and cancellation."""

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from agentcoord.application.coordinator import TASK_COMPLETE, TASK_QUEUED
from agentcoord.domain.exceptions import UnknownWorkerType, ValidationError
from agentcoord.domain.interfaces import WorkerInterface
from agentcoord.domain.models import TaskRequest, TaskResult, WorkerTask, WorkerType
from agentcoord.domain.task_event import TaskEventType
from agentcoord.infrastructure.workers.mock import MockWorker

GENERATED = {
    "component": "Badge",
    "artifacts": [{"path": "Badge.svelte", "content": "<span />", "platform": "web"}],
}
REVIEWED = {"score": 95, "issues": []}


def badge_request(name: str = "Badge", **payload: Any) -> TaskRequest:
    return TaskRequest(
        kind="GenerateArtifact",
        requested_workers=("generator", "reviewer"),
        payload={"name": name, **payload},
    )


class OverlapWorker(WorkerInterface):
    """Tracks how many invocations overlap."""

    def __init__(self, delay: float = 0.02):
        self.active = 0
        self.peak = 0
        self._delay = delay

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self._delay)
        finally:
            self.active -= 1
        return GENERATED


class BlockingWorker(WorkerInterface):
    """Blocks inside invoke until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        self.started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return GENERATED


class TestExecute:
    """Tests for the main execute() scenarios."""

    @pytest.mark.asyncio
    async def test_generate_and_review(self, make_coordinator):
        generator = MockWorker([GENERATED])
        reviewer = MockWorker([REVIEWED])
        coordinator = make_coordinator(
            {WorkerType.GENERATOR: generator, WorkerType.REVIEWER: reviewer}
        )

        result = await coordinator.execute(badge_request())

        assert result.succeeded
        data = result.to_dict()
        assert len(data["perWorkerResults"]["generator"]["artifacts"]) == 1
        assert data["perWorkerResults"]["reviewer"]["score"] == 95
        assert data["kind"] == "generate-artifact"
        assert result.errors == ()

    @pytest.mark.asyncio
    async def test_reviewer_sees_generator_output(self, make_coordinator):
        reviewer = MockWorker([REVIEWED])
        coordinator = make_coordinator(
            {WorkerType.GENERATOR: MockWorker([GENERATED]), WorkerType.REVIEWER: reviewer}
        )

        await coordinator.execute(badge_request())

        previous = reviewer.tasks[0].previous_output(WorkerType.GENERATOR)
        assert previous["component"] == "Badge"

    @pytest.mark.asyncio
    async def test_generator_failure_stops_pipeline(self, make_coordinator):
        reviewer = MockWorker([REVIEWED])
        coordinator = make_coordinator(
            {
                WorkerType.GENERATOR: MockWorker([RuntimeError("LLM quota exceeded")]),
                WorkerType.REVIEWER: reviewer,
            }
        )

        result = await coordinator.execute(badge_request())

        assert not result.succeeded
        assert any("LLM quota exceeded" in e for e in result.errors)
        assert WorkerType.REVIEWER not in result.per_worker_results
        assert "reviewer" not in result.to_dict()["perWorkerResults"]
        assert reviewer.call_count == 0

    @pytest.mark.asyncio
    async def test_create_feature_keeps_successful_child(self, make_coordinator):
        generator = MockWorker([GENERATED, RuntimeError("generation failed")])
        reviewer = MockWorker([REVIEWED])
        coordinator = make_coordinator(
            {WorkerType.GENERATOR: generator, WorkerType.REVIEWER: reviewer}
        )

        result = await coordinator.execute(
            TaskRequest(
                kind="CreateFeature",
                requested_workers=("generator", "reviewer"),
                payload={
                    "feature": "Login",
                    "components": [{"name": "LoginForm"}, {"name": "PasswordField"}],
                },
            )
        )

        assert not result.succeeded
        first, second = result.children
        assert first.succeeded
        assert WorkerType.REVIEWER in first.per_worker_results
        assert not second.succeeded
        assert WorkerType.REVIEWER not in second.per_worker_results
        assert [t.payload["name"] for t in generator.tasks] == ["LoginForm", "PasswordField"]

    @pytest.mark.asyncio
    async def test_same_request_twice_runs_twice(self, make_coordinator):
        generator = MockWorker([GENERATED])
        reviewer = MockWorker([REVIEWED])
        coordinator = make_coordinator(
            {WorkerType.GENERATOR: generator, WorkerType.REVIEWER: reviewer}
        )
        request = badge_request()

        first = await coordinator.execute(request)
        second = await coordinator.execute(request)

        assert first.succeeded and second.succeeded
        assert first.task_id != second.task_id
        assert first is not second
        assert first.steps[WorkerType.GENERATOR] is not second.steps[WorkerType.GENERATOR]
        assert generator.call_count == 2
        assert reviewer.call_count == 2
        assert generator.tasks[0].task_id != generator.tasks[1].task_id
        assert first.to_dict()["perWorkerResults"] == second.to_dict()["perWorkerResults"]
        assert coordinator.get_metrics().tasks_completed == 2

    @pytest.mark.asyncio
    async def test_explicit_task_id_is_used(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})

        result = await coordinator.execute(
            TaskRequest(kind="generate-artifact", payload={"name": "Badge"}),
            task_id="task-42",
        )

        assert result.task_id == "task-42"
        assert result.duration_ms > 0


class TestRejectedRequests:
    """Tests for requests that fail validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "request_,error",
        [
            (TaskRequest(kind="Deploy", payload={"name": "Badge"}), ValidationError),
            (
                TaskRequest(
                    kind="generate-artifact",
                    requested_workers=("translator",),
                    payload={"name": "Badge"},
                ),
                UnknownWorkerType,
            ),
            (TaskRequest(kind="generate-artifact", payload={"description": "x"}), ValidationError),
        ],
    )
    async def test_rejected_before_any_worker_runs(self, make_coordinator, request_, error):
        generator = MockWorker([GENERATED])
        coordinator = make_coordinator({WorkerType.GENERATOR: generator})

        with pytest.raises(error):
            await coordinator.execute(request_)

        assert generator.call_count == 0
        metrics = coordinator.get_metrics()
        assert metrics.tasks_completed == 0
        assert metrics.worker_usage == {}

    @pytest.mark.asyncio
    async def test_rejection_completes_lifecycle(self, make_coordinator, event_store):
        coordinator = make_coordinator({})

        with pytest.raises(ValidationError):
            await coordinator.execute(TaskRequest(kind="Deploy"), task_id="bad-1")

        states = [e.state for e in event_store.get_events("bad-1")]
        assert states == ["validating", "completed"]
        assert coordinator.get_status().active_tasks == {}


class TestMetrics:
    """Tests for aggregate metrics."""

    @pytest.mark.asyncio
    async def test_counts_and_average(self, make_coordinator):
        coordinator = make_coordinator(
            {
                WorkerType.GENERATOR: MockWorker([GENERATED, RuntimeError("boom"), GENERATED]),
                WorkerType.REVIEWER: MockWorker([REVIEWED]),
            }
        )

        results = [await coordinator.execute(badge_request()) for _ in range(3)]

        metrics = coordinator.get_metrics()
        assert metrics.tasks_completed == 3
        assert metrics.tasks_succeeded == 2
        assert metrics.tasks_failed == 1
        assert metrics.average_duration_ms == pytest.approx(
            sum(r.duration_ms for r in results) / 3
        )
        assert metrics.worker_usage == {"generator": 3, "reviewer": 2}

    @pytest.mark.asyncio
    async def test_composite_counts_as_one_task(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})

        await coordinator.execute(
            TaskRequest(
                kind="create-feature",
                payload={"feature": "Login", "components": [{"name": "A"}, {"name": "B"}]},
            )
        )

        metrics = coordinator.get_metrics()
        assert metrics.tasks_completed == 1
        assert metrics.worker_usage == {"generator": 2}

    @pytest.mark.asyncio
    async def test_metrics_are_a_copy(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})
        snapshot = coordinator.get_metrics()

        await coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": "A"}))

        assert snapshot.tasks_completed == 0
        assert coordinator.get_metrics().tasks_completed == 1


class TestEvents:
    """Tests for subscribers and the lifecycle event log."""

    @pytest.mark.asyncio
    async def test_sync_subscriber_receives_result(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})
        received: list[TaskResult] = []
        coordinator.subscribe(TASK_COMPLETE, received.append)

        result = await coordinator.execute(
            TaskRequest(kind="generate-artifact", payload={"name": "Badge"})
        )

        assert received == [result]

    @pytest.mark.asyncio
    async def test_async_subscriber_is_scheduled(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})
        received: list[str] = []

        async def on_complete(result: TaskResult) -> None:
            received.append(result.task_id)

        coordinator.subscribe(TASK_COMPLETE, on_complete)
        result = await coordinator.execute(
            TaskRequest(kind="generate-artifact", payload={"name": "Badge"})
        )
        await asyncio.sleep(0.01)

        assert received == [result.task_id]

    @pytest.mark.asyncio
    async def test_raising_subscriber_does_not_affect_task(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})
        received: list[TaskResult] = []

        def broken(_result: TaskResult) -> None:
            raise RuntimeError("subscriber bug")

        coordinator.subscribe(TASK_COMPLETE, broken)
        coordinator.subscribe(TASK_COMPLETE, received.append)

        result = await coordinator.execute(
            TaskRequest(kind="generate-artifact", payload={"name": "Badge"})
        )

        assert result.succeeded
        assert received == [result]

    def test_unknown_event_is_rejected(self, make_coordinator):
        coordinator = make_coordinator({})

        with pytest.raises(ValueError, match="Unknown event"):
            coordinator.subscribe("task-started", print)

    @pytest.mark.asyncio
    async def test_unsubscribe(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})
        received: list[TaskResult] = []
        unsubscribe = coordinator.subscribe(TASK_COMPLETE, received.append)

        unsubscribe()
        await coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": "A"}))

        assert received == []

    @pytest.mark.asyncio
    async def test_state_change_sequence(self, make_coordinator, event_store):
        coordinator = make_coordinator(
            {WorkerType.GENERATOR: MockWorker([GENERATED]), WorkerType.REVIEWER: MockWorker([REVIEWED])}
        )

        await coordinator.execute(badge_request(), task_id="t-1")

        events = event_store.get_events("t-1")
        states = [
            (e.state, e.step_index)
            for e in events
            if e.event_type == TaskEventType.STATE_CHANGE
        ]
        assert states == [
            ("validating", None),
            ("executing", 0),
            ("executing", 1),
            ("aggregating", None),
            ("completed", None),
        ]
        assert events[-1].event_type == TaskEventType.TASK_COMPLETE
        assert events[-1].verdict == "PASS"
        passes = event_store.get_events("t-1", TaskEventType.STEP_PASS)
        assert [e.worker for e in passes] == ["generator", "reviewer"]


class TestQueue:
    """Tests for queue() and drain_queue()."""

    @pytest.mark.asyncio
    async def test_drain_runs_in_arrival_order(self, make_coordinator):
        generator = MockWorker([GENERATED])
        coordinator = make_coordinator({WorkerType.GENERATOR: generator})

        ids = [
            coordinator.queue(TaskRequest(kind="generate-artifact", payload={"name": name}))
            for name in ("First", "Second", "Third")
        ]
        assert coordinator.get_status().queue_depth == 3

        results = await coordinator.drain_queue()

        assert [r.task_id for r in results] == ids
        assert [t.payload["name"] for t in generator.tasks] == ["First", "Second", "Third"]
        assert coordinator.get_status().queue_depth == 0

    @pytest.mark.asyncio
    async def test_invalid_entry_yields_failed_result(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED])})
        coordinator.queue(TaskRequest(kind="generate-artifact", payload={"name": "A"}))
        bad_id = coordinator.queue(TaskRequest(kind="deploy", payload={}))
        coordinator.queue(TaskRequest(kind="generate-artifact", payload={"name": "B"}))

        results = await coordinator.drain_queue()

        assert [r.succeeded for r in results] == [True, False, True]
        assert results[1].task_id == bad_id
        assert results[1].kind == "deploy"
        assert results[1].errors
        assert coordinator.get_metrics().tasks_completed == 2

    def test_queue_publishes_event(self, make_coordinator, event_store):
        coordinator = make_coordinator({})
        queued: list[dict[str, Any]] = []
        coordinator.subscribe(TASK_QUEUED, queued.append)

        task_id = coordinator.queue(TaskRequest(kind="generate-artifact", payload={"name": "A"}))

        assert queued == [{"taskId": task_id, "kind": "generate-artifact", "queueDepth": 1}]
        (event,) = event_store.get_events(task_id)
        assert event.event_type == TaskEventType.TASK_QUEUED


class TestAdmission:
    """Tests for the concurrent task limit."""

    @pytest.mark.asyncio
    async def test_single_slot_serializes_tasks(self, make_coordinator):
        overlap = OverlapWorker()
        coordinator = make_coordinator({WorkerType.GENERATOR: overlap}, max_concurrent_tasks=1)

        results = await asyncio.gather(
            *(
                coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": n}))
                for n in ("A", "B", "C")
            )
        )

        assert all(r.succeeded for r in results)
        assert overlap.peak == 1

    @pytest.mark.asyncio
    async def test_tasks_overlap_up_to_limit(self, make_coordinator):
        overlap = OverlapWorker()
        coordinator = make_coordinator({WorkerType.GENERATOR: overlap}, max_concurrent_tasks=3)

        await asyncio.gather(
            *(
                coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": n}))
                for n in ("A", "B", "C")
            )
        )

        assert overlap.peak == 3

    @pytest.mark.asyncio
    async def test_status_reports_waiting_tasks(self, make_coordinator):
        coordinator = make_coordinator(
            {WorkerType.GENERATOR: OverlapWorker(delay=0.1)}, max_concurrent_tasks=1
        )

        tasks = [
            asyncio.create_task(
                coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": n}))
            )
            for n in ("A", "B", "C")
        ]
        await asyncio.sleep(0.02)

        status = coordinator.get_status()
        assert status.waiting_tasks == 2
        assert len(status.active_tasks) == 3
        await asyncio.gather(*tasks)
        assert coordinator.get_status().waiting_tasks == 0


class TestCancellation:
    """Tests for cancelling running and queued tasks."""

    @pytest.mark.asyncio
    async def test_cancelled_task_is_recorded_as_failed(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED], delay=1.0)})
        received: list[TaskResult] = []
        coordinator.subscribe(TASK_COMPLETE, received.append)

        task = asyncio.create_task(
            coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": "A"}))
        )
        await asyncio.sleep(0.02)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert coordinator.get_metrics().tasks_failed == 1
        assert received[0].errors == ("Task cancelled",)
        assert coordinator.get_status().active_tasks == {}

    @pytest.mark.asyncio
    async def test_cancel_all_drops_queue_and_running(self, make_coordinator):
        coordinator = make_coordinator({WorkerType.GENERATOR: MockWorker([GENERATED], delay=1.0)})
        running = asyncio.create_task(
            coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": "A"}))
        )
        coordinator.queue(TaskRequest(kind="generate-artifact", payload={"name": "B"}))
        await asyncio.sleep(0.02)

        dropped = coordinator.cancel_all()

        assert dropped == 2
        with pytest.raises(asyncio.CancelledError):
            await running
        status = coordinator.get_status()
        assert status.queue_depth == 0
        assert status.active_worker_types == ()

    @pytest.mark.asyncio
    async def test_cancel_reaches_worker_invoke(self, make_coordinator):
        worker = BlockingWorker()
        coordinator = make_coordinator({WorkerType.GENERATOR: worker})

        task = asyncio.create_task(
            coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": "A"}))
        )
        await worker.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert worker.cancelled
        assert coordinator.get_status().active_tasks == {}

    @pytest.mark.asyncio
    async def test_cancel_all_reaches_worker_invoke(self, make_coordinator):
        worker = BlockingWorker()
        coordinator = make_coordinator({WorkerType.GENERATOR: worker})

        task = asyncio.create_task(
            coordinator.execute(TaskRequest(kind="generate-artifact", payload={"name": "A"}))
        )
        await worker.started.wait()

        assert coordinator.cancel_all() == 1
        with pytest.raises(asyncio.CancelledError):
            await task

        assert worker.cancelled
        assert coordinator.get_metrics().tasks_failed == 1
