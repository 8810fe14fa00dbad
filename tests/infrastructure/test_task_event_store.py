"""Tests for task event store implementations."""

from agentcoord.domain.task_event import TaskEvent, TaskEventType
from agentcoord.infrastructure.persistence.task_events import (
    FilesystemTaskEventStore,
    InMemoryTaskEventStore,
)


def make_event(
    task_id: str = "task-1",
    event_type: TaskEventType = TaskEventType.STEP_START,
    created_at: str = "2025-01-01T00:00:00Z",
    **kwargs,
) -> TaskEvent:
    """Create a test task event."""
    return TaskEvent(
        event_id=f"evt-{event_type.value}-{created_at}",
        event_type=event_type,
        task_id=task_id,
        kind="generate-artifact",
        created_at=created_at,
        **kwargs,
    )


class TestInMemoryTaskEventStore:
    """Tests for InMemoryTaskEventStore."""

    def test_store_and_retrieve_event(self):
        """Store and retrieve events."""
        store = InMemoryTaskEventStore()
        event = make_event(worker="generator", step_index=0)

        event_id = store.store_event(event)

        assert event_id == event.event_id
        assert store.get_events("task-1") == [event]

    def test_get_events_filters_by_task_id(self):
        store = InMemoryTaskEventStore()
        store.store_event(make_event(task_id="task-1"))
        store.store_event(make_event(task_id="task-2"))

        events = store.get_events("task-1")

        assert [e.task_id for e in events] == ["task-1"]

    def test_get_events_filters_by_event_type(self):
        store = InMemoryTaskEventStore()
        store.store_event(make_event(event_type=TaskEventType.STEP_START))
        store.store_event(make_event(event_type=TaskEventType.STEP_PASS, verdict="PASS"))

        events = store.get_events("task-1", event_type=TaskEventType.STEP_PASS)

        assert len(events) == 1
        assert events[0].verdict == "PASS"

    def test_events_keep_emission_order_when_timestamps_tie(self):
        """Events with the same timestamp come back in the order stored."""
        store = InMemoryTaskEventStore()
        for state in ("validating", "executing", "aggregating"):
            store.store_event(
                TaskEvent(
                    event_id=state,
                    event_type=TaskEventType.STATE_CHANGE,
                    task_id="task-1",
                    kind="generate-artifact",
                    state=state,
                    created_at="2025-01-01T00:00:00Z",
                )
            )

        assert [e.state for e in store.get_events("task-1")] == [
            "validating",
            "executing",
            "aggregating",
        ]

    def test_unknown_task_returns_empty(self):
        assert InMemoryTaskEventStore().get_events("missing") == []


class TestFilesystemTaskEventStore:
    """Tests for FilesystemTaskEventStore."""

    def test_creates_events_directory(self, tmp_path):
        FilesystemTaskEventStore(tmp_path)

        assert (tmp_path / "events").is_dir()

    def test_round_trips_every_field(self, tmp_path):
        store = FilesystemTaskEventStore(tmp_path)
        event = make_event(
            event_type=TaskEventType.STEP_FAIL,
            worker="reviewer",
            step_index=1,
            verdict="TIMEOUT",
            summary="timed out after 50 ms",
        )

        store.store_event(event)

        assert store.get_events("task-1") == [event]

    def test_one_jsonl_file_per_task(self, tmp_path):
        store = FilesystemTaskEventStore(tmp_path)
        store.store_event(make_event(task_id="task-1"))
        store.store_event(make_event(task_id="task-1", event_type=TaskEventType.STEP_PASS))
        store.store_event(make_event(task_id="task-2"))

        lines = (tmp_path / "events" / "task-1.jsonl").read_text().splitlines()

        assert len(lines) == 2
        assert (tmp_path / "events" / "task-2.jsonl").exists()

    def test_filters_by_event_type(self, tmp_path):
        store = FilesystemTaskEventStore(tmp_path)
        store.store_event(make_event(event_type=TaskEventType.STEP_START))
        store.store_event(make_event(event_type=TaskEventType.TASK_COMPLETE, verdict="FAIL"))

        events = store.get_events("task-1", TaskEventType.TASK_COMPLETE)

        assert [e.verdict for e in events] == ["FAIL"]

    def test_unsafe_task_id_stays_inside_events_dir(self, tmp_path):
        store = FilesystemTaskEventStore(tmp_path)
        store.store_event(make_event(task_id="../feature:1"))

        assert len(store.get_events("../feature:1")) == 1
        assert list((tmp_path / "events").iterdir())

    def test_events_survive_a_new_instance(self, tmp_path):
        FilesystemTaskEventStore(tmp_path).store_event(make_event())

        assert len(FilesystemTaskEventStore(tmp_path).get_events("task-1")) == 1

    def test_unknown_task_returns_empty(self, tmp_path):
        assert FilesystemTaskEventStore(tmp_path).get_events("missing") == []
