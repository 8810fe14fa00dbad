"""Task event store implementations."""

import json
from pathlib import Path
from typing import Any

from agentcoord.domain.interfaces import TaskEventStoreInterface
from agentcoord.domain.task_event import TaskEvent, TaskEventType


class InMemoryTaskEventStore(TaskEventStoreInterface):
    """In-memory implementation for testing and single-process servers."""

    def __init__(self) -> None:
        self._events: list[TaskEvent] = []

    def store_event(self, event: TaskEvent) -> str:
        self._events.append(event)
        return event.event_id

    def get_events(
        self,
        task_id: str,
        event_type: TaskEventType | None = None,
    ) -> list[TaskEvent]:
        # Insertion order is emission order; timestamps can tie
        return [
            e
            for e in self._events
            if e.task_id == task_id
            and (event_type is None or e.event_type == event_type)
        ]

    def __len__(self) -> int:
        return len(self._events)


class FilesystemTaskEventStore(TaskEventStoreInterface):
    """Filesystem implementation storing one JSONL file per task."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.events_dir = base_path / "events"
        self.events_dir.mkdir(parents=True, exist_ok=True)

    def _get_task_file(self, task_id: str) -> Path:
        safe_id = task_id.replace("/", "_").replace(":", "_")
        return self.events_dir / f"{safe_id}.jsonl"

    def store_event(self, event: TaskEvent) -> str:
        path = self._get_task_file(event.task_id)
        with open(path, "a") as f:
            f.write(json.dumps(self._event_to_dict(event)) + "\n")
        return event.event_id

    def get_events(
        self,
        task_id: str,
        event_type: TaskEventType | None = None,
    ) -> list[TaskEvent]:
        path = self._get_task_file(task_id)
        if not path.exists():
            return []
        events: list[TaskEvent] = []
        with open(path) as f:
            for line in f:
                if not line.strip():
                    continue
                event = self._dict_to_event(json.loads(line))
                if event.task_id != task_id:
                    continue
                if event_type and event.event_type != event_type:
                    continue
                events.append(event)
        return events

    def _event_to_dict(self, event: TaskEvent) -> dict[str, Any]:
        """Serialize event to dict."""
        return {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "task_id": event.task_id,
            "kind": event.kind,
            "state": event.state,
            "worker": event.worker,
            "step_index": event.step_index,
            "verdict": event.verdict,
            "summary": event.summary,
            "created_at": event.created_at,
        }

    def _dict_to_event(self, data: dict[str, Any]) -> TaskEvent:
        """Deserialize dict to event."""
        return TaskEvent(
            event_id=data["event_id"],
            event_type=TaskEventType(data["event_type"]),
            task_id=data["task_id"],
            kind=data["kind"],
            state=data.get("state"),
            worker=data.get("worker"),
            step_index=data.get("step_index"),
            verdict=data.get("verdict"),
            summary=data.get("summary", ""),
            created_at=data.get("created_at", ""),
        )
