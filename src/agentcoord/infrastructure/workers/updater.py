"""
Persistence-updater worker: hands generated files to the side-effect sink.

In a generate-artifact pipeline the files come from the generator step; in
an update-store task they come from the payload.
"""

import logging
from collections.abc import Mapping
from typing import Any

from agentcoord.application.context_cache import ContextCache
from agentcoord.config import UpdaterConfig
from agentcoord.domain.exceptions import WorkerError
from agentcoord.domain.interfaces import SideEffectSinkInterface, WorkerInterface
from agentcoord.domain.models import (
    GeneratedFile,
    SideEffectDescriptor,
    WorkerTask,
    WorkerType,
)

logger = logging.getLogger(__name__)


def _files(entries: Any) -> tuple[tuple[GeneratedFile, ...], tuple[str, ...]]:
    """Split artifact entries into writable files and bare paths."""
    files = []
    listed = []
    for entry in entries or ():
        if isinstance(entry, str):
            listed.append(entry)
        elif "content" in entry:
            files.append(
                GeneratedFile(
                    path=entry["path"],
                    content=entry["content"],
                    platform=entry.get("platform", "all"),
                )
            )
        else:
            listed.append(entry["path"])
    return tuple(files), tuple(listed)


class UpdaterWorker(WorkerInterface):
    """Applies a component's files and bookkeeping through the sink."""

    def __init__(
        self,
        sink: SideEffectSinkInterface,
        cache: ContextCache | None = None,
        config: UpdaterConfig | None = None,
    ):
        """
        Args:
            sink: Where side effects are applied
            cache: Invalidated after a successful update
            config: Commit and version bump defaults
        """
        self._sink = sink
        self._cache = cache
        self._config = config or UpdaterConfig()

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        """
        Raises:
            WorkerError: If the sink reports failure
        """
        payload = task.payload
        name = payload["name"]
        commit = payload.get("autoCommit")
        if not isinstance(commit, bool):
            commit = self._config.auto_commit

        if payload.get("action") == "remove":
            result = await self._sink.remove(name, commit=commit)
            listed: tuple[str, ...] = ()
        else:
            generated = task.previous_output(WorkerType.GENERATOR)
            source = (generated or payload).get("artifacts")
            files, listed = _files(source)
            platforms = tuple(
                (generated or {}).get("platforms") or payload.get("platforms") or ()
            )
            descriptor = SideEffectDescriptor(
                component=name,
                description=payload.get("description", ""),
                files=files,
                platforms=platforms,
                commit=commit,
                version_bump=payload.get("versionBump", self._config.version_bump),
            )
            result = await self._sink.apply(descriptor)

        if not result.success:
            applied = f" (already applied: {', '.join(result.applied)})" if result.applied else ""
            raise WorkerError(
                WorkerType.PERSISTENCE_UPDATER,
                f"Update of {name} failed: {'; '.join(result.errors)}{applied}",
            )

        if self._cache is not None:
            self._cache.invalidate()
        logger.info(f"Updated store for {name}: {len(result.applied)} action(s)")
        output = {"component": name, **result.to_dict()}
        if listed:
            output["listed"] = list(listed)
        return output
