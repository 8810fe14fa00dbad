"""
Generator worker: produces component documentation and per-platform code.

Responsibilities:
- Build prompts from the payload and the context snapshot
- Call the LLM once for documentation and once per platform
- Return the generated files

Does NOT:
- Write files (the persistence-updater step does)
- Review or test what it generated
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from agentcoord.config import GeneratorConfig
from agentcoord.domain.exceptions import WorkerError
from agentcoord.domain.interfaces import LLMClientInterface, WorkerInterface
from agentcoord.domain.models import (
    ContextSnapshot,
    GeneratedFile,
    WorkerTask,
    WorkerType,
    thaw,
)
from agentcoord.infrastructure.design_system import documentation_path, platform_path
from agentcoord.infrastructure.llm.openai_client import extract_code
from agentcoord.infrastructure.workers import prompts

logger = logging.getLogger(__name__)

_FENCE_LANGUAGE = {"web": "svelte", "ios": "swift", "android": "kotlin"}


def component_spec(payload: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Key facts about the requested component, for prompts."""
    return [
        ("Name", payload["name"]),
        ("Type", payload.get("type", "component")),
        ("Description", payload.get("description", "")),
        ("Variants", ", ".join(payload.get("variants", ())) or "default"),
        ("Features", ", ".join(payload.get("features", ())) or "standard"),
    ]


class GeneratorWorker(WorkerInterface):
    """Generates documentation and platform implementations through an LLM."""

    def __init__(self, llm: LLMClientInterface, config: GeneratorConfig | None = None):
        """
        Args:
            llm: Chat client
            config: Platforms, temperature and token budget
        """
        self._llm = llm
        self._config = config or GeneratorConfig()

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        """
        Generate every file for one component.

        Returns:
            {"component", "artifacts": [{path, content, platform}], "platforms"}

        Raises:
            WorkerError: If documentation or any platform generation fails
        """
        payload = task.payload
        name = payload["name"]
        platforms = tuple(payload.get("platforms") or self._config.platforms)
        logger.info(f"Generating {name} for {', '.join(platforms)}")

        files = [
            GeneratedFile(
                path=documentation_path(name),
                content=await self._documentation(payload, task.snapshot),
                platform="all",
            )
        ]

        failures = []
        for platform in platforms:
            try:
                code = await self._platform_code(payload, platform, task.snapshot)
            except WorkerError as e:
                logger.error(f"Failed to generate {platform} code for {name}: {e}")
                failures.append(f"{platform}: {e}")
                continue
            files.append(
                GeneratedFile(
                    path=platform_path(platform, name), content=code, platform=platform
                )
            )

        if failures:
            raise WorkerError(
                WorkerType.GENERATOR,
                f"Generation failed for {name}: {'; '.join(failures)}",
            )

        return {
            "component": name,
            "artifacts": [f.to_dict() for f in files],
            "platforms": list(platforms),
        }

    async def _complete(self, system: str, prompt: str) -> str:
        try:
            reply = await self._llm.complete(
                system,
                prompt,
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
            )
        except WorkerError:
            raise
        except Exception as e:
            raise WorkerError(WorkerType.GENERATOR, str(e) or type(e).__name__) from e
        if not reply.strip():
            raise WorkerError(WorkerType.GENERATOR, "LLM returned an empty reply")
        return reply

    async def _documentation(
        self, payload: Mapping[str, Any], snapshot: ContextSnapshot | None
    ) -> str:
        platforms = ", ".join(payload.get("platforms") or self._config.platforms)
        sections = [
            ("COMPONENT", prompts.bullet_list(component_spec(payload) + [("Platforms", platforms)])),
            ("DESIGN SYSTEM", self._context_summary(snapshot)),
            ("REFERENCE COMPONENT", self._reference(payload, snapshot)),
            ("REQUIRED STRUCTURE", prompts.DOCUMENTATION_STRUCTURE),
        ]
        template = prompts.DOCUMENTATION
        return await self._complete(template.system, template.render(sections))

    async def _platform_code(
        self,
        payload: Mapping[str, Any],
        platform: str,
        snapshot: ContextSnapshot | None,
    ) -> str:
        tokens = json.dumps(thaw(snapshot.tokens), indent=2) if snapshot else "{}"
        sections = [
            ("COMPONENT", prompts.bullet_list(component_spec(payload))),
            ("DESIGN TOKENS", tokens),
            ("REQUIREMENTS", prompts.COMMON_REQUIREMENTS),
            (f"{platform.upper()} REQUIREMENTS", prompts.PLATFORM_REQUIREMENTS.get(platform, "")),
            ("REFERENCE COMPONENT", self._reference(payload, snapshot)),
        ]
        template = prompts.PLATFORM_CODE
        system = prompts.PLATFORM_SYSTEM.get(platform, template.system)
        reply = await self._complete(system, template.render(sections))
        return extract_code(reply, _FENCE_LANGUAGE.get(platform))

    def _context_summary(self, snapshot: ContextSnapshot | None) -> str:
        if snapshot is None:
            return ""
        return prompts.bullet_list(
            [
                ("Version", snapshot.version),
                ("Token categories", ", ".join(sorted(snapshot.tokens))),
                ("Existing components", ", ".join(sorted(snapshot.components)[:10]) or "none"),
            ]
        )

    def _reference(
        self, payload: Mapping[str, Any], snapshot: ContextSnapshot | None
    ) -> str:
        based_on = payload.get("basedOn")
        if not based_on or snapshot is None:
            return ""
        reference = snapshot.components.get(based_on)
        if reference is None:
            logger.warning(f"Reference component '{based_on}' not found")
            return ""
        return prompts.bullet_list(
            [
                ("Name", reference.name),
                ("Summary", reference.summary),
                ("Variants", ", ".join(reference.variants)),
                ("States", ", ".join(reference.states)),
                ("Platforms", ", ".join(reference.platforms)),
            ]
        )
