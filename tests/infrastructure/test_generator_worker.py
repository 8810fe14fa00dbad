"""Tests for GeneratorWorker."""

import pytest

from agentcoord.config import GeneratorConfig
from agentcoord.domain.exceptions import WorkerError
from agentcoord.domain.models import TaskKind, WorkerTask, freeze
from agentcoord.infrastructure.llm.mock import MockLLMClient
from agentcoord.infrastructure.workers import prompts
from agentcoord.infrastructure.workers.generator import GeneratorWorker, component_spec

SVELTE_REPLY = 'Here it is:\n```svelte\n<span aria-label="Badge">Badge</span>\n```\nDone.'


def make_task(snapshot=None, **payload) -> WorkerTask:
    return WorkerTask(
        task_id="task-1",
        kind=TaskKind.GENERATE_ARTIFACT,
        payload=freeze({"name": "Badge", **payload}),
        snapshot=snapshot,
    )


class TestGeneratorWorker:
    """Tests for documentation and platform generation."""

    @pytest.mark.asyncio
    async def test_generates_documentation_and_platform_file(self, snapshot):
        llm = MockLLMClient(responses=["# Badge\n\nShows a status.", SVELTE_REPLY])
        worker = GeneratorWorker(llm)

        output = await worker.invoke(make_task(snapshot, platforms=["web"]))

        assert output["component"] == "Badge"
        assert output["platforms"] == ["web"]
        assert output["artifacts"] == [
            {"path": "components/Badge.md", "content": "# Badge\n\nShows a status.", "platform": "all"},
            {
                "path": "platforms/web/components/Badge.svelte",
                "content": '<span aria-label="Badge">Badge</span>',
                "platform": "web",
            },
        ]
        assert llm.call_count == 2

    @pytest.mark.asyncio
    async def test_default_platforms_from_config(self):
        llm = MockLLMClient(default="```\nBadge\n```")
        worker = GeneratorWorker(llm, GeneratorConfig(platforms=("ios", "android")))

        output = await worker.invoke(make_task())

        assert [f["path"] for f in output["artifacts"]] == [
            "components/Badge.md",
            "platforms/ios/Components/DSBadge.swift",
            "platforms/android/components/DSBadge.kt",
        ]
        assert llm.call_count == 3

    @pytest.mark.asyncio
    async def test_platform_prompt_carries_tokens_and_system(self, snapshot):
        llm = MockLLMClient(responses=["# Badge", SVELTE_REPLY])
        worker = GeneratorWorker(llm)

        await worker.invoke(make_task(snapshot, platforms=["web"]))

        system, prompt = llm.prompts[1]
        assert system == prompts.PLATFORM_SYSTEM["web"]
        assert "# DESIGN TOKENS" in prompt
        assert "#3B82F6" in prompt
        assert "# WEB REQUIREMENTS" in prompt

    @pytest.mark.asyncio
    async def test_reference_component_in_prompt(self, snapshot):
        llm = MockLLMClient(default="# Badge")
        worker = GeneratorWorker(llm)

        await worker.invoke(make_task(snapshot, platforms=["web"], basedOn="Button"))

        _, prompt = llm.prompts[0]
        assert "# REFERENCE COMPONENT" in prompt
        assert "- Summary: Triggers an action" in prompt
        assert "- Version: 1.2.0" in prompt

    @pytest.mark.asyncio
    async def test_unknown_reference_is_skipped(self, snapshot):
        llm = MockLLMClient(default="# Badge")
        worker = GeneratorWorker(llm)

        await worker.invoke(make_task(snapshot, platforms=["web"], basedOn="Missing"))

        assert "# REFERENCE COMPONENT" not in llm.prompts[0][1]

    @pytest.mark.asyncio
    async def test_failed_platform_fails_the_step(self):
        llm = MockLLMClient(responses=["# Badge", "   "])
        worker = GeneratorWorker(llm)

        with pytest.raises(WorkerError) as exc_info:
            await worker.invoke(make_task(platforms=["web"]))

        assert str(exc_info.value) == (
            "Generation failed for Badge: web: LLM returned an empty reply"
        )

    @pytest.mark.asyncio
    async def test_llm_exception_becomes_worker_error(self):
        worker = GeneratorWorker(MockLLMClient())

        with pytest.raises(WorkerError, match="exhausted responses"):
            await worker.invoke(make_task(platforms=["web"]))


class TestComponentSpec:
    """Tests for the prompt summary of a payload."""

    def test_defaults(self):
        assert dict(component_spec({"name": "Badge"})) == {
            "Name": "Badge",
            "Type": "component",
            "Description": "",
            "Variants": "default",
            "Features": "standard",
        }

    def test_lists_are_joined(self):
        spec = dict(component_spec({"name": "Badge", "variants": ("info", "error")}))

        assert spec["Variants"] == "info, error"
