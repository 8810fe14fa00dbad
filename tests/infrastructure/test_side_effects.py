"""Tests for the filesystem side-effect sink and its text helpers."""

import pytest

from agentcoord.domain.models import GeneratedFile, SideEffectDescriptor
from agentcoord.infrastructure.persistence.side_effects import (
    FilesystemSideEffectSink,
    add_changelog_entry,
    add_index_entry,
    bump_version,
    commit_message,
    remove_index_entry,
)

INDEX = (
    "# Index\n\n"
    "## Components\n\n"
    "- [Button](./components/Button.md) - Triggers an action\n"
    "- [Card](./components/Card.md) - Groups content\n\n"
    "## Tokens\n\n"
    "- colors\n"
)


class TestBumpVersion:
    """Tests for semantic version increments."""

    @pytest.mark.parametrize(
        "bump,expected",
        [("major", "2.0.0"), ("minor", "1.5.0"), ("patch", "1.4.4")],
    )
    def test_bumps(self, bump, expected):
        assert bump_version("1.4.3", bump) == expected

    def test_rejects_non_semver(self):
        with pytest.raises(ValueError, match="Not a semantic version"):
            bump_version("1.4", "minor")

    def test_rejects_unknown_bump(self):
        with pytest.raises(ValueError, match="Unknown version bump"):
            bump_version("1.4.3", "huge")


class TestIndexEntries:
    """Tests for INDEX.md edits."""

    def test_inserts_sorted_within_components_section(self):
        updated = add_index_entry(INDEX, "Badge", "Status label")

        badge = updated.index("- [Badge](./components/Badge.md) - Status label")
        assert badge < updated.index("- [Button]") < updated.index("- [Card]")
        assert updated.index("- [Card]") < updated.index("## Tokens")
        assert "- colors" in updated

    def test_replaces_existing_entry(self):
        updated = add_index_entry(INDEX, "Button", "Clickable")

        assert updated.count("- [Button]") == 1
        assert "- [Button](./components/Button.md) - Clickable" in updated

    def test_creates_section_when_missing(self):
        updated = add_index_entry("", "Badge", "")

        assert updated == "## Components\n\n- [Badge](./components/Badge.md) - New component\n"

    def test_remove_entry(self):
        updated = remove_index_entry(INDEX, "Card")

        assert "- [Card]" not in updated
        assert "- [Button]" in updated


class TestChangelogEntries:
    """Tests for CHANGELOG.md edits."""

    def test_creates_unreleased_section_above_first_release(self):
        content = "# Changelog\n\n## [1.4.0] - 2025-01-01\n\n- Button\n"

        updated = add_changelog_entry(content, "Badge", "Status label")

        assert "## [Unreleased]\n\n### Added\n- **Badge**: Status label\n" in updated
        assert updated.index("[Unreleased]") < updated.index("## [1.4.0]")
        assert updated.endswith("- Button\n")

    def test_appends_to_existing_added_list(self):
        content = "# Changelog\n\n## [Unreleased]\n\n### Added\n- **Card**: Groups content\n"

        updated = add_changelog_entry(content, "Badge", "Status label")

        assert "### Added\n- **Badge**: Status label\n- **Card**: Groups content\n" in updated

    def test_empty_changelog(self):
        updated = add_changelog_entry("", "Badge", "")

        assert updated.startswith("# Changelog\n")
        assert "- **Badge**: New component" in updated

    def test_commit_message_names_platforms(self):
        message = commit_message(
            SideEffectDescriptor(component="Badge", description="Status", platforms=("web", "ios"))
        )

        assert message.startswith("feat(badge): add Badge component")
        assert "Generated for platforms: web, ios" in message


class TestFilesystemSideEffectSink:
    """Tests for applying and removing components on disk."""

    @pytest.mark.asyncio
    async def test_apply_writes_files_and_bookkeeping(self, design_system):
        sink = FilesystemSideEffectSink(design_system)
        descriptor = SideEffectDescriptor(
            component="Badge",
            description="Status label",
            files=(
                GeneratedFile("components/Badge.md", "# Badge\n"),
                GeneratedFile("platforms/web/components/Badge.svelte", "<span />", "web"),
            ),
            platforms=("web",),
            version_bump="minor",
        )

        result = await sink.apply(descriptor)

        assert result.success
        assert result.applied == (
            "Wrote components/Badge.md",
            "Wrote platforms/web/components/Badge.svelte",
            "Updated INDEX.md",
            "Updated CHANGELOG.md",
            "Bumped version to 1.5.0",
        )
        assert result.new_version == "1.5.0"
        assert (design_system / "components" / "Badge.md").read_text() == "# Badge\n"
        assert (design_system / "VERSION").read_text() == "1.5.0\n"
        assert "- [Badge]" in (design_system / "INDEX.md").read_text()
        assert "- **Badge**: Status label" in (design_system / "CHANGELOG.md").read_text()

    @pytest.mark.asyncio
    async def test_without_bump_leaves_version_alone(self, design_system):
        sink = FilesystemSideEffectSink(design_system)

        result = await sink.apply(SideEffectDescriptor(component="Badge"))

        assert result.success
        assert result.applied == ("Updated INDEX.md",)
        assert result.new_version is None
        assert not (design_system / "VERSION").exists()

    @pytest.mark.asyncio
    async def test_bump_reads_existing_version_file(self, design_system):
        (design_system / "VERSION").write_text("2.3.4\n")
        sink = FilesystemSideEffectSink(design_system)

        result = await sink.apply(SideEffectDescriptor(component="Badge", version_bump="patch"))

        assert result.new_version == "2.3.5"

    @pytest.mark.asyncio
    async def test_refuses_paths_outside_root(self, design_system):
        sink = FilesystemSideEffectSink(design_system)
        descriptor = SideEffectDescriptor(
            component="Badge",
            files=(
                GeneratedFile("components/Badge.md", "# Badge\n"),
                GeneratedFile("../escape.txt", "nope"),
            ),
        )

        result = await sink.apply(descriptor)

        assert not result.success
        assert result.applied == ("Wrote components/Badge.md",)
        assert "Refusing to write outside" in result.errors[0]
        assert not (design_system.parent / "escape.txt").exists()
        assert not (design_system / "INDEX.md").exists()

    @pytest.mark.asyncio
    async def test_missing_git_reports_partial_application(self, design_system):
        sink = FilesystemSideEffectSink(design_system, git="agentcoord-no-such-git")

        result = await sink.apply(SideEffectDescriptor(component="Badge", commit=True))

        assert not result.success
        assert result.applied == ("Updated INDEX.md",)
        assert result.errors[0].startswith("git not available")

    @pytest.mark.asyncio
    async def test_remove_deletes_files_and_index_entry(self, design_system):
        (design_system / "INDEX.md").write_text(INDEX)
        sink = FilesystemSideEffectSink(design_system)

        result = await sink.remove("Button")

        assert result.success
        assert result.applied == ("Removed components/Button.md", "Updated INDEX.md")
        assert not (design_system / "components" / "Button.md").exists()
        assert "- [Button]" not in (design_system / "INDEX.md").read_text()

    @pytest.mark.asyncio
    async def test_remove_unknown_component_is_a_no_op(self, design_system):
        sink = FilesystemSideEffectSink(design_system)

        result = await sink.remove("Ghost")

        assert result.success
        assert result.applied == ()
