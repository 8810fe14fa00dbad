"""
Filesystem side-effect sink.

Applies a SideEffectDescriptor to a design system checkout:

1. Write the generated files
2. Add the component to INDEX.md
3. Add a changelog entry under "## [Unreleased]" / "### Added"
4. Bump the semantic version in VERSION
5. Commit with git

Steps run in order and stop at the first failure. Nothing is rolled back:
whatever was applied stays applied and is listed in the result.
"""

import asyncio
import logging
import re
from collections.abc import Callable
from pathlib import Path

from agentcoord.domain.interfaces import SideEffectSinkInterface
from agentcoord.domain.models import SideEffectDescriptor, SideEffectResult
from agentcoord.infrastructure.design_system import (
    component_files,
    documentation_path,
    read_version,
    resolve_within,
)

logger = logging.getLogger(__name__)

INDEX_HEADING = "## Components"

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


class SideEffectError(Exception):
    """One side-effect step failed."""


def bump_version(version: str, bump: str) -> str:
    """
    Increment a semantic version.

    Raises:
        ValueError: If version is not x.y.z or bump is not major/minor/patch
    """
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise ValueError(f"Not a semantic version: '{version}'")
    major, minor, patch = (int(p) for p in match.groups())
    if bump == "major":
        return f"{major + 1}.0.0"
    if bump == "minor":
        return f"{major}.{minor + 1}.0"
    if bump == "patch":
        return f"{major}.{minor}.{patch + 1}"
    raise ValueError(f"Unknown version bump '{bump}'")


def add_index_entry(content: str, name: str, description: str) -> str:
    """Insert '- [name](...) - description' into the Components section, sorted."""
    entry = f"- [{name}](./{documentation_path(name)}) - {description or 'New component'}"
    lines = content.splitlines()
    if INDEX_HEADING not in lines:
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend([INDEX_HEADING, ""])

    start = lines.index(INDEX_HEADING) + 1
    end = start
    while end < len(lines) and not lines[end].startswith("#"):
        end += 1

    section = [line for line in lines[start:end] if line.strip().startswith("-")]
    section = [line for line in section if not line.startswith(f"- [{name}]")]
    section.append(entry)
    section.sort()

    tail = lines[end:]
    rebuilt = lines[:start] + [""] + section + ([""] if tail else []) + tail
    return "\n".join(rebuilt).rstrip("\n") + "\n"


def remove_index_entry(content: str, name: str) -> str:
    return re.sub(rf"^- \[{re.escape(name)}\].*\n?", "", content, flags=re.MULTILINE)


def add_changelog_entry(content: str, name: str, description: str) -> str:
    """Add '- **name**: description' under [Unreleased] / Added."""
    entry = f"- **{name}**: {description or 'New component'}"
    if not content.strip():
        content = "# Changelog\n"

    unreleased = re.search(r"^## \[Unreleased\][^\n]*\n", content, re.MULTILINE)
    if unreleased is None:
        first_release = re.search(r"^## \[", content, re.MULTILINE)
        block = "## [Unreleased]\n\n"
        if first_release is None:
            content = content.rstrip("\n") + "\n\n" + block
        else:
            content = content[: first_release.start()] + block + content[first_release.start():]
        return add_changelog_entry(content, name, description)

    section_end = re.search(r"^## \[", content[unreleased.end():], re.MULTILINE)
    end = unreleased.end() + section_end.start() if section_end else len(content)
    section = content[unreleased.end():end]

    added = re.search(r"^### Added[^\n]*\n", section, re.MULTILINE)
    if added is None:
        section = "\n### Added\n" + entry + "\n" + section.lstrip("\n")
    else:
        section = section[: added.end()] + entry + "\n" + section[added.end():]
    if not section.endswith("\n\n") and section_end:
        section = section.rstrip("\n") + "\n\n"
    return content[: unreleased.end()] + section + content[end:]


def commit_message(descriptor: SideEffectDescriptor) -> str:
    platforms = ", ".join(descriptor.platforms) or "all"
    return (
        f"feat({descriptor.component.lower()}): add {descriptor.component} component\n\n"
        f"- {descriptor.description or 'New component'}\n"
        f"- Generated for platforms: {platforms}"
    )


class FilesystemSideEffectSink(SideEffectSinkInterface):
    """Writes component files and bookkeeping into a design system directory."""

    def __init__(self, root: Path, git: str = "git"):
        """
        Args:
            root: Design system root (also the git working tree)
            git: git executable
        """
        self.root = Path(root)
        self._git = git

    async def apply(self, descriptor: SideEffectDescriptor) -> SideEffectResult:
        applied: list[str] = []
        new_version: str | None = None
        logger.info(f"Applying side effects for {descriptor.component}")

        try:
            for generated in descriptor.files:
                await asyncio.to_thread(self._write, generated.path, generated.content)
                applied.append(f"Wrote {generated.path}")

            await asyncio.to_thread(
                self._update_text,
                "INDEX.md",
                lambda text: add_index_entry(
                    text, descriptor.component, descriptor.description
                ),
            )
            applied.append("Updated INDEX.md")

            if descriptor.version_bump:
                await asyncio.to_thread(
                    self._update_text,
                    "CHANGELOG.md",
                    lambda text: add_changelog_entry(
                        text, descriptor.component, descriptor.description
                    ),
                )
                applied.append("Updated CHANGELOG.md")

                new_version = await asyncio.to_thread(
                    self._bump_version, descriptor.version_bump
                )
                applied.append(f"Bumped version to {new_version}")

            if descriptor.commit:
                await self._run_git("add", "-A")
                await self._run_git("commit", "-m", commit_message(descriptor))
                applied.append("Committed changes to git")
        except (OSError, ValueError, SideEffectError) as e:
            logger.error(f"Side effects for {descriptor.component} failed: {e}")
            return SideEffectResult(
                success=False,
                applied=tuple(applied),
                errors=(str(e),),
                new_version=new_version,
            )

        return SideEffectResult(success=True, applied=tuple(applied), new_version=new_version)

    async def remove(self, component: str, commit: bool = False) -> SideEffectResult:
        applied: list[str] = []
        logger.info(f"Removing component {component}")
        try:
            for relative in component_files(component):
                if await asyncio.to_thread(self._unlink, relative):
                    applied.append(f"Removed {relative}")

            index = self.root / "INDEX.md"
            if index.exists():
                await asyncio.to_thread(
                    self._update_text,
                    "INDEX.md",
                    lambda text: remove_index_entry(text, component),
                )
                applied.append("Updated INDEX.md")

            if commit:
                await self._run_git("add", "-A")
                await self._run_git("commit", "-m", f"chore: remove {component} component")
                applied.append("Committed changes to git")
        except (OSError, SideEffectError) as e:
            logger.error(f"Removing {component} failed: {e}")
            return SideEffectResult(success=False, applied=tuple(applied), errors=(str(e),))

        return SideEffectResult(success=True, applied=tuple(applied))

    def _resolve(self, relative: str) -> Path:
        path = resolve_within(self.root, relative)
        if path is None:
            raise SideEffectError(f"Refusing to write outside {self.root.resolve()}: {relative}")
        return path

    def _write(self, relative: str, content: str) -> None:
        path = self._resolve(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def _unlink(self, relative: str) -> bool:
        path = self._resolve(relative)
        if not path.exists():
            return False
        path.unlink()
        return True

    def _update_text(self, relative: str, update: Callable[[str], str]) -> None:
        path = self._resolve(relative)
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(update(text), encoding="utf-8")

    def _bump_version(self, bump: str) -> str:
        new_version = bump_version(read_version(self.root), bump)
        (self.root / "VERSION").write_text(new_version + "\n", encoding="utf-8")
        logger.info(f"Version bumped to {new_version}")
        return new_version

    async def _run_git(self, *args: str) -> str:
        """Run git in the design system root and wait for it to exit."""
        try:
            process = await asyncio.create_subprocess_exec(
                self._git,
                *args,
                cwd=self.root,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SideEffectError(f"git not available: {e}") from e
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        if process.returncode != 0:
            detail = (stderr or stdout).decode(errors="replace").strip()
            raise SideEffectError(f"git {args[0]} failed: {detail}")
        return stdout.decode(errors="replace")
