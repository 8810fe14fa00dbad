"""
Filesystem knowledge store.

Reads a design system laid out as:

    <root>/VERSION                   current version, if present
    <root>/CHANGELOG.md              else the first "## [x.y.z]" heading
    <root>/tokens/<category>.json    design tokens, one file per category
    <root>/components/<Name>.md      component specifications
"""

import asyncio
import json
import logging
import re
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from agentcoord.domain.interfaces import KnowledgeStoreInterface
from agentcoord.domain.models import ComponentSummary, ContextSnapshot, freeze
from agentcoord.infrastructure.design_system import read_version

logger = logging.getLogger(__name__)

TOKEN_CATEGORIES = (
    "colors",
    "typography",
    "spacing",
    "breakpoints",
    "effects",
    "animations",
)

_SUBHEADING_RE = re.compile(r"^###\s*(.+)$", re.MULTILINE)


def extract_summary(content: str) -> str:
    """First non-empty line after the '# ' title."""
    found_title = False
    for line in content.splitlines():
        if line.startswith("# "):
            found_title = True
            continue
        if found_title and line.strip():
            return line.strip()
    return ""


def _section(content: str, heading: str) -> str:
    """Body of a '## <heading>' section, up to the next '##' heading."""
    match = re.search(
        rf"^##\s*{heading}\s*\n(.*?)(?=^##\s|\Z)",
        content,
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    )
    return match.group(1) if match else ""


def extract_variants(content: str) -> tuple[str, ...]:
    """'### ' headings inside the Variants section."""
    return tuple(m.strip() for m in _SUBHEADING_RE.findall(_section(content, r"Variants?")))


def extract_states(content: str) -> tuple[str, ...]:
    """'### ' headings inside the States section."""
    return tuple(m.strip() for m in _SUBHEADING_RE.findall(_section(content, r"States?")))


def extract_platforms(content: str) -> tuple[str, ...]:
    """Platforms a specification documents, in web/ios/android order."""
    platforms = []
    if "### Web" in content or "Svelte" in content or "React" in content:
        platforms.append("web")
    if "### iOS" in content or "SwiftUI" in content:
        platforms.append("ios")
    if "### Android" in content or "Jetpack Compose" in content:
        platforms.append("android")
    return tuple(platforms)


class FilesystemKnowledgeStore(KnowledgeStoreInterface):
    """Builds ContextSnapshots from a design system directory."""

    def __init__(self, root: Path, clock: Callable[[], float] = time.time):
        """
        Args:
            root: Design system root directory
            clock: Source of the snapshot's built_at timestamp
        """
        self.root = Path(root)
        self._clock = clock

    async def load(self) -> ContextSnapshot:
        """
        Read tokens, components and version from disk.

        Raises:
            FileNotFoundError: If the design system root does not exist
        """
        return await asyncio.to_thread(self._build)

    def _build(self) -> ContextSnapshot:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Design system not found: {self.root}")

        return ContextSnapshot(
            version=read_version(self.root),
            tokens=freeze(self._read_tokens()),
            components=freeze(self._read_components()),
            built_at=self._clock(),
        )

    def _read_tokens(self) -> dict[str, Any]:
        tokens: dict[str, Any] = {}
        tokens_dir = self.root / "tokens"
        for category in TOKEN_CATEGORIES:
            path = tokens_dir / f"{category}.json"
            try:
                tokens[category] = json.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                tokens[category] = {}
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to load tokens {path}: {e}")
                tokens[category] = {}
        return tokens

    def _read_components(self) -> dict[str, ComponentSummary]:
        components: dict[str, ComponentSummary] = {}
        components_dir = self.root / "components"
        if not components_dir.is_dir():
            logger.warning(f"No components directory under {self.root}")
            return components

        for path in sorted(components_dir.glob("*.md")):
            if path.name == "README.md":
                continue
            content = path.read_text(encoding="utf-8")
            components[path.stem] = ComponentSummary(
                name=path.stem,
                path=str(path.relative_to(self.root)),
                summary=extract_summary(content),
                variants=extract_variants(content),
                states=extract_states(content),
                platforms=extract_platforms(content),
            )
        return components
