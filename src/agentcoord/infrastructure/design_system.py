"""Where component files and version markers live inside a design system checkout."""

import re
from pathlib import Path

PLATFORMS = ("web", "ios", "android")
DEFAULT_VERSION = "1.0.0"

_PLATFORM_PATHS = {
    "web": "platforms/web/components/{name}.svelte",
    "ios": "platforms/ios/Components/DS{name}.swift",
    "android": "platforms/android/components/DS{name}.kt",
}

_CHANGELOG_VERSION_RE = re.compile(r"##\s*\[(\d+\.\d+\.\d+)\]")


def documentation_path(name: str) -> str:
    return f"components/{name}.md"


def platform_path(platform: str, name: str) -> str:
    """
    Relative path of a component's implementation for one platform.

    Raises:
        KeyError: If platform is not web, ios or android
    """
    return _PLATFORM_PATHS[platform].format(name=name)


def component_files(name: str) -> tuple[str, ...]:
    """Documentation plus every platform implementation path."""
    return (documentation_path(name),) + tuple(
        platform_path(p, name) for p in PLATFORMS
    )


def read_version(root: Path) -> str:
    """
    Current design system version.

    VERSION wins (version bumps write it); otherwise the newest
    ``## [x.y.z]`` heading in CHANGELOG.md, else DEFAULT_VERSION.
    """
    version_file = root / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip() or DEFAULT_VERSION
    changelog = root / "CHANGELOG.md"
    if changelog.exists():
        match = _CHANGELOG_VERSION_RE.search(changelog.read_text(encoding="utf-8"))
        if match:
            return match.group(1)
    return DEFAULT_VERSION


def resolve_within(root: Path, relative: str) -> Path | None:
    """Absolute path of relative under root, or None if it escapes root."""
    base = root.resolve()
    path = (base / relative).resolve()
    return path if path.is_relative_to(base) else None
