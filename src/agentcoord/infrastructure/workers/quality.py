"""
Quality-checker worker: static checks over generated files.

Runs the configured check types (unit, accessibility, visual, integration)
against file contents. Checks are deterministic; a failed check is reported
in the output, not raised.
"""

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from agentcoord.config import QualityConfig
from agentcoord.domain.exceptions import WorkerError
from agentcoord.domain.interfaces import WorkerInterface
from agentcoord.domain.models import WorkerTask, WorkerType

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}\b")

ACCESSIBILITY_MARKERS = {
    "web": ("aria-", "role="),
    "ios": ("accessibilityLabel", "accessibilityHint", ".accessibility"),
    "android": ("contentDescription", "semantics"),
}


def _check(kind: str, total: int, failures: list[str], ok: str) -> dict[str, Any]:
    return {
        "type": kind,
        "passed": not failures,
        "message": ok if not failures else f"{len(failures)} problem(s) found",
        "details": {"total": total, "passed": total - len(failures), "issues": failures},
    }


def check_unit(name: str, files: list[Mapping[str, Any]]) -> dict[str, Any]:
    """Every file has content and implementations mention the component."""
    failures = []
    for f in files:
        if not f.get("content", "").strip():
            failures.append(f"{f['path']} is empty")
        elif f.get("platform") != "all" and name not in f["content"]:
            failures.append(f"{f['path']} does not define {name}")
    return _check("unit", len(files), failures, f"All files for {name} are well-formed")


def check_accessibility(name: str, files: list[Mapping[str, Any]]) -> dict[str, Any]:
    """Each platform implementation carries that platform's accessibility hooks."""
    implementations = [f for f in files if f.get("platform") in ACCESSIBILITY_MARKERS]
    failures = [
        f"{f['path']} has no accessibility attributes"
        for f in implementations
        if not any(m in f.get("content", "") for m in ACCESSIBILITY_MARKERS[f["platform"]])
    ]
    return _check(
        "accessibility", len(implementations), failures, "All accessibility checks passed"
    )


def check_visual(name: str, files: list[Mapping[str, Any]]) -> dict[str, Any]:
    """Implementations use tokens rather than literal colors."""
    implementations = [f for f in files if f.get("platform") != "all"]
    failures = [
        f"{f['path']} hard-codes colors: {', '.join(sorted(set(colors)))}"
        for f in implementations
        if (colors := _HEX_COLOR_RE.findall(f.get("content", "")))
    ]
    return _check("visual", len(implementations), failures, "No hard-coded colors")


def check_integration(name: str, files: list[Mapping[str, Any]]) -> dict[str, Any]:
    """Documentation exists and is titled with the component name."""
    docs = [f for f in files if f.get("platform") == "all"]
    failures = []
    if not docs:
        failures.append("No documentation file")
    elif not any(f.get("content", "").lstrip().startswith(f"# {name}") for f in docs):
        failures.append(f"Documentation is not titled '# {name}'")
    return _check("integration", 1, failures, "Documentation is linked to the component")


CHECKS: dict[str, Callable[[str, list[Mapping[str, Any]]], dict[str, Any]]] = {
    "unit": check_unit,
    "accessibility": check_accessibility,
    "visual": check_visual,
    "integration": check_integration,
}


def coverage(results: list[dict[str, Any]]) -> float:
    """Passed share of all individual checks, as a percentage."""
    total = sum(r["details"]["total"] for r in results)
    if total == 0:
        return 0.0
    return round(sum(r["details"]["passed"] for r in results) / total * 100, 1)


class QualityWorker(WorkerInterface):
    """Runs the configured checks over the generator's files."""

    def __init__(self, config: QualityConfig | None = None):
        self._config = config or QualityConfig()

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        generated = task.previous_output(WorkerType.GENERATOR)
        if generated is None:
            raise WorkerError(WorkerType.QUALITY_CHECKER, "No generated files to check")

        name = generated.get("component", task.payload.get("name", ""))
        files = list(generated.get("artifacts", ()))
        results = []
        for kind in self._config.checks:
            check = CHECKS.get(kind)
            if check is None:
                logger.warning(f"Unknown quality check '{kind}' skipped")
                continue
            results.append(check(name, files))

        passed = all(r["passed"] for r in results)
        logger.info(f"Quality checks for {name}: {'passed' if passed else 'failed'}")
        return {
            "component": name,
            "passed": passed,
            "tests": results,
            "coverage": coverage(results),
        }
