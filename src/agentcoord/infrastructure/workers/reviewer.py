"""
Reviewer worker: scores a component against design system rules.

Rule checks are deterministic (token usage, accessibility, platform
coverage, documentation sections). The LLM is only asked for free-form
suggestions, and its failure never fails the review.
"""

import asyncio
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from agentcoord.config import ReviewerConfig
from agentcoord.domain.exceptions import WorkerError
from agentcoord.domain.interfaces import LLMClientInterface, WorkerInterface
from agentcoord.domain.models import ContextSnapshot, WorkerTask, WorkerType
from agentcoord.infrastructure.design_system import PLATFORMS, resolve_within
from agentcoord.infrastructure.workers import prompts

logger = logging.getLogger(__name__)

_HEX_COLOR_RE = re.compile(r"#[0-9A-Fa-f]{6}\b")
_SPACING_RE = re.compile(r"padding:|margin:|gap:|spacing:", re.IGNORECASE)
_SUGGESTION_RE = re.compile(r"^(?:[-*•]|\d+\.)\s+(.+)$")

PLATFORM_HEADERS = {"web": "### Web", "ios": "### iOS", "android": "### Android"}
REQUIRED_SECTIONS = (
    ("Variants", re.compile(r"##\s*Variants?", re.IGNORECASE)),
    ("States", re.compile(r"##\s*States?", re.IGNORECASE)),
    ("Accessibility", re.compile(r"##\s*Accessibility", re.IGNORECASE)),
    ("Code Examples", re.compile(r"##\s*(Code\s*)?Examples?", re.IGNORECASE)),
    ("Best Practices", re.compile(r"##\s*Best\s*Practices", re.IGNORECASE)),
)


@dataclass(frozen=True)
class ReviewIssue:
    category: str
    message: str
    severity: str  # critical | high | medium | low
    suggestion: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "category": self.category,
            "message": self.message,
            "severity": self.severity,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class ReviewCheck:
    name: str
    issues: tuple[ReviewIssue, ...] = ()
    warnings: tuple[ReviewIssue, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.issues


def token_values(tokens: Any) -> set[str]:
    """Every string leaf of a token tree, upper-cased."""
    values: set[str] = set()
    if isinstance(tokens, Mapping):
        for value in tokens.values():
            values |= token_values(value)
    elif isinstance(tokens, list | tuple):
        for value in tokens:
            values |= token_values(value)
    elif isinstance(tokens, str):
        values.add(tokens.upper())
    return values


def check_token_usage(text: str, snapshot: ContextSnapshot | None) -> ReviewCheck:
    issues = []
    warnings = []
    colors = snapshot.tokens.get("colors", {}) if snapshot else {}
    known = token_values(colors)
    unknown = sorted({h for h in _HEX_COLOR_RE.findall(text) if h.upper() not in known})
    if unknown:
        issues.append(
            ReviewIssue(
                "tokens",
                f"Found hard-coded colors not in design tokens: {', '.join(unknown)}",
                "high",
                "Use design token colors (e.g., primary.500, neutral.0)",
            )
        )
    if _SPACING_RE.search(text) and "spacing." not in text and "DSSpacing" not in text:
        warnings.append(
            ReviewIssue(
                "tokens",
                "Consider using spacing tokens instead of hard-coded values",
                "medium",
                "Use spacing tokens (e.g., spacing.4, DSSpacing.spacing4)",
            )
        )
    return ReviewCheck("Token Usage", tuple(issues), tuple(warnings))


def check_accessibility(text: str) -> ReviewCheck:
    issues = []
    warnings = []
    if "aria-" not in text and "accessibilityLabel" not in text:
        issues.append(
            ReviewIssue(
                "accessibility",
                "Missing ARIA attributes or accessibility labels",
                "high",
                "Add aria-label or platform accessibility attributes",
            )
        )
    if "keyboard" not in text.lower() and "tab" not in text.lower():
        warnings.append(
            ReviewIssue(
                "accessibility",
                "No keyboard navigation documentation found",
                "medium",
                "Document keyboard support (Tab, Enter, Escape, Arrow keys)",
            )
        )
    if not any(marker in text for marker in ("screen reader", "VoiceOver", "TalkBack")):
        warnings.append(
            ReviewIssue(
                "accessibility",
                "No screen reader documentation found",
                "medium",
                "Document screen reader support and testing",
            )
        )
    if "WCAG" not in text:
        warnings.append(
            ReviewIssue(
                "accessibility",
                "No WCAG compliance level specified",
                "low",
                "Specify WCAG 2.1 AA compliance",
            )
        )
    return ReviewCheck("Accessibility", tuple(issues), tuple(warnings))


def check_platform_coverage(text: str, platforms: tuple[str, ...]) -> ReviewCheck:
    issues = tuple(
        ReviewIssue(
            "platform",
            f"Missing {platform.upper()} implementation",
            "high",
            f"Add {PLATFORM_HEADERS[platform]} section with code example",
        )
        for platform in platforms
        if platform in PLATFORM_HEADERS and PLATFORM_HEADERS[platform] not in text
    )
    return ReviewCheck("Platform Coverage", issues)


def check_documentation(text: str, min_code_examples: int = 3) -> ReviewCheck:
    issues = tuple(
        ReviewIssue(
            "documentation",
            f"Missing required section: {name}",
            "medium",
            f"Add ## {name} section",
        )
        for name, pattern in REQUIRED_SECTIONS
        if not pattern.search(text)
    )
    warnings = []
    if text.count("```") // 2 < min_code_examples:
        warnings.append(
            ReviewIssue(
                "documentation",
                "Insufficient code examples",
                "low",
                f"Add at least {min_code_examples} code examples",
            )
        )
    return ReviewCheck("Documentation", issues, tuple(warnings))


def calculate_score(checks: list[ReviewCheck], weights: Mapping[str, int]) -> int:
    """Share of passed checks (0-100) minus a per-severity deduction per issue."""
    if not checks:
        return 100
    base = sum(1 for c in checks if c.passed) / len(checks) * 100
    deduction = sum(weights.get(i.severity, 0) for c in checks for i in c.issues)
    return max(0, round(base - deduction))


def parse_suggestions(reply: str) -> list[str]:
    suggestions = []
    for line in reply.splitlines():
        match = _SUGGESTION_RE.match(line.strip())
        if match:
            suggestions.append(match.group(1).strip())
    return suggestions


class ReviewerWorker(WorkerInterface):
    """Reviews generated output or an existing specification."""

    def __init__(
        self,
        root: Path,
        llm: LLMClientInterface | None = None,
        config: ReviewerConfig | None = None,
    ):
        """
        Args:
            root: Design system root; review paths are relative to it
            llm: Optional chat client for suggestions
            config: Thresholds and severity weights
        """
        self._root = Path(root)
        self._llm = llm
        self._config = config or ReviewerConfig()

    async def invoke(self, task: WorkerTask) -> Mapping[str, Any]:
        """
        Review one component.

        Returns:
            {component, consistent, score, issues, warnings, suggestions, checks}

        Raises:
            WorkerError: If there is nothing to review
        """
        payload = task.payload
        component, text = await self._material(task)
        platforms = tuple(payload.get("platforms") or PLATFORMS)

        checks = []
        if payload.get("checkTokens", True):
            checks.append(check_token_usage(text, task.snapshot))
        if payload.get("checkAccessibility", True):
            checks.append(check_accessibility(text))
        checks.append(check_platform_coverage(text, platforms))
        checks.append(check_documentation(text, self._config.min_code_examples))

        issues = [i for c in checks for i in c.issues]
        warnings = [w for c in checks for w in c.warnings]
        score = calculate_score(checks, self._config.severity_weights)
        consistent = score >= self._config.consistency_threshold and (
            not self._config.strict or not issues
        )
        suggestions = await self._suggestions(text, task.snapshot)

        logger.info(f"Reviewed {component}: score {score}, {len(issues)} issue(s)")
        return {
            "component": component,
            "consistent": consistent,
            "score": score,
            "issues": [i.to_dict() for i in issues],
            "warnings": [w.to_dict() for w in warnings],
            "suggestions": suggestions,
            "checks": [
                {"name": c.name, "passed": c.passed, "issues": len(c.issues)}
                for c in checks
            ],
        }

    async def _material(self, task: WorkerTask) -> tuple[str, str]:
        """Name and text of what is under review."""
        generated = task.previous_output(WorkerType.GENERATOR)
        if generated is not None:
            contents = [f["content"] for f in generated.get("artifacts", ())]
            return generated.get("component", "component"), "\n\n".join(contents)

        payload = task.payload
        if "content" in payload:
            return payload.get("name", payload.get("path", "component")), payload["content"]
        if "path" in payload:
            path = resolve_within(self._root, payload["path"])
            if path is None:
                raise WorkerError(
                    WorkerType.REVIEWER,
                    f"Refusing to read outside the design system: {payload['path']}",
                )
            try:
                text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            except OSError as e:
                raise WorkerError(WorkerType.REVIEWER, f"Cannot read {payload['path']}: {e}") from e
            return Path(payload["path"]).stem, text
        raise WorkerError(WorkerType.REVIEWER, "Nothing to review: no generated files, path or content")

    async def _suggestions(self, text: str, snapshot: ContextSnapshot | None) -> list[str]:
        if self._llm is None or not self._config.ai_suggestions:
            return []
        existing = ", ".join(sorted(snapshot.components)[:10]) if snapshot else ""
        template = prompts.REVIEW_SUGGESTIONS
        prompt = template.render(
            [
                ("SPECIFICATION", text[:3000]),
                ("EXISTING COMPONENTS", existing),
            ]
        )
        try:
            reply = await self._llm.complete(template.system, prompt, temperature=0.5, max_tokens=1500)
        except Exception as e:
            logger.warning(f"AI review failed, continuing with rule checks: {e}")
            return []
        return parse_suggestions(reply)
