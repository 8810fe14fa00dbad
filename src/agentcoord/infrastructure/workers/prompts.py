"""
Prompt templates for the generative workers.

These are plain data; the workers fill them from the task payload and the
context snapshot.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

# =============================================================================
# PROMPT TEMPLATE
# =============================================================================


@dataclass(frozen=True)
class PromptTemplate:
    """System message plus a sectioned user prompt."""

    system: str
    role: str
    task: str

    def render(self, sections: Sequence[tuple[str, str]]) -> str:
        """Render '# HEADING' blocks in order, skipping empty ones."""
        parts = [f"# ROLE\n{self.role}"]
        for heading, body in sections:
            if body.strip():
                parts.append(f"# {heading}\n{body.strip()}")
        parts.append(f"# TASK\n{self.task}")
        return "\n\n".join(parts)


def bullet_list(items: Mapping[str, Any] | Sequence[tuple[str, Any]]) -> str:
    pairs = items.items() if isinstance(items, Mapping) else items
    return "\n".join(f"- {key}: {value}" for key, value in pairs)


# =============================================================================
# GENERATOR
# =============================================================================

DOCUMENTATION = PromptTemplate(
    system=(
        "You are an expert technical writer creating design system documentation. "
        "Follow the design system standards and include all required sections: "
        "Purpose, Variants, Sizes, States, Accessibility, Code Examples, and "
        "Best Practices."
    ),
    role="Technical writer for a multi-platform design system",
    task="Write the complete markdown documentation for the component now.",
)

DOCUMENTATION_STRUCTURE = """\
1. # Component Name
2. Brief description and purpose
3. ## Variants (with descriptions)
4. ## Sizes (small, medium, large)
5. ## States (normal, hover, pressed, focus, disabled, loading, error, success)
6. ## Accessibility (ARIA attributes, keyboard navigation, WCAG compliance)
7. ## Code Examples (### Web, ### iOS, ### Android)
8. ## Best Practices (Do's and Don'ts)
9. ## Related Components

Use markdown. Reference design tokens by name (e.g. primary.500, neutral.0)."""

PLATFORM_SYSTEM = {
    "web": (
        "You are an expert Svelte developer creating design system components. "
        "Write clean, accessible, performant code following web standards. "
        "Use TypeScript for props."
    ),
    "ios": (
        "You are an expert SwiftUI developer creating design system components "
        "for iOS. Write idiomatic Swift following the Apple Human Interface "
        "Guidelines."
    ),
    "android": (
        "You are an expert Android developer creating design system components "
        "with Jetpack Compose. Write idiomatic Kotlin following Material Design "
        "guidelines."
    ),
}

PLATFORM_REQUIREMENTS = {
    "web": """\
- Svelte component (.svelte file), exported as default
- TypeScript prop types
- CSS built on design token CSS variables
- Event handlers (on:click, on:change, ...)
- aria-* attributes and semantic HTML""",
    "ios": """\
- SwiftUI View struct named DS<Name>
- @State / @Binding where appropriate
- Dynamic Type and VoiceOver support (accessibilityLabel)
- Light and dark mode""",
    "android": """\
- Jetpack Compose @Composable named DS<Name>, built on Material 3
- TalkBack support (contentDescription / semantics)
- Light and dark themes""",
}

COMMON_REQUIREMENTS = """\
1. Use design system tokens, never literal colors
2. Support every listed variant
3. Include states: normal, hover, pressed, disabled, loading, error
4. Add accessibility attributes
5. Follow platform conventions
6. Document public API with comments"""

PLATFORM_CODE = PromptTemplate(
    system="You are an expert software developer creating design system components.",
    role="Platform engineer for a multi-platform design system",
    task="Reply with the complete, production-ready code in a single fenced block.",
)

# =============================================================================
# REVIEWER
# =============================================================================

REVIEW_SUGGESTIONS = PromptTemplate(
    system=(
        "You are a senior design system reviewer. Reply with a short list of "
        "concrete improvements, one per line, each starting with '- '."
    ),
    role="Design system reviewer",
    task="List at most five improvements for this component.",
)
