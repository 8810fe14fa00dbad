"""Configuration loading for agentcoord.

Configuration is a tree of frozen dataclasses. It can be read from a JSON
file (validated against ``schemas/config.schema.json``) and overlaid with
environment variables.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema

from agentcoord.domain.exceptions import ConfigurationError
from agentcoord.schemas import validate_config

DEFAULT_PLATFORMS = ("web", "ios", "android")


@dataclass(frozen=True)
class LLMConfig:
    """Connection settings for the OpenAI-compatible chat API."""

    model: str = "gpt-4o-mini"
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 120.0


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings for the generator worker."""

    platforms: tuple[str, ...] = DEFAULT_PLATFORMS
    temperature: float = 0.7
    max_tokens: int = 4000


@dataclass(frozen=True)
class ReviewerConfig:
    """Settings for the reviewer worker.

    A review is consistent when its score reaches consistency_threshold and,
    in strict mode, it reports no issues at all.
    """

    consistency_threshold: int = 80
    strict: bool = False
    ai_suggestions: bool = True
    min_code_examples: int = 3
    severity_weights: Mapping[str, int] = field(
        default_factory=lambda: {"critical": 20, "high": 10, "medium": 5, "low": 0}
    )


@dataclass(frozen=True)
class QualityConfig:
    """Settings for the quality-checker worker."""

    checks: tuple[str, ...] = ("unit", "accessibility", "visual", "integration")


@dataclass(frozen=True)
class UpdaterConfig:
    """Settings for the persistence-updater worker."""

    auto_commit: bool = False
    version_bump: str | None = "minor"


@dataclass(frozen=True)
class CoordinatorConfig:
    """Top-level configuration."""

    cache_ttl: float = 3600.0  # seconds
    max_concurrent_tasks: int = 3
    step_timeout_ms: int = 120_000
    auto_apply_side_effects: bool = False
    design_system_path: Path = Path(".")
    event_dir: Path | None = None
    log_level: str = "INFO"
    log_file: str | None = None
    host: str = "127.0.0.1"
    port: int = 3001
    llm: LLMConfig = field(default_factory=LLMConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    reviewer: ReviewerConfig = field(default_factory=ReviewerConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    updater: UpdaterConfig = field(default_factory=UpdaterConfig)

    @property
    def step_timeout(self) -> float:
        """Per-step timeout in seconds."""
        return self.step_timeout_ms / 1000.0


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    return value if isinstance(value, Mapping) else {}


def config_from_dict(data: Mapping[str, Any]) -> CoordinatorConfig:
    """
    Build a config from the camelCase JSON shape.

    Args:
        data: Parsed configuration

    Returns:
        CoordinatorConfig with defaults for absent keys

    Raises:
        ConfigurationError: If data does not match the schema
    """
    try:
        validate_config(data)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "(root)"
        raise ConfigurationError(f"Invalid configuration at {location}: {e.message}") from e

    defaults = CoordinatorConfig()
    llm = _section(data, "llm")
    generator = _section(data, "generator")
    reviewer = _section(data, "reviewer")
    quality = _section(data, "quality")
    updater = _section(data, "updater")

    event_dir = data.get("eventDir")
    return CoordinatorConfig(
        cache_ttl=float(data.get("cacheTTL", defaults.cache_ttl)),
        max_concurrent_tasks=int(
            data.get("maxConcurrentTasks", defaults.max_concurrent_tasks)
        ),
        step_timeout_ms=int(data.get("stepTimeoutMs", defaults.step_timeout_ms)),
        auto_apply_side_effects=bool(
            data.get("autoApplySideEffects", defaults.auto_apply_side_effects)
        ),
        design_system_path=Path(
            data.get("designSystemPath", str(defaults.design_system_path))
        ),
        event_dir=Path(event_dir) if event_dir else None,
        log_level=data.get("logLevel", defaults.log_level),
        log_file=data.get("logFile"),
        host=data.get("host", defaults.host),
        port=int(data.get("port", defaults.port)),
        llm=LLMConfig(
            model=llm.get("model", defaults.llm.model),
            base_url=llm.get("baseUrl"),
            api_key=llm.get("apiKey"),
            timeout=float(llm.get("timeout", defaults.llm.timeout)),
        ),
        generator=GeneratorConfig(
            platforms=tuple(generator.get("platforms", defaults.generator.platforms)),
            temperature=float(
                generator.get("temperature", defaults.generator.temperature)
            ),
            max_tokens=int(generator.get("maxTokens", defaults.generator.max_tokens)),
        ),
        reviewer=ReviewerConfig(
            consistency_threshold=int(
                reviewer.get(
                    "consistencyThreshold", defaults.reviewer.consistency_threshold
                )
            ),
            strict=bool(reviewer.get("strict", defaults.reviewer.strict)),
            ai_suggestions=bool(
                reviewer.get("aiSuggestions", defaults.reviewer.ai_suggestions)
            ),
            min_code_examples=int(
                reviewer.get("minCodeExamples", defaults.reviewer.min_code_examples)
            ),
            severity_weights={
                **defaults.reviewer.severity_weights,
                **{
                    str(k): int(v)
                    for k, v in reviewer.get("severityWeights", {}).items()
                },
            },
        ),
        quality=QualityConfig(
            checks=tuple(quality.get("checks", defaults.quality.checks)),
        ),
        updater=UpdaterConfig(
            auto_commit=bool(updater.get("autoCommit", defaults.updater.auto_commit)),
            version_bump=updater.get("versionBump", defaults.updater.version_bump),
        ),
    )


def load_config(path: Path) -> CoordinatorConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the configuration file

    Returns:
        Parsed CoordinatorConfig

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")

    return config_from_dict(data)


def _env_value(environ: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = environ.get(name)
        if value not in (None, ""):
            return value
    return None


def _as_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{value}'")


def _as_number(name: str, value: str, kind: type[int] | type[float]) -> Any:
    try:
        return kind(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{value}'") from e


def config_from_env(
    base: CoordinatorConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> CoordinatorConfig:
    """
    Overlay environment variables onto a config.

    Recognized variables (first match wins):
        AGENTCOORD_CACHE_TTL / CACHE_TTL, AGENTCOORD_MAX_CONCURRENT_TASKS /
        MAX_CONCURRENT_AGENTS, AGENTCOORD_STEP_TIMEOUT_MS,
        AGENTCOORD_AUTO_APPLY_SIDE_EFFECTS, AGENTCOORD_DESIGN_SYSTEM_PATH /
        DESIGN_SYSTEM_PATH, AGENTCOORD_EVENT_DIR, AGENTCOORD_LOG_LEVEL,
        AGENTCOORD_HOST / MCP_HOST, AGENTCOORD_PORT / MCP_PORT,
        AGENTCOORD_MODEL, OPENAI_BASE_URL, OPENAI_API_KEY, AUTO_COMMIT,
        AUTO_VERSION_BUMP

    Args:
        base: Config to overlay (defaults to CoordinatorConfig())
        environ: Variable source (defaults to os.environ)

    Returns:
        New CoordinatorConfig

    Raises:
        ConfigurationError: If a variable cannot be parsed
    """
    config = base or CoordinatorConfig()
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}

    if value := _env_value(env, "AGENTCOORD_CACHE_TTL", "CACHE_TTL"):
        changes["cache_ttl"] = _as_number("CACHE_TTL", value, float)
    if value := _env_value(env, "AGENTCOORD_MAX_CONCURRENT_TASKS", "MAX_CONCURRENT_AGENTS"):
        changes["max_concurrent_tasks"] = _as_number("MAX_CONCURRENT_TASKS", value, int)
    if value := _env_value(env, "AGENTCOORD_STEP_TIMEOUT_MS"):
        changes["step_timeout_ms"] = _as_number("AGENTCOORD_STEP_TIMEOUT_MS", value, int)
    if value := _env_value(env, "AGENTCOORD_AUTO_APPLY_SIDE_EFFECTS"):
        changes["auto_apply_side_effects"] = _as_bool(
            "AGENTCOORD_AUTO_APPLY_SIDE_EFFECTS", value
        )
    if value := _env_value(env, "AGENTCOORD_DESIGN_SYSTEM_PATH", "DESIGN_SYSTEM_PATH"):
        changes["design_system_path"] = Path(value)
    if value := _env_value(env, "AGENTCOORD_EVENT_DIR"):
        changes["event_dir"] = Path(value)
    if value := _env_value(env, "AGENTCOORD_LOG_LEVEL"):
        changes["log_level"] = value.upper()
    if value := _env_value(env, "AGENTCOORD_HOST", "MCP_HOST"):
        changes["host"] = value
    if value := _env_value(env, "AGENTCOORD_PORT", "MCP_PORT"):
        changes["port"] = _as_number("AGENTCOORD_PORT", value, int)

    llm_changes: dict[str, Any] = {}
    if value := _env_value(env, "AGENTCOORD_MODEL"):
        llm_changes["model"] = value
    if value := _env_value(env, "OPENAI_BASE_URL"):
        llm_changes["base_url"] = value
    if value := _env_value(env, "OPENAI_API_KEY"):
        llm_changes["api_key"] = value
    if llm_changes:
        changes["llm"] = replace(config.llm, **llm_changes)

    updater_changes: dict[str, Any] = {}
    if value := _env_value(env, "AUTO_COMMIT"):
        updater_changes["auto_commit"] = _as_bool("AUTO_COMMIT", value)
    if value := _env_value(env, "AUTO_VERSION_BUMP"):
        bump = value.strip().lower()
        if bump not in ("major", "minor", "patch", "false", "none"):
            raise ConfigurationError(f"AUTO_VERSION_BUMP must be major/minor/patch, got '{value}'")
        updater_changes["version_bump"] = None if bump in ("false", "none") else bump
    if updater_changes:
        changes["updater"] = replace(config.updater, **updater_changes)

    if (
        changes.get("max_concurrent_tasks", config.max_concurrent_tasks) < 1
        or changes.get("step_timeout_ms", config.step_timeout_ms) < 1
    ):
        raise ConfigurationError("max_concurrent_tasks and step_timeout_ms must be >= 1")

    return replace(config, **changes)
