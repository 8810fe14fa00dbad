"""Rich console utilities for the agentcoord CLI."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from agentcoord.config import CoordinatorConfig
from agentcoord.domain.models import TaskResult

# Shared console instances
console = Console()
error_console = Console(stderr=True)


def print_header(title: str, subtitle: str | None = None) -> None:
    """Print a styled header panel."""
    content = Text(title, style="bold blue")
    if subtitle:
        content.append(f"\n{subtitle}", style="dim")
    console.print(Panel(content, expand=False))


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    console.print(Panel(message, title="Success", border_style="green"))


def print_failure(message: str, details: str | None = None) -> None:
    content = Text(message, style="bold red")
    if details:
        content.append(f"\n{details}", style="dim")
    console.print(Panel(content, title="Failed", border_style="red"))


def print_config(config: CoordinatorConfig, extra_info: dict[str, Any] | None = None) -> None:
    """Print the effective configuration as a key/value table."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Design system", str(config.design_system_path))
    table.add_row("Model", config.llm.model)
    table.add_row("LLM endpoint", config.llm.base_url or "(default)")
    table.add_row("Cache TTL", f"{config.cache_ttl:g}s")
    table.add_row("Max concurrent tasks", str(config.max_concurrent_tasks))
    table.add_row("Step timeout", f"{config.step_timeout_ms} ms")
    table.add_row("Auto-apply side effects", str(config.auto_apply_side_effects))
    table.add_row("Platforms", ", ".join(config.generator.platforms))
    table.add_row("Review threshold", str(config.reviewer.consistency_threshold))
    table.add_row("Events", str(config.event_dir or "(in memory)"))

    if extra_info:
        for key, value in extra_info.items():
            table.add_row(key, str(value))

    console.print(table)


def print_steps(result: TaskResult) -> None:
    """Print one row per pipeline step of a result."""
    table = Table(show_header=True, box=None)
    table.add_column("Worker", style="magenta", width=22)
    table.add_column("Required", width=9)
    table.add_column("Status", width=10)
    table.add_column("Duration", justify="right", width=10)
    table.add_column("Error (summary)", style="red")

    for outcome in result.steps.values():
        status = "[green]completed[/green]" if outcome.succeeded else "[red]failed[/red]"
        summary = (outcome.error or "").split("\n")[0][:80]
        table.add_row(
            outcome.worker.value,
            "yes" if outcome.required else "no",
            status,
            f"{outcome.duration_ms:.0f} ms",
            summary,
        )

    console.print(table)


def print_result(result: TaskResult) -> None:
    """Print a task result, recursing into create-feature children."""
    kind = result.to_dict()["kind"]
    if result.children:
        for child in result.children:
            console.print(f"\n[bold]{child.task_id}[/bold]")
            print_steps(child)
    else:
        print_steps(result)

    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")

    if result.succeeded:
        print_success(f"{kind} {result.task_id} completed in {result.duration_ms:.0f} ms")
    else:
        print_failure(f"{kind} {result.task_id} failed", "\n".join(result.errors))
