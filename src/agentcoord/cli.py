"""Click command line interface: serve, generate, run, check-config."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import click

from agentcoord.config import CoordinatorConfig, config_from_env, load_config
from agentcoord.console import console, print_config, print_error, print_header, print_result
from agentcoord.domain.exceptions import ConfigurationError, ValidationError
from agentcoord.domain.models import TaskKind, TaskRequest, TaskResult, WorkerType
from agentcoord.logging_setup import setup_logging


def _split(value: str | None) -> list[str] | None:
    """Parse a comma-separated option into a list."""
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_config(config_path: Path | None, design_system: Path | None) -> CoordinatorConfig:
    """File (if given), then environment, then command line overrides."""
    config = load_config(config_path) if config_path else CoordinatorConfig()
    config = config_from_env(config)
    if design_system is not None:
        config = replace(config, design_system_path=design_system)
    return config


def _config(ctx: click.Context) -> CoordinatorConfig:
    try:
        return _resolve_config(ctx.obj["config_path"], ctx.obj["design_system"])
    except ConfigurationError as e:
        print_error(str(e), hint="Run 'agentcoord check-config' to inspect settings")
        ctx.exit(1)


def _run_tasks(config: CoordinatorConfig, requests: list[TaskRequest]) -> list[TaskResult]:
    """Queue the requests and drain them in order on a fresh event loop."""
    from agentcoord.bootstrap import build_state

    async def drain() -> list[TaskResult]:
        state = build_state(config)
        for request in requests:
            state.coordinator.queue(request)
        return await state.coordinator.drain_queue()

    return asyncio.run(drain())


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to an agentcoord JSON config file",
)
@click.option(
    "--design-system",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Design system root (overrides config and DESIGN_SYSTEM_PATH)",
)
@click.option("--log-file", default=None, type=click.Path(), help="Path to log file")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose (DEBUG) logging to console",
)
@click.version_option(package_name="agentcoord")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    design_system: Path | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """Coordinate design-system workers (generate, review, check, update)."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["design_system"] = design_system
    ctx.obj["log_file"] = log_file
    ctx.obj["verbose"] = verbose


def _setup_logging(ctx: click.Context, config: CoordinatorConfig) -> None:
    setup_logging(
        level=config.log_level,
        log_file=ctx.obj["log_file"] or config.log_file,
        verbose=ctx.obj["verbose"],
    )


@main.command()
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", default=None, type=int, help="Port number (default: from config)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the HTTP server."""
    import uvicorn

    from agentcoord.bootstrap import build_state
    from agentcoord.infrastructure.http import create_app

    config = _config(ctx)
    _setup_logging(ctx, config)
    host = host or config.host
    port = port or config.port

    print_header("agentcoord server", f"http://{host}:{port}")
    print_config(config)
    app = create_app(build_state(config))
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower())


@main.command()
@click.argument("name")
@click.option("-t", "--type", "component_type", default="general", help="Component type (e.g., input, overlay)")
@click.option("-d", "--description", default=None, help="Component description")
@click.option("--variants", default=None, help="Comma-separated list of variants")
@click.option("-f", "--features", default=None, help="Comma-separated list of features")
@click.option(
    "-p",
    "--platforms",
    default=None,
    help="Comma-separated list of platforms (default: from config)",
)
@click.option("--based-on", default=None, help="Existing component to follow")
@click.option("--no-review", is_flag=True, help="Skip design review")
@click.option("--no-qa", is_flag=True, help="Skip quality checks")
@click.option("--no-update", is_flag=True, help="Skip the component library update")
@click.option("--dry-run", is_flag=True, help="Generate without writing files")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")
@click.pass_context
def generate(
    ctx: click.Context,
    name: str,
    component_type: str,
    description: str | None,
    variants: str | None,
    features: str | None,
    platforms: str | None,
    based_on: str | None,
    no_review: bool,
    no_qa: bool,
    no_update: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Generate component NAME across platforms."""
    config = _config(ctx)
    _setup_logging(ctx, config)

    payload: dict[str, Any] = {
        "name": name,
        "type": component_type,
        "description": description or f"{name} component",
        "autoUpdate": not (no_update or dry_run),
    }
    for key, value in (
        ("variants", _split(variants)),
        ("features", _split(features)),
        ("platforms", _split(platforms)),
        ("basedOn", based_on),
    ):
        if value:
            payload[key] = value

    workers = [WorkerType.GENERATOR]
    if not no_review:
        workers.append(WorkerType.REVIEWER)
    if not no_qa:
        workers.append(WorkerType.QUALITY_CHECKER)

    request = TaskRequest(
        kind=TaskKind.GENERATE_ARTIFACT,
        requested_workers=tuple(workers),
        payload=payload,
    )
    if not as_json:
        print_header(f"Generating {name}", "dry run: nothing is written" if dry_run else None)

    result = _run_tasks(config, [request])[0]
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)
        generated = result.per_worker_results.get(WorkerType.GENERATOR, {})
        for file in generated.get("artifacts", ()):
            console.print(f"  - {file['path']}")
    if not result.succeeded:
        ctx.exit(1)


@main.command()
@click.argument("task_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the raw results as JSON")
@click.pass_context
def run(ctx: click.Context, task_file: Path, as_json: bool) -> None:
    """
    Run the task(s) in TASK_FILE.

    TASK_FILE holds one request object {kind, requestedWorkers, payload} or
    a list of them; a list runs in order.
    """
    config = _config(ctx)
    _setup_logging(ctx, config)

    try:
        data = json.loads(task_file.read_text())
        entries = data if isinstance(data, list) else [data]
        requests = [TaskRequest.from_dict(entry) for entry in entries]
    except json.JSONDecodeError as e:
        print_error(f"Invalid JSON in {task_file}: {e}")
        ctx.exit(1)
    except ValidationError as e:
        print_error(str(e))
        ctx.exit(1)

    results = _run_tasks(config, requests)
    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for result in results:
            print_result(result)
    if not all(r.succeeded for r in results):
        ctx.exit(1)


@main.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Validate configuration and print the effective settings."""
    config = _config(ctx)
    print_config(config, {"Log level": config.log_level})
    console.print("[green]Configuration is valid[/green]")


if __name__ == "__main__":
    main()
