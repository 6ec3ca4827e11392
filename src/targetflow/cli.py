# src/targetflow/cli.py
"""CLI do targetflow: make / plan / outdated / show / destroy."""

import importlib
from typing import Any, Callable, Dict, List, NoReturn, Optional

import typer

from targetflow.core.config.errors import ConfigError
from targetflow.core.config.loader import load_config
from targetflow.core.exceptions import TargetflowException
from targetflow.core.logging import configure_logging, get_logger
from targetflow.core.pipeline.registry import TaskRegistry
from targetflow.pipeline import Pipeline

DEFAULT_PIPELINE = "targetflow.tutorial.pipeline:build_registry"

app = typer.Typer(
    name="targetflow",
    help="targetflow - declarative, memoized task pipelines",
    no_args_is_help=True,
)

logger = get_logger(__name__)

ConfigOption = typer.Option(None, "--config", "-c", help="Project config file (YAML or JSON)")
LocalOption = typer.Option(None, "--local", help="Local override config file (ignored if missing)")
PipelineOption = typer.Option(DEFAULT_PIPELINE, "--pipeline", "-p", help="Registry builder as module:function")


def load_builder(spec: str) -> Callable[[Dict[str, Any]], TaskRegistry]:
    """Resolve `module:function` em um builder de TaskRegistry."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"expected module:function, got {spec!r}")
    builder = getattr(importlib.import_module(module_name), attr, None)
    if not callable(builder):
        raise typer.BadParameter(f"{spec!r} is not callable")
    return builder


def open_pipeline(config_path: Optional[str], local_path: Optional[str], pipeline: str) -> Pipeline:
    config = load_config(defaults_path=config_path, local_path=local_path)
    log_cfg = config.get("logging", {}) or {}
    configure_logging(level=str(log_cfg.get("level", "INFO")), fmt=str(log_cfg.get("format", "console")))
    return Pipeline(load_builder(pipeline)(config), config)


def _fail(exc: Exception, code: int) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    hint = getattr(exc, "hint", None)
    if hint:
        typer.echo(f"hint: {hint}", err=True)
    raise typer.Exit(code)


@app.command("make")
def make(
    targets: Optional[List[str]] = typer.Argument(None, help="Tasks to bring up to date (default: all)"),
    config: Optional[str] = ConfigOption,
    local: Optional[str] = LocalOption,
    pipeline: str = PipelineOption,
):
    """Run every outdated task and report each task state."""
    try:
        pipe = open_pipeline(config, local, pipeline)
        pipe.config["engine"]["raise_on_failure"] = False
        result = pipe.make(targets or None)
    except (ConfigError, TargetflowException) as exc:
        _fail(exc, 2)

    for name in result.plan:
        outcome = result.outcomes[name]
        typer.echo(f"  [{outcome.state.value}] {name}")
        if outcome.error is not None:
            typer.echo(f"      {outcome.error.type}: {outcome.error.message}")
    typer.echo(f"run {result.run_id}: {result.record.status}")

    if not result.ok:
        raise typer.Exit(1)


@app.command("plan")
def plan(
    targets: Optional[List[str]] = typer.Argument(None),
    config: Optional[str] = ConfigOption,
    local: Optional[str] = LocalOption,
    pipeline: str = PipelineOption,
):
    """Print the execution order."""
    try:
        pipe = open_pipeline(config, local, pipeline)
        order = pipe.plan(targets or None)
    except (ConfigError, TargetflowException) as exc:
        _fail(exc, 2)

    for i, name in enumerate(order, start=1):
        upstream = ", ".join(pipe.graph.dependencies(name))
        typer.echo(f"{i:>3}. {name}" + (f"  <- {upstream}" if upstream else ""))


@app.command("outdated")
def outdated(
    targets: Optional[List[str]] = typer.Argument(None),
    config: Optional[str] = ConfigOption,
    local: Optional[str] = LocalOption,
    pipeline: str = PipelineOption,
):
    """List the tasks the next make would (re)compute."""
    try:
        names = open_pipeline(config, local, pipeline).outdated(targets or None)
    except (ConfigError, TargetflowException) as exc:
        _fail(exc, 2)

    if not names:
        typer.echo("everything is up to date")
        return
    for name in names:
        typer.echo(name)


@app.command("show")
def show(
    task: str = typer.Argument(..., help="Task name"),
    config: Optional[str] = ConfigOption,
    local: Optional[str] = LocalOption,
    pipeline: str = PipelineOption,
):
    """Print the latest stored value of a task."""
    try:
        value = open_pipeline(config, local, pipeline).read(task)
    except (ConfigError, TargetflowException) as exc:
        _fail(exc, 2)
    except KeyError:
        typer.echo(f"task '{task}' has no stored value; run make first", err=True)
        raise typer.Exit(1)

    typer.echo(value if isinstance(value, str) else repr(value))


@app.command("destroy")
def destroy(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config: Optional[str] = ConfigOption,
    local: Optional[str] = LocalOption,
    pipeline: str = PipelineOption,
):
    """Delete the memoization store."""
    try:
        pipe = open_pipeline(config, local, pipeline)
    except (ConfigError, TargetflowException) as exc:
        _fail(exc, 2)
    if not yes:
        typer.confirm(f"Delete {pipe.store.root}?", abort=True)
    pipe.destroy()
    typer.echo(f"removed {pipe.store.root}")


def main() -> None:
    app()


__all__ = ["app", "main", "load_builder", "open_pipeline"]
