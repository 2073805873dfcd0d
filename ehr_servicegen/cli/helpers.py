from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Iterable, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config.loader import load_tool_config
from ..config.schema import ToolConfigSchema
from ..exceptions import (
    ConfigurationError,
    FetchError,
    InvalidArgumentError,
    MissingNameError,
    NotFoundError,
    ParseError,
    ServiceGenError,
    StageExecutionError,
    ToolLoadError,
)
from ..log import setup_logging
from ..pipeline import PipelineResult

CONFIG_ENV_VAR = "EHR_SERVICEGEN_CONFIG"

ERROR_TITLES = {
    FetchError: "Could not fetch capability statement",
    NotFoundError: "Capability statement not found",
    ParseError: "Could not read capability statement",
    MissingNameError: "EHR name is required",
    InvalidArgumentError: "Invalid argument",
    ConfigurationError: "Configuration error",
    ToolLoadError: "Could not load generation stage",
    StageExecutionError: "Generation failed",
}


def load_config(path: Optional[Path], *, verbose: bool = False) -> ToolConfigSchema:
    """Base config merged with ``path`` (or $EHR_SERVICEGEN_CONFIG); also sets up logging."""
    if path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            path = Path(env_path)
    cfg = load_tool_config(path)
    setup_logging(cfg.logging, verbose=verbose)
    return cfg


def deadline_from(timeout: Optional[float]) -> Optional[float]:
    if timeout is None:
        return None
    return time.monotonic() + timeout


def error_title(exc: ServiceGenError) -> str:
    for kind, title in ERROR_TITLES.items():
        if isinstance(exc, kind):
            return title
    return "Error"


def fail(console: Console, exc: ServiceGenError, code: int = 1) -> None:
    console.print(f"[bold red]✗ {error_title(exc)}:[/bold red] {escape(str(exc))}")
    raise typer.Exit(code)


def print_warnings(console: Console, warnings: Iterable[str]) -> None:
    for warning in warnings:
        console.print(f"[yellow]! {escape(warning)}[/yellow]")


def profiles_table(profiles: Iterable[str], title: str = "Supported Profiles") -> Table:
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Profile", style="cyan", overflow="fold")
    for i, profile in enumerate(profiles, start=1):
        table.add_row(str(i), escape(profile))
    return table


def summary_table(result: PipelineResult, auth_method: Optional[str]) -> Table:
    summary = Table(title="Generation Summary", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    summary.add_column("Parameter", style="bold")
    summary.add_column("Value", style="cyan", overflow="fold")

    props = result.generator_properties
    summary.add_row("EHR", escape(result.ehr_name))
    summary.add_row("Project", escape(result.project_name))
    summary.add_row("Implementation Guide", result.ig_override.name)
    summary.add_row("Import", result.ig_override.import_path)
    summary.add_row("Profiles", str(len(result.profiles)))
    summary.add_row("Package", props.package_import if props else "-")
    summary.add_row("Auth Method", auth_method or "none")
    return summary


def written_files(result: PipelineResult, root: Path) -> List[str]:
    out: List[str] = []
    for path in result.written:
        try:
            out.append(str(path.relative_to(root)))
        except ValueError:
            out.append(str(path))
    return out
