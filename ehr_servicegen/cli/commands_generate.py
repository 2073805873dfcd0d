from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..exceptions import InvalidArgumentError, ServiceGenError
from ..models import GenerationRequest
from ..pipeline import PipelineOrchestrator
from .helpers import deadline_from, fail, load_config, print_warnings, summary_table, written_files
from .registry import add as _add


def register(app: typer.Typer, console: Console) -> None:
    @app.command()
    def generate(
        ehr_name: Optional[str] = typer.Option(None, "--ehr-name", help="EHR name (defaults to the capability statement publisher)"),
        project_name: Optional[str] = typer.Option(None, "--project-name", help="Service project name (default: <ehr-name>-service)"),
        org_name: Optional[str] = typer.Option(None, "--org-name", help="Organization used in the IG import path"),
        included_profile: Optional[List[str]] = typer.Option(None, "--included-profile", help="Profile URL to include (repeatable)"),
        dependent_package: Optional[str] = typer.Option(None, "--dependent-package", help="Package the template builds on, e.g. org/name"),
        capability_statement: Optional[str] = typer.Option(None, "--capability-statement", help="CapabilityStatement file path or URL"),
        auth_method: Optional[str] = typer.Option(None, "--auth-method", help="Authentication method of the EHR"),
        output: Path = typer.Option(Path("."), "--output", "-o", help="Target output directory"),
        config: Optional[Path] = typer.Option(None, "--config", exists=True, readable=True, help="Tool config overlay YAML"),
        fetch_timeout: Optional[float] = typer.Option(None, "--fetch-timeout", min=0.1, help="Overall deadline in seconds for fetching a remote capability statement"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    ):
        """Generate the template package and prebuilt service for an EHR."""
        try:
            cfg = load_config(config, verbose=verbose)
            try:
                options = {
                    "--ehr-name": ehr_name,
                    "--project-name": project_name,
                    "--org-name": org_name,
                    "--included-profile": included_profile,
                    "--dependent-package": dependent_package,
                    "--capability-statement": capability_statement,
                    "--auth-method": auth_method,
                }
                request = GenerationRequest.from_options(
                    {k: v for k, v in options.items() if v is not None}, output_dir=str(output)
                )
            except ValidationError as e:
                raise InvalidArgumentError(str(e)) from e

            console.print(Panel.fit(
                "[bold cyan]EHR Service Generation[/bold cyan]",
                style="bold green",
                border_style="green"
            ))
            result = PipelineOrchestrator(cfg).run(request, deadline=deadline_from(fetch_timeout))
        except ServiceGenError as e:
            fail(console, e)
            return

        print_warnings(console, result.warnings)
        console.print(summary_table(result, auth_method))
        console.print()
        console.print("[green]✓ Generated files:[/green]")
        for name in written_files(result, output):
            console.print(f"  [dim]{escape(name)}[/dim]")

    _add("generate", generate)
