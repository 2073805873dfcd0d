from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ..core.capability import ProfileSetResolver
from ..exceptions import ServiceGenError
from .helpers import deadline_from, fail, load_config, profiles_table
from .registry import add as _add


def register(app: typer.Typer, console: Console) -> None:
    @app.command()
    def profiles(
        capability_statement: str = typer.Argument(..., help="CapabilityStatement file path or URL"),
        ehr_name: Optional[str] = typer.Option(None, "--ehr-name", help="Skip publisher name inference"),
        included_profile: Optional[List[str]] = typer.Option(None, "--included-profile", help="Profile URL to include first (repeatable)"),
        config: Optional[Path] = typer.Option(None, "--config", exists=True, readable=True, help="Tool config overlay YAML"),
        fetch_timeout: Optional[float] = typer.Option(None, "--fetch-timeout", min=0.1, help="Deadline in seconds for remote fetches"),
    ):
        """Show the profiles a capability statement resolves to, without generating anything."""
        try:
            cfg = load_config(config)
            resolved = ProfileSetResolver(cfg.http).resolve(
                capability_statement,
                included_profile or [],
                ehr_name,
                deadline=deadline_from(fetch_timeout),
            )
        except ServiceGenError as e:
            fail(console, e)
            return

        console.print(profiles_table(resolved.profiles))
        name = ehr_name or resolved.inferred_name
        console.print(f"[dim]EHR name:[/dim] [cyan]{escape(str(name))}[/cyan]")
        console.print(f"[dim]Profiles:[/dim] [cyan]{len(resolved.profiles)}[/cyan]")

    _add("profiles", profiles)
