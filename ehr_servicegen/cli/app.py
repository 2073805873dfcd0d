from __future__ import annotations

from rich.console import Console
from dotenv import load_dotenv
import typer

from . import registry


console = Console()
app = typer.Typer(add_completion=False, no_args_is_help=True, help="Generate prebuilt FHIR services for an EHR")


def _register_all() -> None:
    from .commands_generate import register as register_generate
    from .commands_profiles import register as register_profiles

    for name, register in (("generate", register_generate), ("profiles", register_profiles)):
        if not registry.is_registered(name):
            register(app, console)


def build_app() -> typer.Typer:
    _register_all()
    return app


def main():
    load_dotenv()
    build_app()
    app()


if __name__ == "__main__":
    main()
