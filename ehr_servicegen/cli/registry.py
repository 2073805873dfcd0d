from __future__ import annotations

from typing import Callable, Dict

# Command name -> typer callback, filled in as command modules register
COMMANDS: Dict[str, Callable] = {}


def add(name: str, fn: Callable) -> None:
    if name in COMMANDS:
        raise ValueError(f"Command already registered: {name}")
    COMMANDS[name] = fn


def is_registered(name: str) -> bool:
    return name in COMMANDS


def names() -> list[str]:
    return list(COMMANDS.keys())
