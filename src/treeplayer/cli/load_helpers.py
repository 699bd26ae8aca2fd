"""Shared helpers for opening tree storage with CLI-friendly errors."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

import typer
from rich.console import Console

from treeplayer.io.loaders import LoaderError

T = TypeVar("T")


def ensure_path(path: str, *, console: Console) -> None:
    if not Path(path).exists():
        console.print(f"[red]Path not found:[/red] {path}")
        raise typer.Exit(code=1)


def load_or_exit(
    loader_fn: Callable[[], T],
    *,
    console: Console,
    verbose_errors: bool = False,
) -> T:
    """Run a storage call, turning loader and lookup failures into CLI exits."""
    try:
        return loader_fn()
    except LoaderError as err:
        if verbose_errors and err.cause:
            console.print(f"[red]Failed to load tree:[/red] {err.message}\n{err.cause}")
        else:
            console.print(f"[red]Failed to load tree:[/red] {err}")
        raise typer.Exit(code=1)
    except KeyError as err:
        message = err.args[0] if err.args else str(err)
        console.print(f"[red]{message}[/red]")
        raise typer.Exit(code=2)


__all__ = ["ensure_path", "load_or_exit"]
