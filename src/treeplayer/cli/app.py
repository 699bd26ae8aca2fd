"""
Tree Player CLI: list, inspect, validate and play decision trees.

Trees are read from a directory of YAML/JSON files (./trees by default):
- walk replays a fixed list of choice ids non-interactively
- play runs an interactive session in the terminal
"""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console

from treeplayer.cli.formatters import (
    build_tree_definition_table,
    build_trees_table,
    build_variables_table,
    format_choice_target,
    format_path,
)
from treeplayer.cli.load_helpers import ensure_path, load_or_exit
from treeplayer.cli.paths import trees_path
from treeplayer.core.models import PlayStatus
from treeplayer.repositories import YamlTreeRepository
from treeplayer.services import PlayService, PlaySession
from treeplayer.utils.logging import configure_logging

app = typer.Typer(help="Tree Player CLI: list, inspect, validate and play decision trees.")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose)


def _service(path: str | None) -> PlayService:
    return PlayService(YamlTreeRepository(trees_path(path)))


def _render_node(session: PlaySession) -> None:
    node = session.current_node
    status = session.status

    if status is PlayStatus.FINISHED:
        if node is not None and node.title:
            console.print(f"\n[bold]{node.title}[/bold]")
            if node.description:
                console.print(node.description)
        console.print("[green bold]The End[/green bold]")
        return
    if node is None:
        return

    console.print(f"\n[dim]Step {session.step}[/dim]")
    console.print(f"[bold]{node.title}[/bold]")
    if node.description:
        console.print(node.description)
    if node.image_url:
        console.print(f"[dim]Image: {node.image_url}[/dim]")


@app.command("list")
def list_trees(
    path: str | None = typer.Option(None, "--trees-path", help="Path to trees folder"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """List stored trees."""
    service = _service(path)
    trees = load_or_exit(service.repository.list_all, console=console, verbose_errors=verbose)
    if not trees:
        console.print("[dim]No trees found[/dim]")
        return
    console.print(build_trees_table(trees))


@app.command()
def show(
    tree_id: str = typer.Argument(..., help="Tree id"),
    path: str | None = typer.Option(None, "--trees-path", help="Path to trees folder"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Show the nodes and choices of a tree."""
    service = _service(path)
    tree = load_or_exit(lambda: service.repository.get(tree_id), console=console, verbose_errors=verbose)

    console.print(f"[bold]{tree.title or tree.id}[/bold] (Decision Tree)")
    if tree.description:
        console.print(tree.description)
    console.print(f"Nodes: {len(tree.nodes)}, Root: {tree.root_node_id or '<none>'}")
    if not tree.nodes:
        console.print("  [dim]This tree has no nodes yet.[/dim]")
        return
    console.print(build_tree_definition_table(tree))


@app.command()
def validate(
    tree_id: Optional[str] = typer.Argument(None, help="Tree id (all trees when omitted)"),
    path: str | None = typer.Option(None, "--trees-path", help="Path to trees folder"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Validate tree structure."""
    service = _service(path)
    if tree_id is None:
        ensure_path(trees_path(path), console=console)
        reports = load_or_exit(service.validate_all, console=console, verbose_errors=verbose)
    else:
        reports = {tree_id: load_or_exit(lambda: service.validate(tree_id), console=console, verbose_errors=verbose)}

    console.print(f"[green]OK[/green] Loaded {len(reports)} tree(s)")

    errors: List[str] = [error for messages in reports.values() for error in messages]
    if errors:
        console.print("[red]Validation errors detected:[/red]")
        for error in errors:
            console.print(f" - {error}")
        raise typer.Exit(code=1)

    console.print("[green]All validations passed[/green]")


@app.command()
def walk(
    tree_id: str = typer.Argument(..., help="Tree id"),
    choice_ids: Optional[List[str]] = typer.Argument(None, help="Choice ids to take, in order"),
    as_json: bool = typer.Option(False, "--json", help="Print the final state as JSON"),
    path: str | None = typer.Option(None, "--trees-path", help="Path to trees folder"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Replay a sequence of choices and report where the walk ends."""
    service = _service(path)
    session, ignored = load_or_exit(
        lambda: service.walk(tree_id, choice_ids or []),
        console=console,
        verbose_errors=verbose,
    )
    state = session.state

    if as_json:
        console.print_json(
            data={
                "tree_id": session.tree.id,
                "status": session.status.value,
                "current_node_id": state.current_node_id,
                "history": list(state.history),
                "variables": dict(state.variables),
                "visited_nodes": sorted(state.visited_nodes),
                "ignored": ignored,
            }
        )
        return

    for choice_id in ignored:
        console.print(f"[yellow]Ignored choice[/yellow]: {choice_id}")

    status_color = "green" if session.status is PlayStatus.FINISHED else "cyan"
    console.print(f"[bold]Status:[/bold] [{status_color}]{session.status.value}[/{status_color}]")
    console.print(f"[bold]Path:[/bold] {format_path(state)}")
    node = session.current_node
    if node is not None:
        console.print(f"[bold]Node:[/bold] {node.title or node.id}")
    if state.variables:
        console.print(build_variables_table(state.variables))


@app.command()
def play(
    tree_id: str = typer.Argument(..., help="Tree id"),
    path: str | None = typer.Option(None, "--trees-path", help="Path to trees folder"),
    verbose: bool = typer.Option(False, "--verbose-load", help="Display full validation trace on loader errors"),
) -> None:
    """Play a tree interactively."""
    service = _service(path)
    session = load_or_exit(lambda: service.start(tree_id), console=console, verbose_errors=verbose)
    console.print(f"[bold]{session.tree.title or session.tree.id}[/bold]")

    if session.status is PlayStatus.EMPTY_TREE:
        console.print("[dim]This tree has no nodes yet.[/dim]")
        return

    while True:
        _render_node(session)
        status = session.status
        choices = session.visible_choices()

        if status is PlayStatus.NODE_NOT_FOUND:
            console.print(f"[red]Node not found[/red]: {session.state.current_node_id}")
        for idx, choice in enumerate(choices, start=1):
            console.print(f"  [cyan]{idx}[/cyan]. {choice.label} [dim]-> {format_choice_target(choice)}[/dim]")
        if status is PlayStatus.IN_PROGRESS and not choices:
            console.print("[dim]No choices available here[/dim]")

        answer = typer.prompt("Choice number, [b]ack, [r]estart or [q]uit").strip().lower()
        if answer in ("q", "quit"):
            break
        if answer in ("b", "back"):
            if not session.back():
                console.print("[yellow]Already at the start[/yellow]")
            continue
        if answer in ("r", "restart"):
            session.restart()
            continue
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            session.choose(choices[int(answer) - 1].id)
            continue
        console.print(f"[red]Unknown input[/red]: {answer}")

    if session.state.variables:
        console.print(build_variables_table(session.state.variables))


__all__ = ["app"]
