"""Grow command for WordWeb CLI."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from ...config.defaults import DEFAULT_CONFIG_FILENAME
from ...config.settings import WordWebConfig
from ...core.exceptions import ConfigError, ExpansionError
from ...core.expansion import ExpansionController, ExpansionStatus
from ...core.models import NodeMap
from ...core.tree_store import TreeStore
from ...core.word_source import create_word_source
from ...layout.collision import find_overlaps

console = Console()


def load_config(config_file: Path | None) -> WordWebConfig:
    """Load the YAML config, falling back to ./wordweb.yaml, then defaults."""
    path = config_file or Path.cwd() / DEFAULT_CONFIG_FILENAME
    try:
        return WordWebConfig.load(path)
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e


def build_controller(
    config: WordWebConfig, words_file: Path | None
) -> ExpansionController:
    """Wire store, word source and layout settings into a controller."""
    source_cfg = config.word_source
    if words_file is None and source_cfg.words_file:
        words_file = Path(source_cfg.words_file)

    try:
        source = create_word_source(
            provider=source_cfg.provider,
            model=source_cfg.model,
            timeout=source_cfg.timeout,
            min_words=source_cfg.min_words,
            max_words=source_cfg.max_words,
            words_file=words_file,
        )
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e

    return ExpansionController(
        TreeStore(config.layout.map_size),
        source,
        layout=config.layout,
        collision=config.collision,
    )


def grow_main(
    word: str = typer.Argument(..., help="Root concept of the mind map"),
    depth: int = typer.Option(
        1,
        "--depth",
        "-d",
        help="Expand every node until the tree reaches this depth",
        min=1,
        max=6,
        rich_help_panel="🌱 Growth Options",
    ),
    words_file: Path | None = typer.Option(
        None,
        "--words-file",
        "-w",
        help="YAML mapping of word -> related words (offline mode)",
        exists=True,
        dir_okay=False,
        readable=True,
        rich_help_panel="🌱 Growth Options",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Configuration file (defaults to ./{DEFAULT_CONFIG_FILENAME})",
        dir_okay=False,
        rich_help_panel="🔧 Global Options",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the final snapshot as JSON",
        rich_help_panel="📊 Output Options",
    ),
) -> None:
    """🌱 Grow a radial mind map from a root word.

    [bold cyan]Examples:[/bold cyan]

    [green]Expand the root only:[/green]
        $ wordweb grow Creativity

    [green]Two levels, offline vocabulary:[/green]
        $ wordweb grow Creativity --depth 2 --words-file words.yaml

    [green]Machine-readable output:[/green]
        $ wordweb grow Ocean --json
    """
    config = load_config(config_file)
    controller = build_controller(config, words_file)

    try:
        failures = asyncio.run(_grow(controller, word, depth))
    except ExpansionError as e:
        console.print(f"[red]✗ Could not expand '{word}': {e}[/red]")
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(controller.view().model_dump_json(indent=2))
        return

    snapshot = controller.store.snapshot
    console.print(_word_tree(snapshot))
    console.print(_positions_table(snapshot))

    residual = find_overlaps(snapshot, config.collision, tolerance=1.0)
    if residual:
        console.print(
            f"[yellow]⚠ {len(residual)} node pair(s) still overlap after relaxation[/yellow]"
        )
    if failures:
        console.print(
            f"[yellow]⚠ {failures} expansion(s) failed; those nodes stay collapsed[/yellow]"
        )


async def _grow(controller: ExpansionController, word: str, depth: int) -> int:
    """Expand the root, then each level concurrently; return the failure count."""
    await controller.start(word)

    failures = 0
    for level in range(1, depth):
        targets = [
            node.id
            for node in controller.store.snapshot.values()
            if node.depth == level and node.is_collapsed
        ]
        if not targets:
            break

        logger.info(f"Expanding {len(targets)} node(s) at depth {level}")
        for node_id in targets:
            controller.request_expansion(node_id)

        results = await controller.wait_idle()
        failures += sum(1 for r in results if r.status == ExpansionStatus.FAILED)

    return failures


def _word_tree(snapshot: NodeMap) -> Tree:
    root = next(node for node in snapshot.values() if node.is_root)
    tree = Tree(f"[bold magenta]{root.word}[/bold magenta]")
    branches = {root.id: tree}

    # Parents always precede their children in insertion order
    for node in snapshot.values():
        if node.is_root:
            continue
        label = node.word if node.is_expanded else f"[dim]{node.word}[/dim]"
        branches[node.id] = branches[node.parent_id].add(label)

    return tree


def _positions_table(snapshot: NodeMap) -> Table:
    table = Table(title="Node Positions", show_header=True)
    table.add_column("Id", style="cyan")
    table.add_column("Word", style="white")
    table.add_column("Depth", justify="right")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")

    for node in snapshot.values():
        table.add_row(
            node.id,
            node.word,
            str(node.depth),
            f"{node.position.x:.1f}",
            f"{node.position.y:.1f}",
        )

    return table
