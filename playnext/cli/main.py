#!/usr/bin/env python3
"""
🎵 playnext - Music Library Selection Engine
CLI for inspecting snapshots and previewing selections with Typer and Rich
"""

import json
from enum import Enum
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from playnext.core.config import get_selection_defaults
from playnext.core.metadata.metadata_index import MetadataIndex, build_index
from playnext.core.models import (
    CreationTimeSort,
    Filters,
    MusicSelect,
    RandomSort,
    SearchForm,
    SimilarityParams,
    SimilaritySort,
    SortBy,
    SortKind,
    TagSort,
    Tracklist,
)
from playnext.core.scoring.score_engine import is_playable
from playnext.core.selection.selection_pipeline import SelectionPipeline, new_search_form
from playnext.core.tracklist.tracklist_machine import TracklistStateMachine
from playnext.utils.snapshot_loader import (
    SnapshotFormatError,
    load_snapshot,
    load_snapshot_with_patches,
)

console = Console()

app = typer.Typer(
    name="playnext",
    help="🎵 Music Library Selection Engine",
    add_completion=False,
    rich_markup_mode="rich",
)


class SortChoice(str, Enum):
    similarity = "similarity"
    creation_time = "creation-time"
    tag = "tag"
    random = "random"


def show_banner() -> None:
    """Display the app banner"""
    banner = Text()
    banner.append("🎵 ", style="bold magenta")
    banner.append("playnext", style="bold cyan")
    banner.append(" - Music Library Selection Engine", style="italic")

    console.print(Panel(banner, style="cyan", padding=(1, 2)))


def _load_index(snapshot: str, patches: Optional[str]) -> MetadataIndex:
    """Load and index a snapshot, exiting with an error message on failure."""
    try:
        if patches:
            raw = load_snapshot_with_patches(snapshot, patches)
        else:
            raw = load_snapshot(snapshot)
    except (OSError, json.JSONDecodeError, SnapshotFormatError) as e:
        console.print(f"[red]❌ Could not load snapshot: {e}[/red]")
        raise typer.Exit(1)
    return build_index(raw, patches=raw.patches)


def _sort_kind(sort: SortChoice, tag_key: str, keep_order: bool) -> SortKind:
    if sort == SortChoice.similarity:
        return SimilaritySort(keep_order=keep_order)
    if sort == SortChoice.creation_time:
        return CreationTimeSort()
    if sort == SortChoice.tag:
        return TagSort(key=tag_key)
    return RandomSort()


def show_selection(
    index: MetadataIndex, selection: MusicSelect, limit: int, current: Optional[int]
) -> None:
    """Print the ordered candidate list"""
    table = Table(
        title=f"🎼 Selection ({len(selection.ordered_list)} tracks)",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="green")
    table.add_column("Artist", style="yellow")
    table.add_column("Score", justify="right")

    for position, music_id in enumerate(selection.ordered_list[:limit], start=1):
        score = selection.score_map.get(music_id)
        marker = "▶ " if music_id == current else ""
        table.add_row(
            str(position),
            f"{marker}{music_id}",
            index.tag_text(music_id, "title"),
            index.tag_text(music_id, "artist"),
            f"{score:.4f}" if score is not None else "-",
        )

    console.print(table)


@app.command()
def stats(
    snapshot: str = typer.Argument(..., help="Path to a metadata snapshot JSON file"),
    patches: Optional[str] = typer.Option(
        None, "--patches", "-p", help="JSON file with a list of patches to apply"
    ),
) -> None:
    """📊 Show snapshot statistics"""
    show_banner()
    index = _load_index(snapshot, patches)

    playable = sum(1 for m in index.musics if is_playable(index.get_tags(m)))

    table = Table(
        title="📊 Library Status", show_header=True, header_style="bold magenta"
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Tracks", str(len(index.musics)))
    table.add_row("Tags", str(len(index.tags)))
    table.add_row("Users", str(len(index.users)))
    table.add_row("Tracks with Embeddings", str(len(index.embeddings)))
    table.add_row("Playable Tracks", str(playable))

    console.print(table)


@app.command()
def browse(
    snapshot: str = typer.Argument(..., help="Path to a metadata snapshot JSON file"),
    patches: Optional[str] = typer.Option(
        None, "--patches", "-p", help="JSON file with a list of patches to apply"
    ),
    sort: SortChoice = typer.Option(
        SortChoice.similarity, "--sort", "-s", help="Sort strategy"
    ),
    tag_key: str = typer.Option("title", "--tag-key", help="Tag used by --sort tag"),
    ascending: bool = typer.Option(False, "--ascending", help="Reverse the order"),
    keep_order: bool = typer.Option(
        False, "--keep-order", help="Rank against the manual selection"
    ),
    user: Optional[int] = typer.Option(None, "--user", "-u", help="Library owner"),
    query: str = typer.Option("", "--query", "-q", help="Search text or /regex"),
    temperature: Optional[float] = typer.Option(
        None,
        "--temperature",
        "-t",
        help="Randomness of the similarity order (default from config.yml)",
    ),
    played: Optional[List[int]] = typer.Option(
        None, "--played", help="Play history, oldest first (repeatable)"
    ),
    manual: Optional[int] = typer.Option(
        None, "--manual", help="Track chosen manually by the user"
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to display"),
) -> None:
    """🎼 Preview the ordered candidate list"""
    show_banner()
    index = _load_index(snapshot, patches)

    if temperature is None:
        temperature = get_selection_defaults()["default_temperature"]

    form = SearchForm(
        filters=Filters(user=user, search_query=query),
        sort=SortBy(
            kind=_sort_kind(sort, tag_key, keep_order), descending=not ascending
        ),
        similarity_params=SimilarityParams(temperature=temperature),
    )
    tracklist = Tracklist(history=list(played or []), manual_select=manual)

    selection = SelectionPipeline().select(index, tracklist, form)
    if not selection.ordered_list:
        console.print("[yellow]⚠️  No tracks match[/yellow]")
        return

    show_selection(index, selection, limit, tracklist.current)


@app.command(name="next")
def next_track(
    snapshot: str = typer.Argument(..., help="Path to a metadata snapshot JSON file"),
    patches: Optional[str] = typer.Option(
        None, "--patches", "-p", help="JSON file with a list of patches to apply"
    ),
    played: Optional[List[int]] = typer.Option(
        None, "--played", help="Play history, oldest first (repeatable)"
    ),
    queue: Optional[List[int]] = typer.Option(
        None, "--queue", help="Queued tracks (repeatable)"
    ),
) -> None:
    """⏭️ Show which track would play next"""
    index = _load_index(snapshot, patches)

    tracklist = Tracklist(history=list(played or []), queue=list(queue or []))
    machine = TracklistStateMachine(index, dispatch=lambda action: None, tracklist=tracklist)
    selection = SelectionPipeline().select(index, tracklist, new_search_form())

    action = machine.play(music_select=selection)
    if action is None:
        console.print("[yellow]⚠️  Nothing to play[/yellow]")
        raise typer.Exit(1)

    title = index.tag_text(action.id, "title") or "Unknown Track"
    artist = index.tag_text(action.id, "artist") or "Unknown Artist"
    console.print(f"⏭️  Next: [bold cyan]{action.id}[/bold cyan] {title} by {artist}")


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
