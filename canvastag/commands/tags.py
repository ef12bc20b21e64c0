"""Tag management commands for canvastag.

All tag-related commands live under `canvastag tag <subcommand>`. Each command
opens a session against the board, sends one intent to the controller and
renders the snapshot that comes back.
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..config.constants import (
    CSV_HEADERS,
    DEFAULT_LIST_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
    EXPORT_FORMATS,
    MAX_EMOJI_CHARS,
)
from ..config.settings import get_env_var
from ..exceptions import NotFoundError
from ..models.tags import TagMeta
from ..services.filtering import FilterState, filter_objects, tag_suggestions, tag_usage
from ..sync.messages import (
    AssignTags,
    CreateTag,
    DeleteTag,
    Export,
    ExportReady,
    FindByTag,
    FocusObject,
    MergeTags,
    ObjectUpdated,
    RegistryUpdated,
    RemoveTags,
    RenameTag,
    SelectionChanged,
    UpdateTag,
)
from ..utils.output import console
from ._helpers import (
    format_tag,
    format_tags,
    handle_command_error,
    open_session,
    print_notifications,
    report_failures,
    require_refresh,
)

app = typer.Typer(help="Manage canvas tags")


def _warn_long_emoji(emoji: Optional[str]) -> None:
    if emoji and len(emoji) > MAX_EMOJI_CHARS:
        console.print(f"[yellow]Emoji markers work best with at most {MAX_EMOJI_CHARS} characters[/yellow]")


@app.command()
@handle_command_error("creating tag")
def create(
    name: str = typer.Argument(..., help="Tag name (case-sensitive)"),
    color: Optional[str] = typer.Option(None, "--color", "-c", help="Display color, e.g. #ff0000"),
    emoji: Optional[str] = typer.Option(None, "--emoji", "-e", help="Short emoji marker"),
):
    """Create a new tag."""
    _warn_long_emoji(emoji)
    with open_session() as session:
        pushes = session.send(CreateTag(tag=name, meta=TagMeta(color=color, emoji=emoji)))
        report_failures(pushes)
        require_refresh(pushes, RegistryUpdated)
        meta = session.view.state.get_tag(name)
        console.print(f"[green]✅ Created tag[/green] {format_tag(name, meta)}")


@app.command()
@handle_command_error("updating tag")
def update(
    name: str = typer.Argument(..., help="Tag to restyle"),
    color: Optional[str] = typer.Option(None, "--color", "-c", help="New display color"),
    emoji: Optional[str] = typer.Option(None, "--emoji", "-e", help="New emoji marker"),
):
    """Change a tag's color and emoji. Options left out keep their current value."""
    _warn_long_emoji(emoji)
    with open_session() as session:
        current = session.view.state.get_tag(name)
        if current is None:
            console.print(f"[yellow]Tag '{escape(name)}' is not registered, nothing to update[/yellow]")
            return
        meta = TagMeta(color=color, emoji=emoji).fold(current)
        pushes = session.send(UpdateTag(tag=name, meta=meta))
        report_failures(pushes)
        require_refresh(pushes, RegistryUpdated)
        console.print(f"[green]✅ Updated tag[/green] {format_tag(name, session.view.state.get_tag(name))}")


@app.command()
@handle_command_error("deleting tag")
def delete(
    name: str = typer.Argument(..., help="Tag to delete"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Delete a tag and strip it from every object."""
    with open_session() as session:
        state = session.view.state
        usage = tag_usage(state.index).get(name, 0)
        if state.get_tag(name) is None and usage == 0:
            console.print(f"[yellow]Tag '{escape(name)}' not found, nothing to delete[/yellow]")
            return

        if not force:
            console.print(
                f"\n[yellow]This will delete tag '{escape(name)}' and remove it from "
                f"{usage} object(s)[/yellow]"
            )
            typer.confirm("Continue?", abort=True)

        pushes = session.send(DeleteTag(tag=name))
        report_failures(pushes)
        refresh = require_refresh(pushes, RegistryUpdated)
        console.print(f"[green]✅ Deleted tag '{escape(name)}'[/green]")
        console.print(f"[dim]Removed from {refresh.affected} object(s)[/dim]")


@app.command()
@handle_command_error("renaming tag")
def rename(
    old_tag: str = typer.Argument(..., help="Current tag name"),
    new_tag: str = typer.Argument(..., help="New tag name"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Rename a tag everywhere. Renaming onto an existing tag merges the two."""
    if old_tag == new_tag:
        console.print("[yellow]Old and new names are the same, nothing to do[/yellow]")
        return

    with open_session() as session:
        state = session.view.state
        usage = tag_usage(state.index).get(old_tag, 0)
        if state.get_tag(old_tag) is None and usage == 0:
            raise NotFoundError(old_tag, what="tag")

        if not force:
            note = " (it already exists, the two will be merged)" if state.get_tag(new_tag) else ""
            console.print(
                f"\n[yellow]This will rename tag '{escape(old_tag)}' to '{escape(new_tag)}'{note} "
                f"across {usage} object(s)[/yellow]"
            )
            typer.confirm("Continue?", abort=True)

        pushes = session.send(RenameTag(source=old_tag, target=new_tag))
        report_failures(pushes)
        require_refresh(pushes, RegistryUpdated)
        console.print(f"[green]✅ Renamed tag '{escape(old_tag)}' to '{escape(new_tag)}'[/green]")
        print_notifications(session)


@app.command()
@handle_command_error("merging tags")
def merge(
    source_tags: List[str] = typer.Argument(..., help="Source tags to merge"),
    target: str = typer.Option(..., "--into", "-i", help="Target tag to merge into"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Merge several tags into one."""
    with open_session() as session:
        state = session.view.state
        usage = tag_usage(state.index)
        known = [t for t in source_tags if t != target and (state.get_tag(t) or usage.get(t))]

        if not known:
            console.print("[red]Error: No valid source tags found[/red]")
            raise typer.Exit(1)

        if not force:
            console.print(f"\n[yellow]This will merge {len(known)} tag(s) into '{escape(target)}':[/yellow]")
            for tag in known:
                console.print(f"  • {format_tag(tag, state.get_tag(tag))} ({usage.get(tag, 0)} objects)")
            typer.confirm("Continue?", abort=True)

        pushes = session.send(MergeTags(into=target, sources=tuple(source_tags)))
        report_failures(pushes)
        refresh = require_refresh(pushes, RegistryUpdated)
        console.print(f"[green]✅ Merged {len(known)} tag(s) into '{escape(target)}'[/green]")
        console.print(f"[dim]Updated {refresh.affected} object(s)[/dim]")


def _target_ids(session, object_ids: Optional[List[str]]) -> List[str]:
    """Explicit ids, or the current canvas selection when none were given."""
    ids = list(object_ids or session.view.selection)
    if not ids:
        console.print("[yellow]No objects given and nothing selected[/yellow]")
        raise typer.Exit(1)
    return ids


def _print_object_result(session, refresh: ObjectUpdated, verb: str) -> None:
    registry = session.view.state.registry
    console.print(f"[green]✅ {verb} {refresh.affected} object(s)[/green]")
    for obj in refresh.objects:
        tags = format_tags(obj.tags, registry) or "[dim](no tags)[/dim]"
        console.print(f"  [dim]{escape(obj.id)}[/dim] {escape(obj.name)}: {tags}")
    if refresh.skipped:
        console.print(f"[yellow]Skipped unknown object(s): {escape(', '.join(refresh.skipped))}[/yellow]")


@app.command()
@handle_command_error("assigning tags")
def assign(
    tags: List[str] = typer.Argument(..., help="Tags to add"),
    object_ids: Optional[List[str]] = typer.Option(
        None, "--object", "-o", help="Object id (repeatable); defaults to the current selection"
    ),
):
    """Add tags to objects."""
    with open_session() as session:
        ids = _target_ids(session, object_ids)
        pushes = session.send(AssignTags(object_ids=tuple(ids), tags=tuple(tags)))
        report_failures(pushes)
        _print_object_result(session, require_refresh(pushes, ObjectUpdated), "Tagged")


@app.command()
@handle_command_error("removing tags")
def remove(
    tags: List[str] = typer.Argument(..., help="Tags to remove"),
    object_ids: Optional[List[str]] = typer.Option(
        None, "--object", "-o", help="Object id (repeatable); defaults to the current selection"
    ),
):
    """Remove tags from objects."""
    with open_session() as session:
        ids = _target_ids(session, object_ids)
        pushes = session.send(RemoveTags(object_ids=tuple(ids), tags=tuple(tags)))
        report_failures(pushes)
        _print_object_result(session, require_refresh(pushes, ObjectUpdated), "Untagged")


@app.command()
@handle_command_error("finding tag")
def find(tag: str = typer.Argument(..., help="Tag to select objects by")):
    """Select every object carrying a tag."""
    with open_session() as session:
        pushes = session.send(FindByTag(tag=tag))
        if not any(isinstance(p, SelectionChanged) for p in pushes):
            print_notifications(session)
            return
        selected = session.view.selected_objects()
        label = format_tag(tag, session.view.state.get_tag(tag))
        console.print(f"[green]Selected {len(selected)} object(s) tagged[/green] {label}")
        for obj in selected:
            console.print(f"  [dim]{escape(obj.id)}[/dim] {escape(obj.name)} [dim]({obj.kind.value})[/dim]")


@app.command()
@handle_command_error("focusing object")
def focus(object_id: str = typer.Argument(..., help="Object to scroll to and select")):
    """Scroll to an object and select it."""
    with open_session() as session:
        pushes = session.send(FocusObject(object_id=object_id))
        if not any(isinstance(p, SelectionChanged) for p in pushes):
            raise NotFoundError(object_id)
        console.print(f"[green]Focused {escape(object_id)}[/green]")


@app.command("list")
@handle_command_error("listing tags")
def list_tags(
    sort: str = typer.Option("usage", "--sort", "-s", help="Sort by: usage, name"),
    limit: int = typer.Option(DEFAULT_LIST_LIMIT, "--limit", "-n", help="Maximum tags to show"),
):
    """List all tags with usage counts, including unregistered ones in use."""
    with open_session() as session:
        state = session.view.state
        usage = tag_usage(state.index)
        names = set(state.registry) | set(usage)

        if not names:
            console.print("[yellow]No tags found[/yellow]")
            return

        if sort == "name":
            ordered = sorted(names)
        else:
            ordered = sorted(names, key=lambda n: (-usage.get(n, 0), n))

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Tag")
        table.add_column("Color", style="dim")
        table.add_column("Emoji")
        table.add_column("Objects", style="yellow", justify="right")

        orphans = set(state.orphan_tags())
        for name in ordered[:limit]:
            meta = state.get_tag(name)
            label = format_tag(name, meta)
            if name in orphans:
                label += " [dim](unregistered)[/dim]"
            table.add_row(
                label,
                escape(meta.color) if meta and meta.color else "",
                escape(meta.emoji) if meta and meta.emoji else "",
                str(usage.get(name, 0)),
            )

        console.print(table)
        if len(ordered) > limit:
            console.print(f"\n[dim]Showing {limit} of {len(ordered)} tags[/dim]")
        console.print(f"\n[dim]Total tags: {len(ordered)}[/dim]")


@app.command("filter")
@handle_command_error("filtering objects")
def filter_cmd(
    query: str = typer.Option("", "--query", "-q", help="Match name, description or tag text"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Require any of these tags"),
    untagged: bool = typer.Option(False, "--untagged", "-u", help="Only objects without tags"),
):
    """List objects matching a search, tags, or untagged filter."""
    with open_session() as session:
        state = session.view.state
        criteria = FilterState(search_query=query, selected_tags=tuple(tags or ()), show_untagged=untagged)
        matches = filter_objects(state.index, criteria)

        if not matches:
            console.print("[yellow]No objects match[/yellow]")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Kind", style="magenta")
        table.add_column("Tags")
        for obj in matches:
            table.add_row(escape(obj.id), escape(obj.name), obj.kind.value, format_tags(obj.tags, state.registry))

        console.print(table)
        console.print(f"\n[dim]{len(matches)} of {len(state.index)} object(s)[/dim]")


@app.command()
@handle_command_error("suggesting tags")
def suggest(
    partial: str = typer.Argument("", help="Tag prefix"),
    limit: int = typer.Option(DEFAULT_SUGGESTION_LIMIT, "--limit", "-n", help="Maximum suggestions"),
):
    """Suggest existing tag names by prefix, most used first."""
    with open_session() as session:
        state = session.view.state
        names = tag_suggestions(state.registry, state.index, partial, limit=limit)
        if not names:
            console.print("[yellow]No matching tags[/yellow]")
            return
        for name in names:
            console.print(format_tag(name, state.get_tag(name)))


@app.command()
@handle_command_error("exporting tags")
def export(
    fmt: str = typer.Option("csv", "--format", "-F", help="csv or json"),
    variant: Optional[str] = typer.Option(None, "--variant", help="CSV header variant: nodes or items"),
    include_untagged: bool = typer.Option(False, "--all", "-a", help="Include objects without tags"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout"),
):
    """Export the tag map as CSV or JSON."""
    fmt = fmt.lower()
    variant = (variant or get_env_var("CANVASTAG_CSV_VARIANT")).lower()
    if fmt not in EXPORT_FORMATS:
        console.print(f"[red]Error: Unknown format '{escape(fmt)}'. Use one of: {', '.join(EXPORT_FORMATS)}[/red]")
        raise typer.Exit(1)
    if variant not in CSV_HEADERS:
        console.print(f"[red]Error: Unknown variant '{escape(variant)}'. Use one of: {', '.join(CSV_HEADERS)}[/red]")
        raise typer.Exit(1)

    with open_session() as session:
        pushes = session.send(Export(format=fmt, variant=variant, include_untagged=include_untagged))
        report_failures(pushes)
        ready = require_refresh(pushes, ExportReady)

        if output:
            output.write_text(ready.content + "\n", encoding="utf-8")
            console.print(f"[green]✅ Exported to {escape(str(output))}[/green]")
        else:
            typer.echo(ready.content)
