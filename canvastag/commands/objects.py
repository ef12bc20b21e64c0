"""Canvas object commands.

The CLI board stands in for a real canvas: these commands add and remove the
objects that tags are attached to and drive the board selection.
"""

from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..config.settings import get_db_path
from ..exceptions import NotFoundError
from ..host.sqlite import SqliteCanvas
from ..models.objects import HOST_TYPE_KINDS
from ..models.tags import TagRegistry
from ..utils.output import console, print_json
from ._helpers import format_tags, handle_command_error, open_session

app = typer.Typer(help="Manage canvas objects")


@app.command()
@handle_command_error("adding object")
def add(
    name: str = typer.Argument(..., help="Object name or text"),
    host_type: str = typer.Option("STICKY", "--type", "-t", help=f"Host node type ({', '.join(HOST_TYPE_KINDS)})"),
    object_id: Optional[str] = typer.Option(None, "--id", help="Explicit object id (default: next free 1:N)"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Item description"),
):
    """Add an object to the board."""
    host_type = host_type.upper()
    if host_type not in HOST_TYPE_KINDS:
        console.print(f"[yellow]Unknown node type '{escape(host_type)}', it will be treated as 'other'[/yellow]")
    canvas = SqliteCanvas(get_db_path())
    obj = canvas.add_object(name, host_type=host_type, object_id=object_id, description=description)
    console.print(f"[green]✅ Added {escape(obj.id)}[/green] {escape(obj.name)}")


@app.command("list")
@handle_command_error("listing objects")
def list_objects(
    json_output: bool = typer.Option(False, "--json", help="Print the object index as JSON"),
):
    """List board objects with their tags."""
    with open_session() as session:
        state = session.view.state
        objects = state.objects()

        if json_output:
            print_json([obj.to_dict() for obj in objects])
            return

        if not objects:
            console.print("[yellow]No objects on the board[/yellow]")
            return

        selected = set(session.view.selection)
        registry: TagRegistry = state.registry
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Kind", style="magenta")
        table.add_column("Tags")
        table.add_column("", justify="center")
        for obj in objects:
            table.add_row(
                escape(obj.id),
                escape(obj.name),
                obj.kind.value,
                format_tags(obj.tags, registry),
                "●" if obj.id in selected else "",
            )
        console.print(table)


@app.command()
@handle_command_error("removing object")
def remove(object_id: str = typer.Argument(..., help="Object to delete")):
    """Delete an object and its tags from the board."""
    canvas = SqliteCanvas(get_db_path())
    if not canvas.remove_object(object_id):
        raise NotFoundError(object_id)
    console.print(f"[green]✅ Removed {escape(object_id)}[/green]")


@app.command()
@handle_command_error("selecting objects")
def select(
    object_ids: Optional[List[str]] = typer.Argument(None, help="Objects to select"),
    clear: bool = typer.Option(False, "--clear", help="Clear the selection"),
):
    """Set or show the board selection."""
    canvas = SqliteCanvas(get_db_path())
    if clear:
        canvas.set_selection([])
        console.print("[green]Selection cleared[/green]")
        return

    if not object_ids:
        current = canvas.get_selection()
        if not current:
            console.print("[dim]Nothing selected[/dim]")
        for oid in current:
            console.print(escape(oid))
        return

    selection = canvas.set_selection(object_ids)
    missing = [oid for oid in object_ids if oid not in selection]
    if missing:
        console.print(f"[yellow]Unknown object(s) ignored: {escape(', '.join(missing))}[/yellow]")
    console.print(f"[green]Selected {len(selection)} object(s)[/green]")
