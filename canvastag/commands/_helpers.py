"""Shared command helpers.

This module provides:
- open_session(): Board-backed LocalSession for the current database
- @handle_command_error: Consistent error handling decorator
- format_tag(): Emoji + name rendering with the tag's color
- report_failures(): Print operation-failed pushes and exit
"""

from functools import wraps
from typing import Any, Callable, Iterable, Optional, TypeVar

import typer
from rich.color import Color, ColorParseError
from rich.markup import escape

from ..config.settings import get_db_path
from ..host.sqlite import SqliteCanvas
from ..models.tags import TagMeta
from ..sync.messages import OperationFailed, Push
from ..sync.session import LocalSession
from ..utils.output import console

F = TypeVar("F", bound=Callable[..., Any])


def open_session() -> LocalSession:
    """Open the board database and bootstrap a session against it."""
    return LocalSession(SqliteCanvas(get_db_path()))


def handle_command_error(operation: Optional[str] = None, *, exit_code: int = 1) -> Callable[[F], F]:
    """Decorator for consistent error handling in CLI commands.

    Catches exceptions and displays a formatted error message before exiting.
    typer.Abort (declined confirmation) exits cleanly with "Cancelled".
    """

    def decorator(func: F) -> F:
        op = operation or func.__name__.replace("_", " ")

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except typer.Abort:
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0) from None
            except Exception as e:
                console.print(f"[red]Error {op}: {escape(str(e))}[/red]")
                raise typer.Exit(exit_code) from e

        return wrapper  # type: ignore[return-value]

    return decorator


def _is_color(value: str) -> bool:
    try:
        Color.parse(value)
    except ColorParseError:
        return False
    return True


def format_tag(name: str, meta: Optional[TagMeta] = None) -> str:
    """Rich markup for a tag chip. Unregistered tags render dim."""
    label = escape(name)
    if meta is None:
        return f"[dim]{label}[/dim]"
    if meta.emoji:
        label = f"{escape(meta.emoji)} {label}"
    if meta.color and _is_color(meta.color):
        return f"[{meta.color}]{label}[/]"
    return f"[cyan]{label}[/cyan]"


def format_tags(names: Iterable[str], registry) -> str:
    return " ".join(format_tag(name, registry.get(name)) for name in names)


def report_failures(pushes: Iterable[Push]) -> None:
    """Print any operation-failed pushes and exit non-zero."""
    failures = [p for p in pushes if isinstance(p, OperationFailed)]
    if not failures:
        return
    for failure in failures:
        console.print(f"[red]Error: {escape(failure.message)}[/red]")
    raise typer.Exit(1)


def require_refresh(pushes: Iterable[Push], kind: type) -> Any:
    """Return the first push of ``kind``, or exit if the controller sent none."""
    for push in pushes:
        if isinstance(push, kind):
            return push
    console.print("[red]Error: request was rejected by the controller[/red]")
    raise typer.Exit(1)


def print_notifications(session: LocalSession) -> None:
    for message in session.host.notifications:
        console.print(f"[dim]{escape(message)}[/dim]")
    session.host.notifications.clear()
