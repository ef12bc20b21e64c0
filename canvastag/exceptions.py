"""Custom exception hierarchy for canvastag.

Exception Hierarchy:
    CanvasTagError (base)
    ├── DuplicateTagError - create with a name already in the registry
    ├── NotFoundError - unknown tag or object id
    ├── MalformedMessageError - unknown message type or bad payload
    ├── ConfigurationError - settings/environment issues
    └── StorageError - the board database could not be read or written

The mutation engine never raises for "already in the desired state"
conditions (deleting an absent tag, removing a tag an object does not carry).
Those are no-ops with a zero affected count. Only genuine conflicts surface.

Usage:
    from canvastag.exceptions import DuplicateTagError

    try:
        result = create_tag(state, "urgent")
    except DuplicateTagError as e:
        console.print(f"[red]{e}[/red]")
"""

from typing import Any, Optional


class CanvasTagError(Exception):
    """Base exception for all canvastag errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error (e.g., tag names, ids)
    """

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    @property
    def kind(self) -> str:
        """Short error name used on the wire."""
        name = type(self).__name__
        return name[: -len("Error")] if name.endswith("Error") else name


class DuplicateTagError(CanvasTagError):
    """A tag with this exact name already exists in the registry."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"Tag already exists: {tag}")


class NotFoundError(CanvasTagError):
    """A tag or object id is unknown."""

    def __init__(self, identifier: str, what: str = "object") -> None:
        self.identifier = identifier
        self.what = what
        super().__init__(f"{what.capitalize()} not found: {identifier}")


class MalformedMessageError(CanvasTagError):
    """A sync message has an unknown type or a missing/invalid field."""

    def __init__(self, reason: str, *, message_type: Optional[str] = None) -> None:
        self.reason = reason
        self.message_type = message_type
        if message_type is not None:
            super().__init__(reason, message_type=message_type)
        else:
            super().__init__(reason)


class ConfigurationError(CanvasTagError):
    """Configuration or environment setting is invalid."""

    def __init__(
        self,
        message: str = "Configuration error",
        *,
        setting: Optional[str] = None,
        **context: Any,
    ) -> None:
        if setting:
            context["setting"] = setting
        super().__init__(message, **context)


class StorageError(CanvasTagError):
    """The board database could not be read or written."""

    def __init__(self, message: str = "Storage operation failed", **context: Any) -> None:
        super().__init__(message, **context)
