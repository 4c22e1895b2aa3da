"""Error records and human-readable messages for document construction.

Document errors are identified by kebab-case codes. Recoverable problems the
parser reported while building a tree are kept as `ParseError` records.
"""

from __future__ import annotations

from typing import Any


def generate_error_message(code: str, detail: str | None = None) -> str:
    """Generate human-readable error message from error code.

    Args:
        code: The error code string (kebab-case format)
        detail: Optional context appended to the message

    Returns:
        Human-readable error message string
    """
    messages = {
        "invalid-data": "No markup data was given",
        "data-empty": "The markup data is empty",
        "could-not-parse": "The markup could not be parsed",
        "missing-root-element": "The document has no root element",
        "not-html": "The document root is not an <html> element",
        "unreadable-source": "The markup source could not be read",
    }

    # Return message or fall back to the code itself if not found
    message = messages.get(code, code)
    if detail:
        return f"{message}: {detail}"
    return message


def _code_from_type_name(type_name: str) -> str:
    # lxml names libxml2 errors like "ERR_TAG_NAME_MISMATCH"
    name = type_name.lower()
    if name.startswith("err_"):
        name = name[4:]
    return name.replace("_", "-")


class ParseError:
    """A problem the parser recovered from, with location information."""

    __slots__ = ("code", "column", "line", "message")

    code: str
    line: int | None
    column: int | None
    message: str

    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(
        self,
        code: str,
        line: int | None = None,
        column: int | None = None,
        message: str | None = None,
    ) -> None:
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code

    @classmethod
    def from_log_entry(cls, entry: Any) -> ParseError:
        """Build a record from one lxml ``_LogEntry``."""
        return cls(
            _code_from_type_name(entry.type_name),
            line=entry.line,
            column=entry.column,
            message=(entry.message or "").strip() or None,
        )

    def __repr__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"ParseError({self.code!r}, line={self.line}, column={self.column})"
        return f"ParseError({self.code!r})"

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            if self.message != self.code:
                return f"({self.line},{self.column}): {self.code} - {self.message}"
            return f"({self.line},{self.column}): {self.code}"
        if self.message != self.code:
            return f"{self.code} - {self.message}"
        return self.code

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return self.code == other.code and self.line == other.line and self.column == other.column
