"""Safe function error types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .validation import ValidationIssue


class ValidationError(Exception):
    """A value failed its schema.

    Raised for the call input, a positional argument, the handler output or
    the configured metadata.  ``issues`` holds every problem the schema
    reported, in order; the message is the first issue's message.
    """

    def __init__(self, issues: Iterable["ValidationIssue"]) -> None:
        self.issues: tuple["ValidationIssue", ...] = tuple(issues)
        first = self.issues[0].message if self.issues else "Validation failed"
        super().__init__(first)

    def __repr__(self) -> str:
        return f"ValidationError(issues={list(self.issues)!r})"


class ConfigurationError(Exception):
    """Invalid safe function wiring.

    Examples:
    - A schema that is neither a parse callable, a standard schema nor a type
      pydantic can build an adapter for.
    - An asynchronous validator where only synchronous parsing is supported.
    - A hook middleware that defines none of ``before``, ``after``, ``on_error``.
    - A middleware calling ``next()`` more than once in the same invocation.
    """
