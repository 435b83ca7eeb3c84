"""Immutable configuration values for safe functions."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from .context import EMPTY_CONTEXT, freeze
from .protocol import ErrorHandler
from .validation import Parser


class InputMode(Enum):
    """How the caller passes input to the finished safe function."""

    SINGLE = "single"  # fn(value)
    ARGS = "args"  # fn(*args)


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by every safe function built from one client.

    ``default_context`` is the starting context of every invocation;
    ``metadata_schema`` validates ``.metadata(...)`` calls; ``on_error`` is
    the pipeline-level error handler.
    """

    default_context: MappingProxyType = field(default_factory=lambda: EMPTY_CONTEXT)
    metadata_schema: Any = None
    on_error: Optional[ErrorHandler] = None

    def __post_init__(self) -> None:
        if not isinstance(self.default_context, MappingProxyType):
            object.__setattr__(self, "default_context", freeze(self.default_context))


@dataclass(frozen=True)
class ChainConfig:
    """Everything the execution engine needs for one safe function.

    Never mutated.  Builder calls go through :meth:`replace`, which shares
    the untouched fields (steps are kept as a tuple) with the original.
    """

    middlewares: tuple = ()
    mode: InputMode = InputMode.SINGLE
    input_parser: Optional[Parser] = None
    args_parsers: tuple = ()
    output_parser: Optional[Parser] = None
    metadata: MappingProxyType = field(default_factory=lambda: EMPTY_CONTEXT)
    metadata_parser: Optional[Parser] = None
    default_context: MappingProxyType = field(default_factory=lambda: EMPTY_CONTEXT)
    on_error: Optional[ErrorHandler] = None

    def __post_init__(self) -> None:
        # Coerce list → tuple and dict → MappingProxyType so mutation is a hard error
        if not isinstance(self.middlewares, tuple):
            object.__setattr__(self, "middlewares", tuple(self.middlewares))
        if not isinstance(self.args_parsers, tuple):
            object.__setattr__(self, "args_parsers", tuple(self.args_parsers))
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", freeze(self.metadata))
        if not isinstance(self.default_context, MappingProxyType):
            object.__setattr__(self, "default_context", freeze(self.default_context))

    def replace(self, **changes: Any) -> "ChainConfig":
        """Return a new ChainConfig with the given fields replaced."""
        return dataclasses.replace(self, **changes)
