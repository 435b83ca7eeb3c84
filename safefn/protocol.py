"""Structural protocols and parameter objects for the execution engine."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from .context import EMPTY_CONTEXT

NextFn = Callable[..., Awaitable[Any]]


@runtime_checkable
class StandardSchema(Protocol):
    """Any schema object implementing the standard validation entry point.

    ``__standard_schema__`` must expose ``version``, ``vendor`` and a
    synchronous ``validate(value)`` returning either ``{"value": ...}`` or
    ``{"issues": [...]}`` (mappings or objects with those attributes).  Each
    issue carries a ``message`` and an optional ``path``.
    """

    __standard_schema__: Any


@dataclass(frozen=True)
class StandardSchemaProps:
    """Ready-made ``__standard_schema__`` value for hand-written schemas."""

    validate: Callable[[Any], Any]
    vendor: str = "safefn"
    version: int = 1


@dataclass(frozen=True)
class MiddlewareParams:
    """What a middleware receives for one step of one invocation.

    ``next`` proceeds to the following middleware (or the handler), merging
    the optional context fragment first, and returns the downstream outcome.
    ``parse_input`` validates the raw input on demand; the result is cached
    for the whole invocation.
    """

    ctx: MappingProxyType
    metadata: MappingProxyType
    raw_input: Any
    raw_args: Optional[tuple]
    next: NextFn
    parse_input: Callable[[], Any]

    def replace(self, **changes: Any) -> "MiddlewareParams":
        return replace(self, **changes)


@dataclass(frozen=True)
class HandlerParams:
    """What the terminal handler receives.

    Single-input functions get ``input``; multi-argument functions get
    ``args`` (``input`` is then ``None``).
    """

    ctx: MappingProxyType
    metadata: MappingProxyType
    input: Any = None
    args: tuple = field(default_factory=tuple)


@dataclass(frozen=True)
class ErrorContext:
    """What the pipeline-level error handler receives."""

    error: Exception
    ctx: MappingProxyType = field(default_factory=lambda: EMPTY_CONTEXT)
    metadata: MappingProxyType = field(default_factory=lambda: EMPTY_CONTEXT)
    raw_input: Any = None
    raw_args: Optional[tuple] = None
    parse_input: Optional[Callable[[], Any]] = None


@dataclass(frozen=True)
class Recovered:
    """Explicit substitution returned from an error handler.

    Needed only to substitute ``None`` (a bare ``None`` means "no opinion").
    """

    value: Any = None


@runtime_checkable
class Middleware(Protocol):
    """Structural interface for a middleware step.

    Plain functions (sync or async) and :class:`~safefn.middleware.HookMiddleware`
    both satisfy this.  The return value is the step's outcome; awaitables
    are awaited by the engine.
    """

    def __call__(self, params: MiddlewareParams) -> Any: ...


class ErrorHandler(Protocol):
    """``on_error`` callable: value to substitute, ``None`` to rethrow, or raise."""

    def __call__(self, err: ErrorContext) -> Any: ...


class Handler(Protocol):
    """Terminal handler: ``(HandlerParams) -> output`` (sync or async)."""

    def __call__(self, params: HandlerParams) -> Any: ...


async def maybe_await(value: Any) -> Any:
    """Await *value* if it is awaitable; sync callables return plain values."""
    if inspect.isawaitable(value):
        return await value
    return value
