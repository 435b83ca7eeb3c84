"""Middleware helpers — plain middleware and lifecycle-hook middleware.

A plain middleware is any callable ``(params) -> outcome``::

    async def auth(params):
        if not params.ctx.get("token"):
            return "denied"                      # short-circuit
        return await params.next({"user_id": "u1"})

A hook middleware splits the same onion step into optional phases::

    timing = create_middleware(
        before=lambda p: {"started": time.monotonic()},
        after=lambda p, output: None,            # observe only
        on_error=lambda p, error: None,          # no opinion → rethrow
    )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .context import merge_context
from .errors import ConfigurationError
from .protocol import MiddlewareParams, maybe_await
from .recovery import interpret, settle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookMiddleware:
    """Middleware with explicit ``before`` / ``after`` / ``on_error`` hooks.

    - ``before(params)`` runs on the way in and may return a context fragment
      (or ``None``) that is passed to ``next``.  Any other return value is a
      ``ConfigurationError``.
    - ``after(params, output)`` runs on the way out with the context
      including this middleware's fragment; a non-``None`` return replaces
      the output.
    - ``on_error(params, error)`` handles failures raised in this middleware's
      scope (its own hooks and everything inside it) with the same
      replace-or-rethrow contract as the pipeline-level error handler.  It
      runs before any outer middleware or the pipeline-level handler sees the
      error.
    """

    before: Optional[Callable[..., Any]] = None
    after: Optional[Callable[..., Any]] = None
    on_error: Optional[Callable[..., Any]] = None
    name: str = "HookMiddleware"

    def __post_init__(self) -> None:
        if self.before is None and self.after is None and self.on_error is None:
            raise ConfigurationError(
                "Middleware must define at least one of: before, after, or on_error"
            )
        for hook_name in ("before", "after", "on_error"):
            hook = getattr(self, hook_name)
            if hook is not None and not callable(hook):
                raise ConfigurationError(
                    f"{hook_name} hook must be callable, got {type(hook).__name__}"
                )

    async def __call__(self, params: MiddlewareParams) -> Any:
        scoped = params
        try:
            fragment = None
            if self.before is not None:
                fragment = await maybe_await(self.before(params))
                if fragment is not None and not isinstance(fragment, Mapping):
                    raise ConfigurationError(
                        f"{self.name} before hook must return a mapping or None, "
                        f"got {type(fragment).__name__}"
                    )
            scoped = params.replace(ctx=merge_context(params.ctx, fragment))

            output = await params.next(fragment)

            if self.after is not None:
                replacement = await maybe_await(self.after(scoped, output))
                if replacement is not None:
                    output = replacement
            return output
        except Exception as exc:
            if self.on_error is None:
                raise
            logger.debug("%s handling %s", self.name, type(exc).__name__)
            result = await maybe_await(self.on_error(scoped, exc))
            return settle(interpret(result, exc), exc)


def create_middleware(
    fn: Optional[Callable[..., Any]] = None,
    *,
    before: Optional[Callable[..., Any]] = None,
    after: Optional[Callable[..., Any]] = None,
    on_error: Optional[Callable[..., Any]] = None,
    name: Optional[str] = None,
) -> Any:
    """Define a middleware.

    With a callable (or used as a decorator) it returns the callable unchanged
    after checking it is callable.  With keyword hooks it builds a
    :class:`HookMiddleware`.
    """
    if fn is not None:
        if before is not None or after is not None or on_error is not None:
            raise ConfigurationError(
                "Pass either a middleware function or lifecycle hooks, not both"
            )
        return ensure_middleware(fn)
    return HookMiddleware(
        before=before,
        after=after,
        on_error=on_error,
        name=name or "HookMiddleware",
    )


def ensure_middleware(step: Any) -> Any:
    """Return *step* if it can be used as a middleware, else raise."""
    if not callable(step):
        raise ConfigurationError(
            f"Middleware must be callable, got {type(step).__name__}"
        )
    return step
