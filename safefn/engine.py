"""Execution engine — drives one invocation through the middleware onion.

For middleware ``m1 .. mN`` and handler ``h`` a call runs as
``m1(m2(...mN(h)))``: every middleware's code before ``next()`` runs in
registration order, the handler runs once, then every middleware's code after
``next()`` runs in reverse order.  Each invocation owns its own context
accumulation; the configuration it reads from is never mutated.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .config import ChainConfig, InputMode
from .context import merge_context
from .errors import ConfigurationError
from .protocol import Handler, HandlerParams, MiddlewareParams, maybe_await
from .recovery import recover
from .validation import parse_args

logger = logging.getLogger(__name__)

_UNSET = object()


def _step_name(step: Any) -> str:
    return (
        getattr(step, "__name__", None)
        or getattr(step, "name", None)
        or type(step).__name__
    )


class Invocation:
    """Per-call state: the accumulated context and the cached parsed input.

    ``ctx`` always holds the context merged up to the deepest point the chain
    has reached, so an error boundary sees exactly what was contributed
    before the failure.
    """

    def __init__(
        self,
        config: ChainConfig,
        handler: Handler,
        *,
        raw_input: Any = None,
        raw_args: Optional[tuple] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.config = config
        self.handler = handler
        self.raw_input = raw_input
        self.raw_args = raw_args
        self.ctx: MappingProxyType = merge_context(config.default_context, context)
        self._parsed: Any = _UNSET

    # ------------------------------------------------------------------
    # Lazy input validation
    # ------------------------------------------------------------------

    def parse_input(self) -> Any:
        """Validate the raw input (or args) once; later calls reuse the result."""
        if self._parsed is _UNSET:
            self._parsed = self._validate_input()
        return self._parsed

    def _validate_input(self) -> Any:
        config = self.config
        if config.mode is InputMode.ARGS:
            return parse_args(config.args_parsers, self.raw_args or ())
        if config.input_parser is None:
            return self.raw_input
        return config.input_parser.parse(self.raw_input)

    # ------------------------------------------------------------------
    # Onion dispatch
    # ------------------------------------------------------------------

    async def run(self) -> Any:
        return await self._dispatch(0, self.ctx)

    async def _dispatch(self, index: int, ctx: MappingProxyType) -> Any:
        self.ctx = ctx
        steps = self.config.middlewares
        if index == len(steps):
            return await self._call_handler(ctx)

        step = steps[index]
        current = ctx
        called = False

        async def next_(ctx: Optional[Mapping[str, Any]] = None) -> Any:
            nonlocal called
            if called:
                raise ConfigurationError(
                    f"next() called multiple times by middleware "
                    f"{_step_name(step)!r} (position {index})"
                )
            called = True
            return await self._dispatch(index + 1, merge_context(current, ctx))

        params = MiddlewareParams(
            ctx=ctx,
            metadata=self.config.metadata,
            raw_input=self.raw_input,
            raw_args=self.raw_args,
            next=next_,
            parse_input=self.parse_input,
        )
        logger.debug(
            "Entering middleware %d/%d (%s)", index + 1, len(steps), _step_name(step)
        )
        result = await maybe_await(step(params))
        if not called:
            logger.debug("Middleware %s short-circuited the chain", _step_name(step))
        return result

    async def _call_handler(self, ctx: MappingProxyType) -> Any:
        parsed = self.parse_input()
        if self.config.mode is InputMode.ARGS:
            params = HandlerParams(ctx=ctx, metadata=self.config.metadata, args=parsed)
        else:
            params = HandlerParams(ctx=ctx, metadata=self.config.metadata, input=parsed)

        result = await maybe_await(self.handler(params))

        # Validated here so enclosing after-phases observe the parsed output.
        if self.config.output_parser is not None:
            result = self.config.output_parser.parse(result)
        return result


async def execute(
    config: ChainConfig,
    handler: Handler,
    *,
    raw_input: Any = None,
    raw_args: Optional[tuple] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Run one invocation and return its output.

    Any ``Exception`` raised by a middleware, the handler or a validator is
    routed once to ``config.on_error`` when one is configured; otherwise it
    propagates unchanged.
    """
    invocation = Invocation(
        config, handler, raw_input=raw_input, raw_args=raw_args, context=context
    )
    try:
        return await invocation.run()
    except Exception as exc:
        logger.debug("Invocation failed: %s: %s", type(exc).__name__, exc)
        if config.on_error is None:
            raise
        return await recover(config, invocation, exc)
