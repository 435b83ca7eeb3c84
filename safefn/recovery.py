"""Error recovery — the replace-or-rethrow contract at an error boundary.

An error handler's return value is interpreted the same way wherever it is
evaluated (a hook middleware's own ``on_error`` or the pipeline-level one):

- ``None``                 → no opinion; the original exception propagates
- ``Recovered(value)``     → success with ``value`` (may be ``None``)
- an exception instance    → raised in place of the original
- anything else            → success with that value

An exception raised *by* the handler propagates and discards the original.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .protocol import ErrorContext, Recovered, maybe_await

if TYPE_CHECKING:
    from .config import ChainConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Interpreted error-handler result: a substituted ``value`` when
    ``recovered`` is true, else ``error`` to raise."""

    recovered: bool
    value: Any = None
    error: BaseException | None = None


def interpret(result: Any, original: Exception) -> Outcome:
    """Map an error-handler return value onto the replace-or-rethrow contract."""
    if result is None:
        return Outcome(recovered=False, error=original)
    if isinstance(result, Recovered):
        return Outcome(recovered=True, value=result.value)
    if isinstance(result, BaseException):
        return Outcome(recovered=False, error=result)
    return Outcome(recovered=True, value=result)


def settle(outcome: Outcome, original: Exception) -> Any:
    """Return the substituted value or raise the outcome's error."""
    if outcome.recovered:
        return outcome.value
    if outcome.error is original:
        raise original
    raise outcome.error from original


async def recover(config: "ChainConfig", invocation: Any, error: Exception) -> Any:
    """Run the pipeline-level ``on_error`` for a failed invocation.

    Called at most once per invocation.  ``invocation`` supplies the context
    accumulated up to the failure and the lazy input validator.  Substituted
    values go through the output parser, since they never passed the handler
    boundary.
    """
    err_ctx = ErrorContext(
        error=error,
        ctx=invocation.ctx,
        metadata=config.metadata,
        raw_input=invocation.raw_input,
        raw_args=invocation.raw_args,
        parse_input=invocation.parse_input,
    )
    result = await maybe_await(config.on_error(err_ctx))
    outcome = interpret(result, error)

    if not outcome.recovered:
        if outcome.error is not error:
            logger.warning(
                "Error handler replaced %s with %s",
                type(error).__name__,
                type(outcome.error).__name__,
            )
        return settle(outcome, error)

    logger.info("Recovered from %s: %s", type(error).__name__, error)
    value = outcome.value
    if config.output_parser is not None:
        value = config.output_parser.parse(value)
    return value
