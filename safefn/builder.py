"""SafeFn — immutable fluent builder for safe functions.

Build via the fluent API::

    client = create_client(default_context={"request_id": "req-1"})

    get_user = (
        client
        .use(auth)
        .use([timing, audit])            # same as .use(timing).use(audit)
        .metadata({"operation": "get_user"})
        .input(UserQuery)                # pydantic model, standard schema or callable
        .output(User)
        .handler(lambda p: load_user(p.ctx["user_id"], p.input))
    )

    user = await get_user({"id": 7})
    user = get_user.run({"id": 7})       # sync entry point

Every builder call returns a *new* ``SafeFn``; the receiver is never
modified, so a partially configured builder can be shared as a base.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Mapping, Optional

from .config import ChainConfig, ClientConfig, InputMode
from .context import freeze
from .engine import execute
from .errors import ConfigurationError
from .middleware import ensure_middleware
from .protocol import ErrorHandler, Handler
from .validation import build_parser, build_parsers

logger = logging.getLogger(__name__)


class SafeFn:
    """Fluent configuration of one safe function (immutable)."""

    def __init__(self, config: Optional[ChainConfig] = None) -> None:
        self._config = config if config is not None else ChainConfig()

    @property
    def config(self) -> ChainConfig:
        return self._config

    def _with(self, **changes: Any) -> "SafeFn":
        return SafeFn(self._config.replace(**changes))

    # ------------------------------------------------------------------
    # Fluent builder
    # ------------------------------------------------------------------

    def use(self, middleware: Any) -> "SafeFn":
        """Append one middleware, or a list/tuple of them in order."""
        if isinstance(middleware, (list, tuple)):
            added = tuple(ensure_middleware(m) for m in middleware)
        else:
            added = (ensure_middleware(middleware),)
        return self._with(middlewares=self._config.middlewares + added)

    def input(self, schema: Any = None) -> "SafeFn":
        """Single-value calls; ``schema`` validates the value (``None`` = no validation)."""
        parser = None if schema is None else build_parser(schema)
        return self._with(mode=InputMode.SINGLE, input_parser=parser, args_parsers=())

    def args(self, *schemas: Any) -> "SafeFn":
        """Positional calls; one schema per position, ``None`` passes a position through."""
        return self._with(
            mode=InputMode.ARGS, input_parser=None, args_parsers=build_parsers(schemas)
        )

    def output(self, schema: Any) -> "SafeFn":
        """Validate the handler's return value."""
        parser = None if schema is None else build_parser(schema)
        return self._with(output_parser=parser)

    def metadata(self, metadata: Mapping[str, Any]) -> "SafeFn":
        """Attach static metadata, validated by the client's metadata schema."""
        if self._config.metadata_parser is not None:
            metadata = self._config.metadata_parser.parse(metadata)
        return self._with(metadata=freeze(_as_mapping(metadata)))

    def handler(self, fn: Handler) -> "SafeFunction":
        """Terminate the chain and return the invocable safe function."""
        if not callable(fn):
            raise ConfigurationError(
                f"Handler must be callable, got {type(fn).__name__}"
            )
        return SafeFunction(self._config, fn)

    def __repr__(self) -> str:
        return (
            f"SafeFn(middlewares={len(self._config.middlewares)}, "
            f"mode={self._config.mode.value})"
        )


def _as_mapping(value: Any) -> Mapping[str, Any]:
    # Metadata schemas may parse into a pydantic model.
    if isinstance(value, Mapping):
        return value
    dump = getattr(value, "model_dump", None)
    if callable(dump):
        return dump()
    raise ConfigurationError(
        f"Metadata must be a mapping, got {type(value).__name__}"
    )


class SafeFunction:
    """The invocable result of ``SafeFn.handler``.

    ``await fn(value)`` for single-input functions, ``await fn(*args)`` for
    ``.args(...)`` functions.  ``context=`` overlays fields on the default
    context for this call only.
    """

    def __init__(self, config: ChainConfig, handler: Handler) -> None:
        self._config = config
        self._handler = handler

    @property
    def config(self) -> ChainConfig:
        return self._config

    async def __call__(
        self, *args: Any, context: Optional[Mapping[str, Any]] = None
    ) -> Any:
        if self._config.mode is InputMode.ARGS:
            return await execute(
                self._config,
                self._handler,
                raw_input=args,
                raw_args=args,
                context=context,
            )
        if len(args) > 1:
            raise TypeError(
                f"Safe function takes a single input but {len(args)} were given; "
                f"configure it with .args(...) for positional arguments"
            )
        return await execute(
            self._config,
            self._handler,
            raw_input=args[0] if args else None,
            context=context,
        )

    def run(self, *args: Any, context: Optional[Mapping[str, Any]] = None) -> Any:
        """Sync entry point; must not be called from a running event loop."""
        return asyncio.run(self(*args, context=context))

    def __repr__(self) -> str:
        name = getattr(self._handler, "__name__", type(self._handler).__name__)
        return f"SafeFunction({name}, middlewares={len(self._config.middlewares)})"


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def create_safe_fn() -> SafeFn:
    """A builder with no default context, metadata schema or error handler."""
    return SafeFn()


def create_client(
    config: Optional[ClientConfig] = None,
    *,
    default_context: Optional[Mapping[str, Any]] = None,
    metadata_schema: Any = None,
    on_error: Optional[ErrorHandler] = None,
) -> SafeFn:
    """Create a builder carrying client-wide settings.

    Pass a :class:`ClientConfig` or the same settings as keywords (keywords
    override the config's values).
    """
    config = config or ClientConfig()
    overrides = {
        key: value
        for key, value in (
            ("default_context", default_context),
            ("metadata_schema", metadata_schema),
            ("on_error", on_error),
        )
        if value is not None
    }
    if overrides:
        config = dataclasses.replace(config, **overrides)

    if config.on_error is not None and not callable(config.on_error):
        raise ConfigurationError(
            f"on_error must be callable, got {type(config.on_error).__name__}"
        )

    logger.debug(
        "Creating client (default_context keys=%s, metadata_schema=%s, on_error=%s)",
        sorted(config.default_context),
        config.metadata_schema is not None,
        config.on_error is not None,
    )
    return SafeFn(
        ChainConfig(
            default_context=config.default_context,
            metadata_parser=(
                None
                if config.metadata_schema is None
                else build_parser(config.metadata_schema)
            ),
            on_error=config.on_error,
        )
    )
