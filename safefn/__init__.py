"""Safe functions — a middleware onion around a validated handler.

Public surface::

    from safefn import (
        create_client,
        create_safe_fn,
        create_middleware,
        SafeFn,
        SafeFunction,
        HookMiddleware,
        ClientConfig,
        MiddlewareParams,
        HandlerParams,
        ErrorContext,
        Recovered,
        ValidationIssue,
        ValidationError,
        ConfigurationError,
    )
"""

from .builder import SafeFn, SafeFunction, create_client, create_safe_fn
from .config import ChainConfig, ClientConfig, InputMode
from .context import merge_context
from .engine import execute
from .errors import ConfigurationError, ValidationError
from .middleware import HookMiddleware, create_middleware
from .protocol import (
    ErrorContext,
    ErrorHandler,
    Handler,
    HandlerParams,
    Middleware,
    MiddlewareParams,
    Recovered,
    StandardSchema,
    StandardSchemaProps,
)
from .validation import Parser, ParserKind, ValidationIssue, ValidationResult, build_parser

__all__ = [
    "create_client",
    "create_safe_fn",
    "create_middleware",
    "execute",
    "merge_context",
    "build_parser",
    "SafeFn",
    "SafeFunction",
    "HookMiddleware",
    "ClientConfig",
    "ChainConfig",
    "InputMode",
    "Middleware",
    "MiddlewareParams",
    "HandlerParams",
    "ErrorContext",
    "ErrorHandler",
    "Handler",
    "Recovered",
    "StandardSchema",
    "StandardSchemaProps",
    "Parser",
    "ParserKind",
    "ValidationIssue",
    "ValidationResult",
    "ValidationError",
    "ConfigurationError",
]
