"""Validation adapters — normalise any supported schema into one ``parse``.

Supported schema shapes, resolved once when the safe function is configured:

- ``None``                       → pass-through (value returned unchanged)
- standard schema                → object exposing ``__standard_schema__``
                                   whose ``validate`` returns a value/issues
                                   result synchronously
- pydantic                       → ``TypeAdapter`` instances, ``BaseModel``
                                   subclasses and type annotations such as
                                   ``int`` or ``list[str]``
- plain callable                 → ``fn(value) -> parsed`` that raises on
                                   failure
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence, get_origin

from pydantic import PydanticSchemaGenerationError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError, ValidationError
from .protocol import StandardSchema

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationIssue:
    """One problem reported by a schema."""

    message: str
    path: tuple = field(default_factory=tuple)
    code: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path or ()))

    def prefixed(self, *segments: Any) -> "ValidationIssue":
        """Return a copy whose path starts with *segments*."""
        return ValidationIssue(
            message=self.message, path=(*segments, *self.path), code=self.code
        )


@dataclass(frozen=True)
class ValidationResult:
    """Either a parsed ``value`` or a non-empty tuple of ``issues``."""

    value: Any = None
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.issues

    @classmethod
    def success(cls, value: Any) -> "ValidationResult":
        return cls(value=value)

    @classmethod
    def failure(cls, issues: Sequence[ValidationIssue]) -> "ValidationResult":
        return cls(issues=tuple(issues))

    def unwrap(self) -> Any:
        """Return the value or raise ``ValidationError`` with the issues."""
        if self.issues:
            raise ValidationError(self.issues)
        return self.value


# ---------------------------------------------------------------------------
# Issue normalisation
# ---------------------------------------------------------------------------


def _read(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


_MISSING = object()


def _path_segment(segment: Any) -> Any:
    # Standard schema path segments may be ``{key: ...}`` objects.
    if isinstance(segment, (str, int)):
        return segment
    key = _read(segment, "key", _MISSING)
    return segment if key is _MISSING else key


def issues_from_standard(raw_issues: Sequence[Any]) -> tuple[ValidationIssue, ...]:
    """Convert standard-schema issues (mappings or objects) to ``ValidationIssue``."""
    issues = []
    for raw in raw_issues:
        path = _read(raw, "path") or ()
        issues.append(
            ValidationIssue(
                message=str(_read(raw, "message", "Invalid value")),
                path=tuple(_path_segment(p) for p in path),
                code=_read(raw, "code"),
            )
        )
    return tuple(issues)


def issues_from_pydantic(exc: PydanticValidationError) -> tuple[ValidationIssue, ...]:
    return tuple(
        ValidationIssue(message=err["msg"], path=tuple(err["loc"]), code=err["type"])
        for err in exc.errors()
    )


# ---------------------------------------------------------------------------
# Parser: tagged variant resolved once per schema
# ---------------------------------------------------------------------------


class ParserKind(Enum):
    """How a configured schema is applied."""

    PASSTHROUGH = "passthrough"
    STANDARD = "standard"
    PYDANTIC = "pydantic"
    FUNCTION = "function"


def _reject_awaitable(result: Any, schema: Any) -> None:
    if inspect.isawaitable(result):
        close = getattr(result, "close", None)
        if close is not None:
            close()  # silence "coroutine was never awaited"
        raise ConfigurationError(
            f"Async validation is not supported ({type(schema).__name__} returned "
            f"an awaitable). Use a synchronous validator."
        )


def _validate_standard(schema: Any, value: Any) -> ValidationResult:
    result = schema.__standard_schema__.validate(value)
    _reject_awaitable(result, schema)
    raw_issues = _read(result, "issues")
    if raw_issues:
        return ValidationResult.failure(issues_from_standard(raw_issues))
    return ValidationResult.success(_read(result, "value"))


def _validate_pydantic(adapter: TypeAdapter, value: Any) -> ValidationResult:
    try:
        return ValidationResult.success(adapter.validate_python(value))
    except PydanticValidationError as exc:
        return ValidationResult.failure(issues_from_pydantic(exc))


def _validate_function(fn: Callable[[Any], Any], value: Any) -> ValidationResult:
    try:
        parsed = fn(value)
    except ValidationError as exc:
        return ValidationResult.failure(exc.issues)
    except PydanticValidationError as exc:
        return ValidationResult.failure(issues_from_pydantic(exc))
    except (ValueError, TypeError) as exc:
        return ValidationResult.failure([ValidationIssue(message=str(exc))])
    _reject_awaitable(parsed, fn)
    return ValidationResult.success(parsed)


@dataclass(frozen=True)
class Parser:
    """A schema bound to the strategy that applies it.

    Build with :func:`build_parser`; call :meth:`parse` per value.
    """

    kind: ParserKind
    target: Any = None

    def validate(self, value: Any) -> ValidationResult:
        """Run the schema and return a result instead of raising."""
        if self.kind is ParserKind.PASSTHROUGH:
            return ValidationResult.success(value)
        if self.kind is ParserKind.STANDARD:
            return _validate_standard(self.target, value)
        if self.kind is ParserKind.PYDANTIC:
            return _validate_pydantic(self.target, value)
        return _validate_function(self.target, value)

    def parse(self, value: Any) -> Any:
        """Return the parsed value or raise ``ValidationError``."""
        return self.validate(value).unwrap()

    __call__ = parse


PASSTHROUGH = Parser(ParserKind.PASSTHROUGH)


def _is_type_annotation(schema: Any) -> bool:
    return isinstance(schema, type) or get_origin(schema) is not None


def _is_plain_class(schema: Any) -> bool:
    return isinstance(schema, type) and get_origin(schema) is None


def build_parser(schema: Any) -> Parser:
    """Resolve *schema* to a :class:`Parser`.

    Raises ``ConfigurationError`` for unsupported shapes and for validators
    that are detectably asynchronous.
    """
    if schema is None:
        return PASSTHROUGH
    if isinstance(schema, Parser):
        return schema

    if isinstance(schema, StandardSchema):
        props = schema.__standard_schema__
        if inspect.iscoroutinefunction(getattr(props, "validate", None)):
            raise ConfigurationError(
                f"Standard schema from vendor {getattr(props, 'vendor', '?')!r} "
                f"validates asynchronously; only synchronous validation is supported."
            )
        return Parser(ParserKind.STANDARD, schema)

    if isinstance(schema, TypeAdapter):
        return Parser(ParserKind.PYDANTIC, schema)

    if _is_type_annotation(schema):
        try:
            adapter = TypeAdapter(schema)
        except Exception as exc:
            # Plain classes pydantic cannot model parse through their constructor.
            if isinstance(exc, PydanticSchemaGenerationError) and _is_plain_class(schema):
                logger.debug("Using %s() as parse function", schema.__name__)
                return Parser(ParserKind.FUNCTION, schema)
            raise ConfigurationError(
                f"Cannot build a validator for type {schema!r}: {exc}"
            ) from exc
        return Parser(ParserKind.PYDANTIC, adapter)

    if callable(schema):
        if inspect.iscoroutinefunction(schema) or inspect.iscoroutinefunction(
            getattr(schema, "__call__", None)
        ):
            raise ConfigurationError(
                f"Async validation is not supported ({schema!r} is a coroutine "
                f"function). Use a synchronous validator."
            )
        return Parser(ParserKind.FUNCTION, schema)

    raise ConfigurationError(
        f"Unsupported schema {schema!r}: expected None, a parse callable, a "
        f"pydantic type or an object implementing __standard_schema__."
    )


def build_parsers(schemas: Sequence[Any]) -> tuple[Parser, ...]:
    return tuple(build_parser(s) for s in schemas)


def parse_args(parsers: Sequence[Parser], args: Sequence[Any]) -> tuple:
    """Validate *args* position by position.

    Each position is independently validated or passed through; positions
    past the end of *parsers* pass through.  Issues from every position are
    collected and raised together, each path prefixed with its index.  A
    non-passthrough parser whose argument is missing reports an issue.
    """
    parsed: list[Any] = []
    issues: list[ValidationIssue] = []
    for index, value in enumerate(args):
        if index >= len(parsers):
            parsed.append(value)
            continue
        result = parsers[index].validate(value)
        if result.ok:
            parsed.append(result.value)
        else:
            issues.extend(issue.prefixed(index) for issue in result.issues)

    for index in range(len(args), len(parsers)):
        if parsers[index].kind is not ParserKind.PASSTHROUGH:
            issues.append(
                ValidationIssue(
                    message=f"Missing positional argument {index}",
                    path=(index,),
                    code="missing_argument",
                )
            )

    if issues:
        logger.debug("Argument validation failed with %d issue(s)", len(issues))
        raise ValidationError(issues)
    return tuple(parsed)
