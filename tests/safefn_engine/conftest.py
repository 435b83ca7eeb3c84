"""Shared fixtures and reusable dummy middleware for safe function tests.

Every helper here is a generic dummy that only uses the public ``safefn``
primitives (MiddlewareParams, HandlerParams, StandardSchemaProps).
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from safefn import HandlerParams, MiddlewareParams, StandardSchemaProps

# ---------------------------------------------------------------------------
# Reusable dummy middleware
# ---------------------------------------------------------------------------


class Tagged:
    """Appends ``before:<tag>`` / ``after:<tag>`` to a shared event log."""

    def __init__(self, tag: str, log: list[str], fragment: dict | None = None):
        self.tag = tag
        self.log = log
        self.fragment = fragment
        self.__name__ = f"Tagged({tag})"

    async def __call__(self, params: MiddlewareParams) -> Any:
        self.log.append(f"before:{self.tag}")
        result = await params.next(self.fragment)
        self.log.append(f"after:{self.tag}")
        return result


class AddContext:
    """Contributes a fixed context fragment and passes the result through."""

    def __init__(self, **fields: Any):
        self.fields = fields

    async def __call__(self, params: MiddlewareParams) -> Any:
        return await params.next(self.fields)


class ShortCircuit:
    """Returns *value* without calling ``next``."""

    def __init__(self, value: Any, log: list[str] | None = None):
        self.value = value
        self.log = log

    async def __call__(self, params: MiddlewareParams) -> Any:
        if self.log is not None:
            self.log.append("short-circuit")
        return self.value


class Wrap:
    """Rewrites the in-flight result as ``f"{prefix}({result})"``."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    async def __call__(self, params: MiddlewareParams) -> Any:
        result = await params.next()
        return f"{self.prefix}({result})"


class Boom:
    """Always raises RuntimeError before calling ``next``."""

    def __init__(self, message: str = "boom"):
        self.message = message

    async def __call__(self, params: MiddlewareParams) -> Any:
        raise RuntimeError(self.message)


class CtxRecorder:
    """Records the context it sees on the way in."""

    def __init__(self):
        self.seen: list[dict] = []

    async def __call__(self, params: MiddlewareParams) -> Any:
        self.seen.append(dict(params.ctx))
        return await params.next()


class SyncPassThrough:
    """Plain sync middleware returning ``next()``'s awaitable directly."""

    def __call__(self, params: MiddlewareParams) -> Any:
        return params.next({"sync": True})


# ---------------------------------------------------------------------------
# Dummy handlers
# ---------------------------------------------------------------------------


def echo_input(params: HandlerParams) -> Any:
    return params.input


def echo_args(params: HandlerParams) -> Any:
    return params.args


def dump_ctx(params: HandlerParams) -> dict:
    return dict(params.ctx)


async def async_echo_input(params: HandlerParams) -> Any:
    await asyncio.sleep(0)
    return params.input


# ---------------------------------------------------------------------------
# Hand-written standard schemas
# ---------------------------------------------------------------------------


class IntSchema:
    """Standard schema accepting ints only (bools rejected)."""

    def __init__(self):
        self.__standard_schema__ = StandardSchemaProps(
            validate=self._validate, vendor="tests"
        )

    @staticmethod
    def _validate(value: Any) -> dict:
        if isinstance(value, int) and not isinstance(value, bool):
            return {"value": value}
        return {"issues": [{"message": "Expected integer", "path": []}]}


class NameSchema:
    """Standard schema for ``{"name": str}`` that strips whitespace."""

    def __init__(self):
        self.__standard_schema__ = StandardSchemaProps(
            validate=self._validate, vendor="tests"
        )

    @staticmethod
    def _validate(value: Any) -> dict:
        if not isinstance(value, dict):
            return {"issues": [{"message": "Expected object"}]}
        name = value.get("name")
        if not isinstance(name, str):
            return {
                "issues": [
                    {"message": "Expected string", "path": [{"key": "name"}]}
                ]
            }
        return {"value": {**value, "name": name.strip()}}


class AsyncResultSchema:
    """Standard schema whose (sync) ``validate`` returns a coroutine."""

    def __init__(self):
        self.__standard_schema__ = StandardSchemaProps(
            validate=self._validate, vendor="tests-async"
        )

    @staticmethod
    def _validate(value: Any) -> Any:
        async def later() -> dict:
            return {"value": value}

        return later()


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def event_log() -> list[str]:
    return []


@pytest.fixture
def int_schema() -> IntSchema:
    return IntSchema()


@pytest.fixture
def name_schema() -> NameSchema:
    return NameSchema()
