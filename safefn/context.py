"""Context merge model — immutable snapshots and last-write-wins merging."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Optional

EMPTY_CONTEXT: MappingProxyType = MappingProxyType({})


def freeze(mapping: Optional[Mapping[str, Any]]) -> MappingProxyType:
    """Return a read-only snapshot of *mapping*.

    The contents are copied, so later changes to the caller's dict never leak
    into a configuration or an in-flight invocation.
    """
    if mapping is None:
        return EMPTY_CONTEXT
    if not isinstance(mapping, Mapping):
        raise TypeError(
            f"Context must be a mapping, got {type(mapping).__name__}"
        )
    return MappingProxyType(dict(mapping))


def merge_context(
    base: Mapping[str, Any], fragment: Optional[Mapping[str, Any]]
) -> MappingProxyType:
    """Shallow-merge *fragment* on top of *base*; fragment fields win.

    ``None`` or an empty fragment returns *base* unchanged (same object when
    it is already frozen).
    """
    if not fragment:
        return base if isinstance(base, MappingProxyType) else freeze(base)
    if not isinstance(fragment, Mapping):
        raise TypeError(
            f"Context fragment must be a mapping, got {type(fragment).__name__}"
        )
    return MappingProxyType({**base, **fragment})
