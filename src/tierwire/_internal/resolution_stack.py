from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from tierwire.exceptions import TierwireCircularDependencyError

# Producers whose construction is in progress in the current execution context.
# Construction never suspends, so the tuple only grows and shrinks within one turn.
_resolution_stack: ContextVar[tuple[Any, ...]] = ContextVar(
    "tierwire_resolution_stack",
    default=(),
)


@contextmanager
def constructing(producer: Any) -> Iterator[None]:
    """Track ``producer`` as under construction and reject re-entry.

    Raises:
        TierwireCircularDependencyError: If ``producer`` is already being
            constructed further up the current chain.

    """
    stack = _resolution_stack.get()
    if any(entry is producer for entry in stack):
        start = next(index for index, entry in enumerate(stack) if entry is producer)
        raise TierwireCircularDependencyError((*stack[start:], producer))

    token = _resolution_stack.set((*stack, producer))
    try:
        yield
    finally:
        _resolution_stack.reset(token)
