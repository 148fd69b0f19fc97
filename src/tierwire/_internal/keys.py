from __future__ import annotations

from collections.abc import Hashable, Mapping, Set
from typing import Any

_SCALAR_TYPES = (str, int, float, bool, bytes, type(None))


def argument_key(args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Hashable:
    """Build a deterministic cache key for one call's arguments.

    A single positional scalar is its own key, tagged with its type so ``1``
    and ``"1"`` stay distinct. Everything else becomes a nested hashable
    structure in which every value keeps its type: mappings and keyword
    arguments are unordered, so ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}``
    collide, while ``{1: "x"}`` and ``{"1": "x"}`` or ``(1, 2)`` and ``[1, 2]``
    never do.

    Args:
        args: Positional call arguments.
        kwargs: Keyword call arguments.

    """
    if not kwargs and len(args) == 1 and isinstance(args[0], _SCALAR_TYPES):
        return _canonical(args[0])

    return (
        "call",
        tuple(_canonical(value) for value in args),
        frozenset((name, _canonical(value)) for name, value in kwargs.items()),
    )


def _canonical(value: Any) -> Hashable:
    if isinstance(value, _SCALAR_TYPES):
        return (type(value).__name__, value)
    if isinstance(value, Mapping):
        return (
            "map",
            frozenset((_canonical(key), _canonical(item)) for key, item in value.items()),
        )
    if isinstance(value, (list, tuple)):
        return (type(value).__name__, tuple(_canonical(item) for item in value))
    if isinstance(value, Set):
        return (type(value).__name__, frozenset(_canonical(item) for item in value))

    try:
        hash(value)
    except TypeError:
        # Unhashable objects without a structural form are keyed by their repr.
        return ("repr", type(value).__qualname__, repr(value))
    return ("object", value)
