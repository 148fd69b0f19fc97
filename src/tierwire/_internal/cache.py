from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Final

MISSING: Final = object()


class LifecycleCache:
    """Hold constructed instances for one lifecycle tier, keyed by producer.

    A kernel family shares one cache for singletons; every kernel owns a
    separate cache for per-call instances. Each slot may also carry the pending
    async initialization of its instance so concurrent awaiters share it.
    """

    __slots__ = ("_initializations", "_instances")

    def __init__(self) -> None:
        self._instances: dict[Any, Any] = {}
        self._initializations: dict[Any, asyncio.Future[None]] = {}

    def lookup(self, producer: Any) -> Any:
        """Return the cached instance or ``MISSING``."""
        return self._instances.get(producer, MISSING)

    def store(self, producer: Any, instance: Any) -> None:
        self._instances[producer] = instance

    def evict(self, producer: Any, instance: Any) -> None:
        """Drop a slot only while it still holds ``instance``."""
        if self._instances.get(producer, MISSING) is instance:
            del self._instances[producer]
            self._initializations.pop(producer, None)

    def initialization(self, producer: Any) -> asyncio.Future[None] | None:
        return self._initializations.get(producer)

    def store_initialization(self, producer: Any, pending: asyncio.Future[None]) -> None:
        self._initializations[producer] = pending

    def __contains__(self, producer: object) -> bool:
        return producer in self._instances

    def __len__(self) -> int:
        return len(self._instances)


@dataclass(frozen=True, slots=True)
class ResolvedSlot:
    """One resolution result and the cache slot it lives in.

    ``cache`` and ``producer`` are ``None`` for fixed values, and ``cache`` is
    ``None`` for per-use instances. ``built`` tells whether this resolution
    constructed the instance rather than finding it cached.
    """

    instance: Any
    cache: LifecycleCache | None = None
    producer: Any = None
    built: bool = False
