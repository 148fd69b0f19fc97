from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import TYPE_CHECKING, Any, Generic, ParamSpec, TypeVar, cast, overload

from tierwire._internal.cache import MISSING
from tierwire._internal.keys import argument_key
from tierwire._internal.type_checks import describe
from tierwire.exceptions import TierwireAsyncResultInSyncContextError

if TYPE_CHECKING:
    from typing_extensions import Self

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class Memoized(Generic[P, R]):
    """Argument-keyed cache around one function for one owning object.

    Entries hold either a value or a pending result. Awaitable results are
    stored as a shared ``asyncio`` future the moment the call returns, so
    concurrent callers with equal arguments await one execution. A pending
    result that fails removes its own entry; the failure still reaches every
    caller awaiting it.

    Examples:
        .. code-block:: python

            class UserRepo(App.Repo):
                def __init__(self) -> None:
                    self.find_by_id = self.memo(self._find_by_id)

                async def _find_by_id(self, user_id: str) -> User: ...


            repo.find_by_id.prime("1").value(cached_user)
            repo.find_by_id.bust("1")

    """

    def __init__(self, fn: Callable[P, R]) -> None:
        functools.update_wrapper(self, fn)
        self._fn = fn
        self._entries: dict[Hashable, Any] = {}

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        key = argument_key(args, kwargs)
        entry = self._entries.get(key, MISSING)
        if entry is not MISSING:
            return entry
        return self._invoke(key, args, kwargs)

    def fresh(self, *args: P.args, **kwargs: P.kwargs) -> R:
        """Call the function even when an entry exists and replace that entry."""
        return self._invoke(argument_key(args, kwargs), args, kwargs)

    def prime(self, *args: P.args, **kwargs: P.kwargs) -> Primer[R]:
        """Select the entry for these arguments; finish with ``.value(v)``.

        Examples:
            .. code-block:: python

                repo.find_by_id.prime("1").value(user)

        """
        return Primer(self, argument_key(args, kwargs))

    def preload(self, *args: P.args, **kwargs: P.kwargs) -> None:
        """Start populating the entry for these arguments without handing the result back."""
        self(*args, **kwargs)

    def bust(self, *args: P.args, **kwargs: P.kwargs) -> None:
        """Remove the entry for these arguments, if there is one."""
        self._entries.pop(argument_key(args, kwargs), None)

    def bust_all(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _invoke(self, key: Hashable, args: tuple[Any, ...], kwargs: dict[str, Any]) -> R:
        return self._store(key, self._fn(*args, **kwargs))

    def _store(self, key: Hashable, result: Any) -> Any:
        if inspect.isawaitable(result):
            result = self._schedule(result)
            result.add_done_callback(functools.partial(self._evict_failed, key))
        self._entries[key] = result
        return result

    def _schedule(self, awaitable: Awaitable[Any]) -> asyncio.Future[Any]:
        if asyncio.isfuture(awaitable):
            return awaitable
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as error:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            msg = (
                f"{describe(self._fn)} produced a pending result outside a running event loop. "
                "Call or prime it from inside a coroutine, or prime it with an asyncio future."
            )
            raise TierwireAsyncResultInSyncContextError(msg) from error
        return asyncio.ensure_future(awaitable, loop=loop)

    def _evict_failed(self, key: Hashable, pending: asyncio.Future[Any]) -> None:
        if not pending.cancelled() and pending.exception() is None:
            return
        if self._entries.get(key) is pending:
            del self._entries[key]
            logger.debug("Evicted failed entry %r of %s", key, describe(self._fn))

    def __repr__(self) -> str:
        return f"Memoized({describe(self._fn)}, entries={len(self._entries)})"


class Primer(Generic[R]):
    """Pending ``prime`` call waiting for the value to store."""

    __slots__ = ("_key", "_memoized")

    def __init__(self, memoized: Memoized[Any, R], key: Hashable) -> None:
        self._memoized = memoized
        self._key = key

    def value(self, value: R) -> None:
        """Store ``value`` without calling the function.

        A pending ``value`` that later fails is evicted like any other failed
        result. An ``asyncio`` future may be primed from anywhere; a coroutine or
        other awaitable is scheduled on the running event loop.

        Raises:
            TierwireAsyncResultInSyncContextError: If ``value`` is a coroutine or
                a non-future awaitable and no event loop is running.

        """
        self._memoized._store(self._key, value)  # noqa: SLF001


class memoized(Generic[P, R]):  # noqa: N801
    """Memoize a method separately for every instance of its class.

    The first attribute read on an instance creates that instance's
    ``Memoized`` engine and stores it in the instance ``__dict__``, the same way
    ``functools.cached_property`` caches its value.

    Examples:
        .. code-block:: python

            class UserRepo(App.Repo):
                @memoized
                async def find_by_id(self, user_id: str) -> User: ...

    """

    def __init__(self, fn: Callable[..., R]) -> None:
        functools.update_wrapper(self, fn)
        self._fn = fn
        self._name: str = fn.__name__

    def __set_name__(self, owner: type[Any], name: str) -> None:
        self._name = name

    @overload
    def __get__(self, instance: None, owner: type[Any] | None = None) -> Self: ...

    @overload
    def __get__(self, instance: object, owner: type[Any] | None = None) -> Memoized[P, R]: ...

    def __get__(self, instance: object | None, owner: type[Any] | None = None) -> Any:
        if instance is None:
            return self
        bound = cast("Any", self._fn).__get__(instance, owner)
        engine: Memoized[P, R] = Memoized(bound)
        instance.__dict__[self._name] = engine
        return engine


class Memoizable:
    """Mixin giving data-access objects per-instance memoization."""

    def memo(self, fn: Callable[P, R]) -> Memoized[P, R]:
        """Wrap ``fn`` in a ``Memoized`` engine owned by this instance."""
        return Memoized(fn)
