from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeAlias, TypeVar, cast

from tierwire.kernel import Kernel

T = TypeVar("T")

KernelProvider: TypeAlias = Callable[[], "Kernel | None | Awaitable[Kernel | None]"]
"""Callable returning the kernel for the current call, ``None`` to fall through, or an awaitable of either."""


class KernelContext:
    """Task-safe ambient kernel for the dynamic extent of one logical call.

    The ambient kernel lives in a ``ContextVar``: it follows ``await`` within one
    task, is copied into tasks spawned from it, and is never visible to
    concurrently running unrelated tasks.

    Entry points that receive no explicit kernel discover one lazily on every
    invocation, in this order: the current-kernel provider, the ambient kernel,
    a fresh ``scoped()`` child of the global kernel, and finally a brand-new
    ``Kernel()``.
    """

    __slots__ = ("_current_kernel_var", "_global_kernel", "_kernel_provider")

    def __init__(self) -> None:
        self._current_kernel_var: ContextVar[Kernel | None] = ContextVar(
            "tierwire_current_kernel",
            default=None,
        )
        self._global_kernel: Kernel | None = None
        self._kernel_provider: KernelProvider | None = None

    # region Process-wide Configuration
    def set_global_kernel(self, kernel: Kernel | None) -> None:
        """Set the process-wide default kernel, usually once at startup.

        Every entry-point call that finds no better kernel resolves from a new
        ``kernel.scoped()`` child, so per-call instances are never shared
        between calls. Pass ``None`` to clear it.

        Args:
            kernel: Root kernel of the application, or ``None``.

        """
        self._global_kernel = kernel

    def get_global_kernel(self) -> Kernel | None:
        return self._global_kernel

    def set_current_kernel_provider(self, provider: KernelProvider | None) -> None:
        """Set the callable asked first for the kernel of each entry-point call.

        The provider is invoked lazily on every call that has no explicit
        kernel. It may be synchronous or asynchronous and may return ``None``
        to defer to the rest of the precedence chain. Pass ``None`` to clear it.

        Args:
            provider: Kernel provider, or ``None``.

        """
        self._kernel_provider = provider

    # endregion Process-wide Configuration

    # region Ambient Kernel
    @contextmanager
    def use(self, kernel: Kernel) -> Iterator[Kernel]:
        """Install ``kernel`` as the ambient kernel until the block exits.

        Works inside coroutines too: the binding follows ``await`` and is
        restored when the block exits, even on error.

        Examples:
            .. code-block:: python

                async def handle_request(request):
                    with kernel_context.use(root.scoped()):
                        return await ShowHome.invoke()

        """
        token = self._current_kernel_var.set(kernel)
        try:
            yield kernel
        finally:
            self._current_kernel_var.reset(token)

    def run(self, kernel: Kernel, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``fn`` with ``kernel`` as the ambient kernel.

        When ``fn`` returns an awaitable (for example a coroutine function), the
        returned awaitable installs the kernel again while it is awaited, so the
        binding covers the whole asynchronous call.

        Args:
            kernel: Kernel for the call, usually ``root.scoped()``.
            fn: Callable to run.
            *args: Positional arguments for ``fn``.
            **kwargs: Keyword arguments for ``fn``.

        Returns:
            Whatever ``fn`` returns, or an awaitable of it.

        """
        with self.use(kernel):
            result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            return cast("T", self._await_under(kernel, result))
        return result

    async def _await_under(self, kernel: Kernel, awaitable: Awaitable[T]) -> T:
        with self.use(kernel):
            return await awaitable

    def get_ambient_kernel(self) -> Kernel | None:
        """Return the kernel installed for the current call, if any."""
        return self._current_kernel_var.get()

    # endregion Ambient Kernel

    async def get_invoke_kernel(self) -> Kernel:
        """Return the kernel an entry point should use when none was passed explicitly.

        Evaluated lazily on every call: the current-kernel provider, then the
        ambient kernel, then ``global_kernel.scoped()``, then a new ``Kernel()``.
        """
        provider = self._kernel_provider
        if provider is not None:
            provided = provider()
            if inspect.isawaitable(provided):
                provided = await provided
            if provided is not None:
                return cast("Kernel", provided)

        ambient = self._current_kernel_var.get()
        if ambient is not None:
            return ambient

        global_kernel = self._global_kernel
        if global_kernel is not None:
            return global_kernel.scoped()

        return Kernel()


kernel_context = KernelContext()

set_global_kernel = kernel_context.set_global_kernel
set_current_kernel_provider = kernel_context.set_current_kernel_provider
run_with_kernel = kernel_context.run
get_ambient_kernel = kernel_context.get_ambient_kernel
