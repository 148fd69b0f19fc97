from __future__ import annotations

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

from tierwire.ambient import kernel_context
from tierwire.kernel import Kernel

Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]
ASGIApp: TypeAlias = Callable[[Scope, Receive, Send], Awaitable[None]]

_CALL_SCOPE_TYPES = frozenset({"http", "websocket"})


class KernelMiddleware:
    """Run every HTTP and WebSocket connection under its own scoped kernel.

    Each connection gets ``kernel.scoped()``, optionally extended by
    ``configure`` (for example with ``context(RequestContext, ...)``), installed
    as the ambient kernel for the downstream application. Other ASGI scopes,
    such as ``lifespan``, pass through untouched.

    Examples:
        .. code-block:: python

            kernel = Kernel()

            app = KernelMiddleware(
                app,
                kernel,
                configure=lambda scoped, scope: scoped.context(RequestScope, scope),
            )

    """

    def __init__(
        self,
        app: ASGIApp,
        kernel: Kernel,
        configure: Callable[[Kernel, Scope], Kernel | None] | None = None,
    ) -> None:
        self.app = app
        self.kernel = kernel
        self.configure = configure

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in _CALL_SCOPE_TYPES:
            await self.app(scope, receive, send)
            return

        call_kernel = self.kernel.scoped()
        if self.configure is not None:
            call_kernel = self.configure(call_kernel, scope) or call_kernel

        with kernel_context.use(call_kernel):
            await self.app(scope, receive, send)
