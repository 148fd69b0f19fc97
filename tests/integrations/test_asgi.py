"""Tests for the ASGI middleware installing a scoped kernel per connection."""

from __future__ import annotations

from typing import Any

import pytest

from tierwire import App, Kernel, create_context, kernel_context
from tierwire.integrations.asgi import KernelMiddleware

RequestScope = create_context("RequestScope", unwrap_key="path")


class ShowPath(App.Action):
    path = App.inject(RequestScope)

    def handle(self) -> str:
        return self.path


class Recorder:
    """Downstream ASGI app recording the ambient kernel of every call."""

    def __init__(self) -> None:
        self.seen: list[Kernel | None] = []

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        self.seen.append(kernel_context.get_ambient_kernel())
        await send({"type": "done"})


async def receive() -> dict[str, Any]:
    return {"type": "http.request"}


class Sent:
    def __init__(self) -> None:
        self.messages: list[Any] = []

    async def __call__(self, message: Any) -> None:
        self.messages.append(message)


@pytest.mark.asyncio
async def test_each_http_connection_gets_its_own_scoped_kernel() -> None:
    root = Kernel()
    recorder = Recorder()
    middleware = KernelMiddleware(recorder, root)

    await middleware({"type": "http"}, receive, Sent())
    await middleware({"type": "websocket"}, receive, Sent())

    first, second = recorder.seen
    assert first is not None
    assert second is not None
    assert first is not second
    assert first.parent is root
    assert second.parent is root
    assert kernel_context.get_ambient_kernel() is None


@pytest.mark.asyncio
async def test_lifespan_passes_through_without_a_kernel() -> None:
    recorder = Recorder()
    sent = Sent()

    await KernelMiddleware(recorder, Kernel())({"type": "lifespan"}, receive, sent)

    assert recorder.seen == [None]
    assert sent.messages == [{"type": "done"}]


@pytest.mark.asyncio
async def test_configure_binds_call_context_for_actions() -> None:
    results: list[str] = []

    async def app(scope: Any, receive: Any, send: Any) -> None:
        results.append(await ShowPath.invoke())

    middleware = KernelMiddleware(
        app,
        Kernel(),
        configure=lambda scoped, scope: scoped.context(RequestScope, scope),
    )

    await middleware({"type": "http", "path": "/users/1"}, receive, Sent())
    await middleware({"type": "http", "path": "/users/2"}, receive, Sent())

    assert results == ["/users/1", "/users/2"]


@pytest.mark.asyncio
async def test_configure_returning_none_keeps_the_scoped_kernel() -> None:
    recorder = Recorder()
    configured: list[Kernel] = []

    def configure(scoped: Kernel, scope: Any) -> None:
        configured.append(scoped)

    await KernelMiddleware(recorder, Kernel(), configure=configure)({"type": "http"}, receive, Sent())

    assert recorder.seen == configured
