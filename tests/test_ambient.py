"""Tests for ambient kernel discovery and its precedence chain."""

from __future__ import annotations

import pytest

import tierwire
from tierwire.ambient import KernelContext, kernel_context
from tierwire.kernel import Kernel


def test_top_level_kernel_context_export_is_available() -> None:
    assert isinstance(tierwire.kernel_context, KernelContext)
    assert tierwire.run_with_kernel == kernel_context.run


@pytest.mark.asyncio
async def test_without_any_configuration_a_new_kernel_is_built() -> None:
    context = KernelContext()

    first = await context.get_invoke_kernel()
    second = await context.get_invoke_kernel()

    assert isinstance(first, Kernel)
    assert first is not second
    assert first.parent is None


@pytest.mark.asyncio
async def test_global_kernel_is_scoped_fresh_for_every_call() -> None:
    context = KernelContext()
    root = Kernel()
    context.set_global_kernel(root)

    first = await context.get_invoke_kernel()
    second = await context.get_invoke_kernel()

    assert first.parent is root
    assert second.parent is root
    assert first is not second


@pytest.mark.asyncio
async def test_ambient_kernel_wins_over_global_kernel() -> None:
    context = KernelContext()
    context.set_global_kernel(Kernel())
    ambient = Kernel().scoped()

    with context.use(ambient):
        assert await context.get_invoke_kernel() is ambient


@pytest.mark.asyncio
async def test_kernel_provider_wins_over_ambient_kernel() -> None:
    context = KernelContext()
    provided = Kernel()
    context.set_current_kernel_provider(lambda: provided)

    with context.use(Kernel()):
        assert await context.get_invoke_kernel() is provided


@pytest.mark.asyncio
async def test_async_kernel_provider_is_awaited() -> None:
    context = KernelContext()
    provided = Kernel()

    async def provider() -> Kernel:
        return provided

    context.set_current_kernel_provider(provider)

    assert await context.get_invoke_kernel() is provided


@pytest.mark.asyncio
async def test_kernel_provider_returning_none_falls_through() -> None:
    context = KernelContext()
    ambient = Kernel()
    context.set_current_kernel_provider(lambda: None)

    with context.use(ambient):
        assert await context.get_invoke_kernel() is ambient


@pytest.mark.asyncio
async def test_kernel_provider_is_evaluated_lazily_on_every_call() -> None:
    context = KernelContext()
    calls: list[int] = []

    def provider() -> Kernel:
        calls.append(1)
        return Kernel()

    context.set_current_kernel_provider(provider)
    first = await context.get_invoke_kernel()
    second = await context.get_invoke_kernel()

    assert len(calls) == 2
    assert first is not second


def test_use_restores_previous_kernel_when_nested() -> None:
    outer = Kernel()
    inner = outer.scoped()

    with kernel_context.use(outer):
        with kernel_context.use(inner):
            assert kernel_context.get_ambient_kernel() is inner
        assert kernel_context.get_ambient_kernel() is outer
    assert kernel_context.get_ambient_kernel() is None


def test_use_restores_kernel_on_error() -> None:
    with pytest.raises(KeyError), kernel_context.use(Kernel()):
        raise KeyError("boom")

    assert kernel_context.get_ambient_kernel() is None


def test_run_with_sync_function_returns_its_result() -> None:
    scoped = Kernel().scoped()

    result = tierwire.run_with_kernel(scoped, kernel_context.get_ambient_kernel)

    assert result is scoped
    assert kernel_context.get_ambient_kernel() is None


def test_global_kernel_getter_reflects_setter() -> None:
    root = Kernel()

    tierwire.set_global_kernel(root)

    assert kernel_context.get_global_kernel() is root
