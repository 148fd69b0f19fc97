"""Shared pytest fixtures for tierwire tests."""

from collections.abc import Iterator

import pytest

from tierwire.ambient import kernel_context
from tierwire.devstable import clear_dev_stable
from tierwire.kernel import Kernel


@pytest.fixture()
def kernel() -> Kernel:
    """Fresh root kernel."""
    return Kernel()


@pytest.fixture(autouse=True)
def _reset_process_wide_state() -> Iterator[None]:
    """Clear the global kernel, the kernel provider and dev-stable values around each test."""
    kernel_context.set_global_kernel(None)
    kernel_context.set_current_kernel_provider(None)
    clear_dev_stable()
    yield
    kernel_context.set_global_kernel(None)
    kernel_context.set_current_kernel_provider(None)
    clear_dev_stable()
