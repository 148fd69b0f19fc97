from __future__ import annotations

from collections.abc import Iterator

import pytest

from tierwire.ambient import kernel_context
from tierwire.kernel import Kernel


@pytest.fixture()
def tierwire_kernel() -> Kernel:
    """Create a per-test root kernel.

    Override this fixture to register bindings shared by a test module. The
    fixture is function-scoped, so singletons are isolated between tests
    unless users override the fixture scope explicitly.

    Returns:
        A new ``Kernel`` instance.

    """
    return Kernel()


@pytest.fixture()
def tierwire_scope(tierwire_kernel: Kernel) -> Iterator[Kernel]:
    """Install a scoped child of ``tierwire_kernel`` as the ambient kernel for the test.

    Entry points invoked by the test without an explicit kernel resolve from
    this scoped kernel.

    Yields:
        The scoped kernel.

    """
    with kernel_context.use(tierwire_kernel.scoped()) as scoped_kernel:
        yield scoped_kernel
