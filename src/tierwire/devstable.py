from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, Final, TypeVar

T = TypeVar("T")

DEV_STABLE_ENV: Final = "TIERWIRE_DEV_STABLE"
"""Set to ``"1"`` to force dev-stable values on, whatever the environment."""

ENVIRONMENT_ENV: Final = "TIERWIRE_ENV"
"""Dev-stable values are enabled unless this is ``"production"``."""

_stable_values: dict[str, Any] = {}


def is_dev_stable_enabled() -> bool:
    """Return true when dev-stable values should be reused across reloads."""
    if os.environ.get(DEV_STABLE_ENV) == "1":
        return True
    return os.environ.get(ENVIRONMENT_ENV) != "production"


class DevStable:
    """Mixin for long-lived handles that must survive module reloads in development.

    Reloading application modules creates new classes and therefore new
    singleton slots; values created through ``dev_stable`` live in a
    process-global table keyed by name instead, so connection pools and
    clients are reused rather than leaked.
    """

    def dev_stable(self, key: str, init: Callable[[], T]) -> T:
        """Return the process-global value for ``key``, creating it with ``init`` once.

        When dev-stable values are disabled, ``init`` runs on every call.

        Args:
            key: Process-wide name of the value.
            init: Zero-argument callable creating the value.

        """
        if not is_dev_stable_enabled():
            return init()
        if key not in _stable_values:
            _stable_values[key] = init()
        return _stable_values[key]


def clear_dev_stable() -> None:
    """Forget every dev-stable value, mainly for tests."""
    _stable_values.clear()
