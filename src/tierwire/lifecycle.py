from __future__ import annotations

from enum import Enum
from typing import Any

from tierwire.exceptions import TierwireInvalidLifecycleError


class Lifecycle(str, Enum):
    """Define how long a resolved instance is reused."""

    SINGLETON = "singleton"
    """One instance for the whole kernel family, shared by every scoped kernel."""

    PER_CALL = "per_call"
    """One instance per kernel, so one per logical call when each call uses ``scoped()``."""

    PER_USE = "per_use"
    """A new instance for every resolution."""


DEFAULT_LIFECYCLE = Lifecycle.PER_USE
"""Lifecycle used for identities that do not declare one."""


def to_lifecycle(value: Lifecycle | str) -> Lifecycle:
    """Normalize a lifecycle member or its string value.

    Args:
        value: ``Lifecycle`` member or one of ``"singleton"``, ``"per_call"``,
            ``"per_use"``.

    Raises:
        TierwireInvalidLifecycleError: If the value is not a known lifecycle.

    """
    if isinstance(value, Lifecycle):
        return value
    try:
        return Lifecycle(value)
    except ValueError as error:
        allowed = ", ".join(repr(member.value) for member in Lifecycle)
        msg = f"Unknown lifecycle {value!r}; expected one of {allowed}."
        raise TierwireInvalidLifecycleError(msg) from error


def declared_lifecycle(identity: Any) -> Lifecycle:
    """Return the default lifecycle an identity declares through its ``lifecycle`` attribute."""
    declared = getattr(identity, "lifecycle", None)
    if declared is None:
        return DEFAULT_LIFECYCLE
    return to_lifecycle(declared)


def declared_unwrap_key(identity: Any) -> str | None:
    """Return the unwrap key an identity declares through its ``unwrap_key`` attribute."""
    return getattr(identity, "unwrap_key", None)
