from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeGuard, TypeVar, cast

from tierwire.lifecycle import Lifecycle, declared_unwrap_key, to_lifecycle

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class InjectionMarker:
    """Placeholder left in a field until the constructing kernel resolves it.

    Markers are created by ``inject`` while an object's fields are initialized
    and are replaced by the kernel's post-construction scan before the object
    is returned. Application code never observes them on kernel-built objects.
    """

    identity: Any
    lifecycle: Lifecycle | None = None
    unwrap: str | None = None

    def __repr__(self) -> str:
        name = getattr(self.identity, "__qualname__", repr(self.identity))
        return f"InjectionMarker({name}, lifecycle={self.lifecycle}, unwrap={self.unwrap!r})"


def inject(
    identity: type[T],
    lifecycle: Lifecycle | str | None = None,
    *,
    unwrap: str | None = None,
) -> T:
    """Declare a dependency slot without resolving anything yet.

    Assign the result to a field, either inside ``__init__`` or as a class
    attribute. The kernel that constructs the owning object replaces it with
    the resolved dependency.

    Args:
        identity: Dependency identity to resolve later.
        lifecycle: Optional lifecycle override for this injection point.
        unwrap: Optional key substituted for the resolved instance. Defaults to
            the identity's declared ``unwrap_key``.

    Returns:
        An ``InjectionMarker`` typed as the dependency so assignments type-check.

    Examples:
        .. code-block:: python

            class UserService:
                repo = inject(UserRepo)

                def __init__(self) -> None:
                    self.clock = inject(Clock, Lifecycle.SINGLETON)

    """
    marker = InjectionMarker(
        identity=identity,
        lifecycle=None if lifecycle is None else to_lifecycle(lifecycle),
        unwrap=unwrap if unwrap is not None else declared_unwrap_key(identity),
    )
    return cast("T", marker)


def is_injection_marker(value: object) -> TypeGuard[InjectionMarker]:
    """Return true when a value is a pending dependency declaration."""
    return isinstance(value, InjectionMarker)


def unwrap_value(value: Any, key: str | None) -> Any:
    """Substitute ``value[key]`` (mappings) or ``value.key`` (other objects) when a key is set."""
    if key is None:
        return value
    if isinstance(value, Mapping):
        return value[key]
    return getattr(value, key)
