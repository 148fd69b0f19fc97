from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tierwire.lifecycle import Lifecycle


@dataclass(frozen=True, slots=True)
class Binding:
    """Describe what a kernel produces for one identity.

    ``producer`` is either a zero-argument callable (usually a class) or, when
    ``is_value`` is set, the fixed value returned as is. ``lifecycle`` is
    ``None`` when the binding defers to the identity's declared lifecycle.
    """

    producer: Any
    lifecycle: Lifecycle | None
    is_value: bool = False


class BindingRegistry:
    """Store one kernel's own bindings indexed by identity.

    Keys are unique: binding an identity again replaces the previous binding.
    Identities compare by object identity, so two structurally equal classes
    never share a binding.
    """

    __slots__ = ("_bindings",)

    def __init__(self, bindings: dict[Any, Binding] | None = None) -> None:
        self._bindings: dict[Any, Binding] = {} if bindings is None else dict(bindings)

    def add(self, identity: Any, binding: Binding) -> None:
        self._bindings[identity] = binding

    def get(self, identity: Any) -> Binding | None:
        return self._bindings.get(identity)

    def copy(self) -> BindingRegistry:
        """Return an independent registry holding the same bindings."""
        return BindingRegistry(self._bindings)

    def __contains__(self, identity: object) -> bool:
        return identity in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)
