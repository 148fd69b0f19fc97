from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, TypeVar, overload

from tierwire._internal.cache import MISSING, LifecycleCache, ResolvedSlot
from tierwire._internal.registry import Binding, BindingRegistry
from tierwire._internal.resolution_stack import constructing
from tierwire._internal.type_checks import constructibility_problem, describe
from tierwire.exceptions import TierwireInvalidProducerError, TierwireLifecycleMismatchError
from tierwire.lifecycle import Lifecycle, declared_lifecycle, declared_unwrap_key, to_lifecycle
from tierwire.markers import InjectionMarker, is_injection_marker, unwrap_value

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Kernel:
    """Resolve dependency identities and cache instances per lifecycle.

    A root kernel is created by the host application. ``scoped()`` derives a
    child for one logical call: the child shares the root's singleton cache,
    owns an empty per-call cache, and starts with a copy of the parent's
    bindings.

    Objects are built without constructor arguments. Their dependencies are
    declared as fields holding ``inject(...)`` markers, and the kernel replaces
    every marker with the resolved dependency before handing the object out.

    Examples:
        .. code-block:: python

            kernel = Kernel()
            kernel.bind(UserRepo, FakeUserRepo)

            request_kernel = kernel.scoped().context(RequestContext, request)
            service = request_kernel.get(UserService)

    """

    def __init__(self) -> None:
        """Initialize an empty root kernel with its own singleton cache."""
        self._parent: Kernel | None = None
        self._bindings = BindingRegistry()
        self._singletons = LifecycleCache()
        self._per_call = LifecycleCache()

    @property
    def parent(self) -> Kernel | None:
        """Return the kernel this one was derived from, or ``None`` for a root kernel."""
        return self._parent

    # region Scoping and Binding
    def scoped(self) -> Kernel:
        """Derive a call-scoped child kernel.

        The child shares this kernel's singleton cache, gets a fresh per-call
        cache, and starts with a snapshot of this kernel's bindings. Later
        bindings on either kernel are not visible to the other.

        Returns:
            A new child kernel.

        """
        child = type(self)()
        child._parent = self
        child._bindings = self._bindings.copy()
        child._singletons = self._singletons
        return child

    def bind(
        self,
        identity: Any,
        producer: Any,
        lifecycle: Lifecycle | str | None = None,
    ) -> Kernel:
        """Register ``producer`` as the implementation built for ``identity``.

        Rebinding an identity replaces the previous binding. Instances that are
        already cached are left untouched; singleton and per-call slots are
        keyed by producer, so a different producer gets its own slot.

        Args:
            identity: Dependency identity to override.
            producer: Zero-argument class or callable used to build instances.
                It is validated at resolution time, not here.
            lifecycle: Optional lifecycle for this binding. ``None`` keeps the
                identity's declared lifecycle.

        Returns:
            This kernel, for chaining.

        Raises:
            TierwireInvalidLifecycleError: If ``lifecycle`` is not a known value.

        """
        binding = Binding(
            producer=producer,
            lifecycle=None if lifecycle is None else to_lifecycle(lifecycle),
        )
        self._bindings.add(identity, binding)
        logger.debug("Bound %s to %s", describe(identity), describe(producer))
        return self

    def bind_value(
        self,
        identity: Any,
        value: Any,
        lifecycle: Lifecycle | str = Lifecycle.SINGLETON,
    ) -> Kernel:
        """Register a fixed value returned whenever ``identity`` is resolved.

        Args:
            identity: Dependency identity to override.
            value: Value returned as is; it is never constructed or scanned.
            lifecycle: Lifecycle recorded for the binding.

        Returns:
            This kernel, for chaining.

        """
        binding = Binding(producer=value, lifecycle=to_lifecycle(lifecycle), is_value=True)
        self._bindings.add(identity, binding)
        logger.debug("Bound %s to a fixed value", describe(identity))
        return self

    def context(self, identity: Any, value: Any) -> Kernel:
        """Bind a per-call value, typically on a freshly scoped kernel.

        Examples:
            .. code-block:: python

                request_kernel = kernel.scoped().context(RequestContext, {"user": user})

        """
        return self.bind_value(identity, value, Lifecycle.PER_CALL)

    # endregion Scoping and Binding

    # region Resolution
    @overload
    def resolve(self, identity: type[T], lifecycle: Lifecycle | str | None = None) -> T: ...

    @overload
    def resolve(self, identity: Any, lifecycle: Lifecycle | str | None = None) -> Any: ...

    def resolve(self, identity: Any, lifecycle: Lifecycle | str | None = None) -> Any:
        """Resolve ``identity`` without applying its unwrap key.

        Args:
            identity: Dependency identity to resolve.
            lifecycle: Optional lifecycle that overrides both the binding and
                the identity's declared lifecycle.

        Returns:
            The cached or newly constructed instance, or the bound fixed value.

        Raises:
            TierwireInvalidProducerError: If the selected producer cannot be
                called without arguments.
            TierwireCircularDependencyError: If declarations form a cycle.
            TierwireLifecycleMismatchError: If a singleton being constructed
                declares a per-call dependency.

        """
        return self._resolve_slot(identity, lifecycle).instance

    @overload
    def get(self, identity: type[T]) -> T: ...

    @overload
    def get(self, identity: Any) -> Any: ...

    def get(self, identity: Any) -> Any:
        """Resolve ``identity`` and substitute its declared ``unwrap_key`` when it has one."""
        return unwrap_value(self.resolve(identity), declared_unwrap_key(identity))

    create = get

    async def aresolve(self, identity: Any, lifecycle: Lifecycle | str | None = None) -> Any:
        """Resolve ``identity`` and await the ``ainit`` step of everything it needed.

        Construction and caching happen synchronously before the first
        suspension. Every instance resolved along the way, including the
        dependencies filled into markers, is then initialized with its
        ``ainit`` step when it defines one, dependencies before dependents.
        Singleton and per-call instances cache their pending initialization in
        their slot, so concurrent callers share one instance and one
        initialization.

        A failed initialization evicts the failing instance and every instance
        built by this call that depends on it, then propagates.

        Args:
            identity: Dependency identity to resolve.
            lifecycle: Optional lifecycle override.

        """
        slots: list[ResolvedSlot] = []
        root = self._resolve_slot(identity, lifecycle, slots)
        for index, slot in enumerate(slots):
            try:
                await self._initialize(slot)
            except Exception:
                _evict_built(slots[index + 1 :])
                raise
        return root.instance

    async def aget(self, identity: Any) -> Any:
        """Asynchronous counterpart of ``get``."""
        return unwrap_value(await self.aresolve(identity), declared_unwrap_key(identity))

    def _resolve_slot(
        self,
        identity: Any,
        lifecycle: Lifecycle | str | None,
        slots: list[ResolvedSlot] | None = None,
        *,
        inside_singleton: bool = False,
    ) -> ResolvedSlot:
        binding = self._bindings.get(identity)
        if binding is not None and binding.is_value:
            if inside_singleton:
                _reject_captive(identity, binding.lifecycle)
            return ResolvedSlot(binding.producer)

        producer = identity if binding is None else binding.producer
        effective = self._effective_lifecycle(identity, binding, lifecycle)
        if inside_singleton:
            _reject_captive(identity, effective)
        captive = inside_singleton or effective is Lifecycle.SINGLETON

        if effective is Lifecycle.PER_USE:
            instance = self._construct(producer, effective, slots, inside_singleton=captive)
            slot = ResolvedSlot(instance, None, producer, built=True)
        else:
            cache = self._singletons if effective is Lifecycle.SINGLETON else self._per_call
            instance = cache.lookup(producer)
            built = instance is MISSING
            if built:
                instance = self._construct(producer, effective, slots, inside_singleton=captive)
                cache.store(producer, instance)
            slot = ResolvedSlot(instance, cache, producer, built=built)

        if slots is not None:
            slots.append(slot)
        return slot

    def _effective_lifecycle(
        self,
        identity: Any,
        binding: Binding | None,
        lifecycle: Lifecycle | str | None,
    ) -> Lifecycle:
        if lifecycle is not None:
            return to_lifecycle(lifecycle)
        if binding is not None and binding.lifecycle is not None:
            return binding.lifecycle
        return declared_lifecycle(identity)

    def _construct(
        self,
        producer: Any,
        lifecycle: Lifecycle,
        slots: list[ResolvedSlot] | None,
        *,
        inside_singleton: bool,
    ) -> Any:
        problem = constructibility_problem(producer)
        if problem is not None:
            msg = f"Cannot construct {describe(producer)}: {problem}."
            raise TierwireInvalidProducerError(msg)

        with constructing(producer):
            instance = producer()
            self._fill_markers(instance, slots, inside_singleton=inside_singleton)
        logger.debug("Constructed %s (%s)", describe(producer), lifecycle.value)
        return instance

    def _fill_markers(
        self,
        instance: Any,
        slots: list[ResolvedSlot] | None,
        *,
        inside_singleton: bool,
    ) -> None:
        pending: dict[str, InjectionMarker] = {}
        for owner in reversed(type(instance).__mro__):
            self._collect_markers(vars(owner), pending)
        instance_fields = getattr(instance, "__dict__", None)
        if instance_fields is not None:
            self._collect_markers(instance_fields, pending)

        for name, marker in pending.items():
            resolved = self._resolve_slot(
                marker.identity,
                marker.lifecycle,
                slots,
                inside_singleton=inside_singleton,
            )
            # Bypasses custom __setattr__ so frozen dataclasses can declare dependencies.
            object.__setattr__(instance, name, unwrap_value(resolved.instance, marker.unwrap))

    @staticmethod
    def _collect_markers(fields: Any, pending: dict[str, InjectionMarker]) -> None:
        for name, value in list(fields.items()):
            if is_injection_marker(value):
                pending[name] = value
            else:
                pending.pop(name, None)

    async def _initialize(self, slot: ResolvedSlot) -> None:
        ainit = getattr(slot.instance, "ainit", None)
        if ainit is None:
            return
        if slot.cache is None:
            await ainit()
            return

        pending = slot.cache.initialization(slot.producer)
        if pending is None:
            pending = asyncio.ensure_future(ainit())
            slot.cache.store_initialization(slot.producer, pending)
            pending.add_done_callback(
                functools.partial(
                    _evict_failed_initialization,
                    slot.cache,
                    slot.producer,
                    slot.instance,
                ),
            )
        await asyncio.shield(pending)

    # endregion Resolution

    def __repr__(self) -> str:
        kind = "root" if self._parent is None else "scoped"
        return f"Kernel({kind}, bindings={len(self._bindings)})"


def _evict_failed_initialization(
    cache: LifecycleCache,
    producer: Any,
    instance: Any,
    pending: asyncio.Future[None],
) -> None:
    if pending.cancelled() or pending.exception() is not None:
        cache.evict(producer, instance)
        logger.debug("Evicted %s after failed initialization", describe(producer))


def _evict_built(slots: list[ResolvedSlot]) -> None:
    for slot in slots:
        if slot.built and slot.cache is not None:
            slot.cache.evict(slot.producer, slot.instance)


def _reject_captive(identity: Any, lifecycle: Lifecycle | None) -> None:
    if lifecycle is not Lifecycle.PER_CALL:
        return
    msg = (
        f"A singleton cannot depend on per-call {describe(identity)}: it would keep the "
        "first call's instance. Make the dependency a singleton or per-use, or make the "
        "dependent per-call."
    )
    raise TierwireLifecycleMismatchError(msg)
