class TierwireError(Exception):
    """Represent a base class for all tierwire-specific failures.

    Catch this type when you want to handle any tierwire error path without
    matching each concrete exception class individually. Failures raised by
    producers or memoized functions are never wrapped and do not derive from
    this class.
    """


class TierwireConfigurationError(TierwireError):
    """Signal a wiring mistake that should fail fast at startup or first use.

    Configuration errors are never retried. Fix the binding, the role tags, or
    the declaration that triggered them.
    """


class TierwireInvalidProducerError(TierwireConfigurationError):
    """Signal that an identity resolves to a producer that cannot be constructed.

    Raised by ``Kernel.resolve``/``Kernel.get`` when the producer selected for an
    identity is not callable without arguments. Bindings are not validated at
    registration time, so this surfaces at the first resolution.

    Typical fixes include binding a class (or another zero-argument callable)
    with ``Kernel.bind`` or binding a fixed value with ``Kernel.bind_value``.
    """


class TierwireInvalidLifecycleError(TierwireConfigurationError):
    """Signal an unknown lifecycle value.

    Raised by binding and resolution APIs and by ``inject`` when the lifecycle
    argument is neither a ``Lifecycle`` member nor one of its string values.
    """


class TierwireCrossModuleInjectionError(TierwireConfigurationError):
    """Signal a dependency declaration that crosses a module boundary.

    Raised by ``inject`` when a class of one module declares a dependency on a
    non-facade role of another module.

    Typical fix is exposing the needed behavior through a ``Facade`` of the
    other module and injecting that facade instead.
    """


class TierwireContextNotProvidedError(TierwireConfigurationError):
    """Signal resolution of a context token that has no value for this call.

    Typical fix is supplying the value with ``kernel.scoped().context(Token, value)``
    in the integration point that starts the call.
    """


class TierwireCircularDependencyError(TierwireConfigurationError):
    """Signal a cycle between dependency declarations.

    Raised during the post-construction scan when an identity is requested
    while its own construction is still in progress.
    """

    def __init__(self, chain: tuple[object, ...]) -> None:
        self.chain = chain
        names = " -> ".join(getattr(item, "__qualname__", repr(item)) for item in chain)
        super().__init__(f"Circular dependency detected: {names}")


class TierwireLifecycleMismatchError(TierwireConfigurationError):
    """Signal a singleton that declares a per-call dependency.

    Raised during the post-construction scan of a singleton (or of a per-use
    object built for one) when a marker resolves to a per-call identity or
    context value. The singleton would otherwise keep the first call's instance
    for the lifetime of the kernel family.

    Typical fixes include making the dependency a singleton or per-use, or
    lowering the dependent's lifecycle to per-call.
    """


class TierwireAsyncResultInSyncContextError(TierwireError):
    """Signal a pending result stored by a memoized function outside an event loop.

    Raised by memoized calls and by ``prime(...).value(...)`` when the result is
    a coroutine or another awaitable that is not yet a future, and no event loop
    is running to schedule it.

    Typical fix is calling the memoized function (or priming it) from inside a
    coroutine, or priming with an already created ``asyncio`` future.
    """
