from tierwire.ambient import (
    KernelContext,
    get_ambient_kernel,
    kernel_context,
    run_with_kernel,
    set_current_kernel_provider,
    set_global_kernel,
)
from tierwire.contexts import ContextToken, create_context
from tierwire.exceptions import (
    TierwireAsyncResultInSyncContextError,
    TierwireCircularDependencyError,
    TierwireConfigurationError,
    TierwireContextNotProvidedError,
    TierwireCrossModuleInjectionError,
    TierwireError,
    TierwireInvalidLifecycleError,
    TierwireInvalidProducerError,
    TierwireLifecycleMismatchError,
)
from tierwire.kernel import Kernel
from tierwire.lifecycle import Lifecycle
from tierwire.markers import InjectionMarker, inject, is_injection_marker
from tierwire.memo import Memoizable, Memoized, memoized
from tierwire.roles import App, Module, create_module

__all__ = [
    "App",
    "ContextToken",
    "InjectionMarker",
    "Kernel",
    "KernelContext",
    "Lifecycle",
    "Memoizable",
    "Memoized",
    "Module",
    "TierwireAsyncResultInSyncContextError",
    "TierwireCircularDependencyError",
    "TierwireConfigurationError",
    "TierwireContextNotProvidedError",
    "TierwireCrossModuleInjectionError",
    "TierwireError",
    "TierwireInvalidLifecycleError",
    "TierwireInvalidProducerError",
    "TierwireLifecycleMismatchError",
    "create_context",
    "create_module",
    "get_ambient_kernel",
    "inject",
    "is_injection_marker",
    "kernel_context",
    "memoized",
    "run_with_kernel",
    "set_current_kernel_provider",
    "set_global_kernel",
]
