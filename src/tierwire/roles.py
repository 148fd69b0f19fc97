from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from tierwire.ambient import kernel_context
from tierwire.devstable import DevStable
from tierwire.exceptions import TierwireCrossModuleInjectionError
from tierwire.kernel import Kernel
from tierwire.lifecycle import Lifecycle
from tierwire.markers import inject
from tierwire.memo import Memoizable

if TYPE_CHECKING:
    from typing_extensions import Self

T = TypeVar("T")
ActionT = TypeVar("ActionT", bound="Action")


class Role(str, Enum):
    """Layer a role-tagged class belongs to."""

    ACTION = "action"
    SERVICE = "service"
    REPO = "repo"
    FACADE = "facade"
    RESOURCE = "resource"


@dataclass(frozen=True, slots=True)
class ModuleBrand:
    """Module and role stamped on every class derived from a module's role base."""

    module_name: str
    role: Role


def check_injection_boundary(owner_module: str | None, identity: Any) -> None:
    """Reject declarations that reach into another module's non-facade roles.

    Args:
        owner_module: Module of the class declaring the dependency, or ``None``
            when it is not role-tagged.
        identity: Identity being declared.

    Raises:
        TierwireCrossModuleInjectionError: If ``identity`` belongs to another
            module and is not a facade.

    """
    brand = getattr(identity, "tierwire_brand", None)
    if owner_module is None or not isinstance(brand, ModuleBrand):
        return
    if brand.module_name == owner_module or brand.role is Role.FACADE:
        return

    msg = (
        f"Cross-module {brand.role.value} dependency is not allowed. Use a Facade. "
        f"(Tried to inject a {brand.role.value} from {brand.module_name} into {owner_module})"
    )
    raise TierwireCrossModuleInjectionError(msg)


class Injectable:
    """Base of every role: lifecycle shorthands and boundary-checked ``inject``."""

    SINGLETON: ClassVar[Lifecycle] = Lifecycle.SINGLETON
    PER_CALL: ClassVar[Lifecycle] = Lifecycle.PER_CALL
    PER_USE: ClassVar[Lifecycle] = Lifecycle.PER_USE

    lifecycle: ClassVar[Lifecycle] = Lifecycle.PER_USE
    tierwire_brand: ClassVar[ModuleBrand | None] = None

    def inject(
        self,
        identity: type[T],
        lifecycle: Lifecycle | str | None = None,
        *,
        unwrap: str | None = None,
    ) -> T:
        """Declare a dependency of this object; see ``tierwire.inject``.

        Raises:
            TierwireCrossModuleInjectionError: If the declaration crosses a
                module boundary to a non-facade role.

        """
        brand = type(self).tierwire_brand
        check_injection_boundary(None if brand is None else brand.module_name, identity)
        return inject(identity, lifecycle, unwrap=unwrap)


class Action(Injectable, ABC):
    """Entry point of one logical call, built fresh for every invocation."""

    lifecycle: ClassVar[Lifecycle] = Lifecycle.PER_USE

    @abstractmethod
    def handle(self, *args: Any, **kwargs: Any) -> Any:
        """Run the action; may be a coroutine function."""

    @classmethod
    async def invoke(cls, *args: Any, **kwargs: Any) -> Any:
        """Build the action from the current kernel and run ``handle``.

        The kernel comes from ``kernel_context.get_invoke_kernel()`` and stays
        installed as the ambient kernel while ``handle`` runs, so nested
        invocations share the call's per-call instances. The action and its
        dependencies are built with ``Kernel.aget``, so resources finish their
        ``ainit`` step before ``handle`` starts.
        """
        kernel = await kernel_context.get_invoke_kernel()
        return await cls._run(kernel, args, kwargs)

    @classmethod
    def with_kernel(cls, kernel: Kernel) -> BoundAction[Self]:
        """Return an invoker that uses ``kernel`` instead of discovering one.

        Examples:
            .. code-block:: python

                await ShowUser.with_kernel(kernel.scoped()).invoke("1")

        """
        return BoundAction(cls, kernel)

    @classmethod
    async def _run(cls, kernel: Kernel, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        with kernel_context.use(kernel):
            action = await kernel.aget(cls)
            result = action.handle(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        return result


class BoundAction(Generic[ActionT]):
    """Action paired with an explicitly chosen kernel."""

    __slots__ = ("_action", "_kernel")

    def __init__(self, action: type[ActionT], kernel: Kernel) -> None:
        self._action = action
        self._kernel = kernel

    async def invoke(self, *args: Any, **kwargs: Any) -> Any:
        return await self._action._run(self._kernel, args, kwargs)  # noqa: SLF001


class Service(Injectable):
    """Business logic, shared within one call."""

    lifecycle: ClassVar[Lifecycle] = Lifecycle.PER_CALL


class Repo(Memoizable, Injectable):
    """Data access, shared within one call, with per-instance memoization."""

    lifecycle: ClassVar[Lifecycle] = Lifecycle.PER_CALL


class Facade(Injectable):
    """The only role other modules may depend on."""

    lifecycle: ClassVar[Lifecycle] = Lifecycle.PER_USE


class Resource(DevStable, Injectable):
    """Long-lived infrastructure handle shared by the whole kernel family."""

    lifecycle: ClassVar[Lifecycle] = Lifecycle.SINGLETON

    async def ainit(self) -> None:
        """Override to run asynchronous setup; awaited once by ``Kernel.aresolve``."""


class Module:
    """Role bases stamped with one module name.

    Create one per application module with ``create_module``; subclass its
    role bases for the module's classes.

    Examples:
        .. code-block:: python

            Users = create_module("Users")


            class UserRepo(Users.Repo):
                @memoized
                async def find_by_id(self, user_id: str) -> User: ...


            class UserService(Users.Service):
                repo = Users.inject(UserRepo)

    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.Action: type[Action] = self._stamp(Action, Role.ACTION)
        self.Service: type[Service] = self._stamp(Service, Role.SERVICE)
        self.Repo: type[Repo] = self._stamp(Repo, Role.REPO)
        self.Facade: type[Facade] = self._stamp(Facade, Role.FACADE)
        self.Resource: type[Resource] = self._stamp(Resource, Role.RESOURCE)

    def inject(
        self,
        identity: type[T],
        lifecycle: Lifecycle | str | None = None,
        *,
        unwrap: str | None = None,
    ) -> T:
        """Declare a class-level dependency of a class of this module."""
        check_injection_boundary(self.name, identity)
        return inject(identity, lifecycle, unwrap=unwrap)

    def _stamp(self, base: type[T], role: Role) -> type[T]:
        return type(
            base.__name__,
            (base,),
            {
                "tierwire_brand": ModuleBrand(self.name, role),
                "__module__": base.__module__,
                "__qualname__": f"{self.name}.{base.__name__}",
            },
        )

    def __repr__(self) -> str:
        return f"Module({self.name!r})"


def create_module(name: str) -> Module:
    """Create the role bases of one application module."""
    return Module(name)


App = create_module("app")
"""Default module for applications that do not split into modules."""
