from __future__ import annotations

from typing import Any, ClassVar

from tierwire.exceptions import TierwireContextNotProvidedError
from tierwire.lifecycle import Lifecycle


class ContextToken:
    """Per-call identity whose value is supplied by the integration point.

    Context tokens have no producer of their own: bind the value with
    ``kernel.context(Token, value)`` on the call's scoped kernel.
    """

    lifecycle: ClassVar[Lifecycle] = Lifecycle.PER_CALL

    def __init__(self) -> None:
        msg = (
            f"No value provided for context {type(self).__qualname__}. "
            f"Call kernel.scoped().context({type(self).__qualname__}, value) before resolving it."
        )
        raise TierwireContextNotProvidedError(msg)


def create_context(name: str, *, unwrap_key: str | None = None) -> type[Any]:
    """Create a new context token class.

    Args:
        name: Class name used in messages and reprs.
        unwrap_key: Optional key substituted for the bound value on ``get`` and
            on injection.

    Examples:
        .. code-block:: python

            RequestContext = create_context("RequestContext")

            kernel.scoped().context(RequestContext, {"user_id": "42"})

    """
    return type(name, (ContextToken,), {"unwrap_key": unwrap_key, "__module__": __name__})
