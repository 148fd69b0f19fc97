from __future__ import annotations

import inspect


def describe(candidate: object) -> str:
    """Return a short human-readable name for identities and producers in messages."""
    return getattr(candidate, "__qualname__", None) or repr(candidate)


def constructibility_problem(producer: object) -> str | None:
    """Return why ``producer`` cannot be called without arguments, or ``None`` when it can.

    Args:
        producer: Class or callable selected to build an instance.

    """
    if not callable(producer):
        return "it is not callable"
    if inspect.isclass(producer) and inspect.isabstract(producer):
        return "it is an abstract class"

    try:
        signature = inspect.signature(producer)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures are trusted.
        return None

    required = [
        parameter.name
        for parameter in signature.parameters.values()
        if parameter.default is inspect.Parameter.empty
        and parameter.kind
        not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    if required:
        return f"it requires constructor arguments ({', '.join(required)})"
    return None

