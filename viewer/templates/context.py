"""
Render Context - Objects templates are evaluated against.

Template code resolves unknown names as attributes of the render context.
Two kinds of context exist:

- BasicContext: plain attribute bag
- HookingContext: additionally intercepts every immediately evaluated
  interpolation value through ``hook()``
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class BasicContext:
    """
    Attribute bag handed to templates.

    Example:
        ctx = BasicContext(user=user, title="Profile")
        template.render(ctx)   # <%= title %> -> Profile
    """

    def __init__(self, **values: Any):
        self.__dict__.update(values)

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.__dict__))
        return f"{self.__class__.__name__}({names})"


class HookingContext(BasicContext, ABC):
    """
    Context that sees every interpolation value before it is stringified.
    """

    @abstractmethod
    def hook(self, value: Any) -> Any:
        """
        Intercept an interpolation value.

        Returns:
            The value to stringify (usually ``value`` itself)
        """


def as_context(context: Optional[Any] = None) -> Any:
    """
    Coerce ``context`` into something templates can be evaluated against.

    ``None`` becomes an empty BasicContext and mappings are copied into a
    BasicContext. Any other object is used as is.
    """
    if context is None:
        return BasicContext()
    if isinstance(context, Mapping):
        return BasicContext(**dict(context))
    return context
