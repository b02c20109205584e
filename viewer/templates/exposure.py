"""
Exposure Registry - Named, inheritable computed attributes for templates.

A Context subclass exposes values to templates by name. Each exposure
stores a fallback value and/or a computation block; the accessor
installed on the class re-resolves both from the instance's own type on
every access, so a subclass can change behaviour by overriding data only.

Example:
    class Page(Context):
        @exposed
        def title(self, value):
            return value.upper()

    Page.expose("title", "welcome")
    Page().title                      # 'WELCOME'

    class Other(Page):
        pass

    Other.expose("title", "goodbye")  # inherited block, new value
    Other().title                     # 'GOODBYE'
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterator, Optional

from viewer.faults import ExposureFault
from .context import BasicContext

Block = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class Exposure:
    """
    One registry entry.

    Attributes:
        name: Exposed attribute name
        value: Fallback value (the name itself is used when unset)
        block: Computation ``block(instance, value)``
        description: Documentation only
    """

    name: str
    value: Any = None
    block: Optional[Block] = None
    description: Optional[str] = None


class ExposureRegistry:
    """Per-type table of exposures plus a type-wide default block."""

    def __init__(
        self,
        entries: Optional[Dict[str, Exposure]] = None,
        default_block: Optional[Block] = None,
    ):
        self._entries: Dict[str, Exposure] = dict(entries or {})
        self.default_block = default_block

    def derive(self) -> "ExposureRegistry":
        """Independent copy for a subtype."""
        return ExposureRegistry(self._entries, self.default_block)

    def set(self, name: str, **changes: Any) -> Exposure:
        entry = self._entries.get(name, Exposure(name))
        entry = replace(entry, **changes)
        self._entries[name] = entry
        return entry

    def get(self, name: str) -> Optional[Exposure]:
        return self._entries.get(name)

    def resolve(self, name: str) -> tuple:
        """Current ``(value, block)`` for ``name``."""
        entry = self._entries.get(name, Exposure(name))
        value = entry.value if entry.value is not None else name
        return value, entry.block or self.default_block

    def describe(self) -> Dict[str, Optional[str]]:
        return {name: entry.description for name, entry in self._entries.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class Exposed:
    """Late-binding accessor installed for an exposure."""

    def __init__(self, name: str):
        self.name = name

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self

        value, block = type(instance).exposures.resolve(self.name)
        if block is None:
            raise ExposureFault(self.name, type(instance).__name__)
        return block(instance, value)

    def __repr__(self) -> str:
        return f"<Exposed {self.name!r}>"


def exposed(func: Optional[Block] = None, *, name: Optional[str] = None, description: Optional[str] = None):
    """
    Mark a method as the block of an exposure.

    The method receives ``(self, value)`` and is registered when its class
    is created. Usable bare (``@exposed``) or with arguments.
    """
    def decorate(block: Block) -> Block:
        block.__exposure__ = {
            "name": name or block.__name__,
            "description": description or (block.__doc__ or "").strip() or None,
        }
        return block

    if func is not None:
        return decorate(func)
    return decorate


class Context(BasicContext):
    """
    Render context with an inheritable exposure registry.

    Subclassing derives the parent's registry, so overriding an exposure
    on a subtype never mutates its parent.
    """

    exposures = ExposureRegistry()

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        cls.exposures = cls.exposures.derive()

        for attr, member in list(vars(cls).items()):
            spec = getattr(member, "__exposure__", None)
            if spec is None or not callable(member):
                continue
            # Replace the method with the late-binding accessor.
            delattr(cls, attr)
            cls.expose(spec["name"], block=member)
            if spec["description"]:
                cls.describe(spec["name"], spec["description"])

    @classmethod
    def expose(cls, name: str, value: Any = None, block: Optional[Block] = None) -> None:
        """
        Register a fallback value and/or block for ``name``.

        Installs the accessor only if the class has no attribute ``name``.
        """
        changes = {}
        if value is not None:
            changes["value"] = value
        if block is not None:
            changes["block"] = block
        cls.exposures.set(name, **changes)

        if not hasattr(cls, name):
            setattr(cls, name, Exposed(name))

    @classmethod
    def describe(cls, name: str, text: str) -> None:
        cls.exposures.set(name, description=text)

    @classmethod
    def default(cls, block: Block) -> Block:
        """Set the type-wide default block. Usable as a decorator."""
        cls.exposures.default_block = block
        return block
