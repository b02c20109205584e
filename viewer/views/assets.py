"""
Asset Aggregator - Ordered-unique stylesheet and script references.
"""

from typing import Iterable, Iterator, MutableSet, Optional
from markupsafe import escape


class AssetSet(MutableSet):
    """
    Insertion-ordered set of asset references.

    Union (``|``) returns a new set and leaves both operands untouched;
    ``update``/``register`` merge in place.
    """

    separator = "\n"

    def __init__(self, refs: Optional[Iterable[str]] = None):
        self._refs = dict.fromkeys(refs or ())

    def __contains__(self, ref: object) -> bool:
        return ref in self._refs

    def __iter__(self) -> Iterator[str]:
        return iter(self._refs)

    def __len__(self) -> int:
        return len(self._refs)

    def add(self, ref: str) -> None:
        self._refs[ref] = None

    def discard(self, ref: str) -> None:
        self._refs.pop(ref, None)

    def update(self, refs: Iterable[str]) -> "AssetSet":
        for ref in refs:
            self.add(ref)
        return self

    register = update

    def copy(self) -> "AssetSet":
        return self.__class__(self._refs)

    @classmethod
    def _from_iterable(cls, refs: Iterable[str]) -> "AssetSet":
        return cls(refs)

    def tag(self, ref: str) -> str:
        return escape(ref)

    def render(self) -> str:
        return self.separator.join(self.tag(ref) for ref in self)

    __str__ = render

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self)!r})"


class StylesheetSet(AssetSet):
    """Renders one ``<link>`` tag per stylesheet."""

    def tag(self, ref: str) -> str:
        return f'<link rel="stylesheet" type="text/css" href="{escape(ref)}">'


class ScriptSet(AssetSet):
    """Renders one ``<script>`` tag per script."""

    def tag(self, ref: str) -> str:
        return f'<script src="{escape(ref)}"></script>'


class AssetBundle:
    """
    Stylesheets and scripts accumulated by one render.

    Attributes:
        css: Stylesheet references
        js: Script references
    """

    __slots__ = ("css", "js")

    def __init__(self, css: Optional[Iterable[str]] = None, js: Optional[Iterable[str]] = None):
        self.css = StylesheetSet(css)
        self.js = ScriptSet(js)

    def register(self, other: "AssetBundle") -> "AssetBundle":
        """Union ``other``'s references into this bundle."""
        self.css.update(other.css)
        self.js.update(other.js)
        return self

    def copy(self) -> "AssetBundle":
        return AssetBundle(self.css, self.js)

    def render(self) -> str:
        return "\n".join(part for part in (self.css.render(), self.js.render()) if part)

    def __repr__(self) -> str:
        return f"AssetBundle(css={list(self.css)!r}, js={list(self.js)!r})"
