"""
View - Hierarchical view composition on top of the template engine.

A View is a render context that knows which content and layout templates
it renders with, and which stylesheets and scripts it needs. Embedding a
view in another view's template with a plain ``<%= child %>`` merges the
child's assets into the parent; a deferred ``<%-> css %>`` in the parent's
layout then sees the complete set.

Example:
    class Card(View, template="card", css=("card.css",)):
        pass

    class Page(View, template="page", css=("page.css",)):
        pass

    # templates/page.html.tpl:   <main><%= Card(title="Hi") %></main>
    # templates/layout.html.tpl: <head><%-> css %></head><%= content() %>
    html = Page().render()
"""

from contextvars import ContextVar
from types import MethodType
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, AsyncIterator, Iterable, Iterator, Optional, Tuple, Union
import asyncio
import logging
import posixpath

from jinja2 import TemplateNotFound

from viewer.config import ViewerSettings
from viewer.faults import TemplateUnconfiguredFault
from viewer.templates.context import HookingContext
from viewer.templates.engine import RenderPass
from viewer.templates.exposure import Context, exposed
from viewer.templates.loader import TemplateLoader
from .assets import AssetBundle, ScriptSet, StylesheetSet

logger = logging.getLogger("viewer.views")

# Bundle of the view currently rendering; nested renders merge into it.
_enclosing_assets: ContextVar[Optional[AssetBundle]] = ContextVar(
    "viewer_enclosing_assets", default=None
)


class RenderStage(str, Enum):
    IDLE = "idle"
    CONTENT_COMPILING = "content_compiling"
    CONTENT_EXECUTING = "content_executing"
    LAYOUT_COMPILING = "layout_compiling"
    LAYOUT_EXECUTING = "layout_executing"
    DEFERRED_RESOLUTION = "deferred_resolution"
    DONE = "done"
    FAILED = "failed"


def _refs(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = (value,)
    return tuple(dict.fromkeys(value))


class typemethod:
    """
    Method with separate type-level and instance-level implementations.

    Accessed on the class it binds ``func`` to the class; accessed on an
    instance it binds the function given to ``.instance`` to the instance.
    """

    def __init__(self, func):
        self.type_func = func
        self.instance_func = None
        self.__doc__ = func.__doc__

    def instance(self, func) -> "typemethod":
        self.instance_func = func
        return self

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None or self.instance_func is None:
            return MethodType(self.type_func, owner)
        return MethodType(self.instance_func, instance)


@dataclass(frozen=True)
class ViewConfig:
    """
    Per-type view configuration.

    Attributes:
        template: Content template name
        theme: Optional theme directory under the templates root
        layout: Layout template name (settings default when unset)
        output_format: Output format part of file names (e.g. "html")
        css: Stylesheet references the view always needs
        js: Script references the view always needs
        use_layout: Look up a layout at all
    """

    template: Optional[str] = None
    theme: Optional[str] = None
    layout: Optional[str] = None
    output_format: Optional[str] = None
    css: Tuple[str, ...] = ()
    js: Tuple[str, ...] = ()
    use_layout: bool = True

    def __post_init__(self):
        object.__setattr__(self, "css", _refs(self.css))
        object.__setattr__(self, "js", _refs(self.js))

    def replace(self, **changes: Any) -> "ViewConfig":
        return replace(self, **changes)

    def merge_assets(self, other: "ViewConfig") -> "ViewConfig":
        """Config whose assets are the union of both configs' assets."""
        return replace(self, css=self.css + other.css, js=self.js + other.js)

    def bundle(self) -> AssetBundle:
        """Fresh accumulator seeded with this config's assets."""
        return AssetBundle(self.css, self.js)


class View(Context, HookingContext):
    """
    Renderable view.

    Configuration is resolved per instance override, then type config,
    then settings defaults. Class keyword arguments configure the type::

        class Profile(View, template="profile", theme="dark"):
            pass

    Args:
        template: Content template name override
        theme: Theme override
        layout: Layout name override
        output_format: Output format override
        loader: Template loader (default: built from settings)
        settings: Settings override
        **attributes: Attributes made available to templates
    """

    config: ViewConfig = ViewConfig()
    settings: ViewerSettings = ViewerSettings()
    loader: Optional[TemplateLoader] = None

    def __init_subclass__(cls, **options: Any):
        super().__init_subclass__()
        if options:
            cls.configure(**options)

    def __init__(
        self,
        template: Optional[str] = None,
        theme: Optional[str] = None,
        layout: Optional[str] = None,
        output_format: Optional[str] = None,
        *,
        loader: Optional[TemplateLoader] = None,
        settings: Optional[ViewerSettings] = None,
        **attributes: Any,
    ):
        super().__init__(**attributes)
        self._template = template
        self._theme = theme
        self._layout = layout
        self._output_format = output_format
        self.settings = settings or type(self).settings
        self.loader = loader or type(self).loader or TemplateLoader(self.settings.search_paths)
        self.stage = RenderStage.IDLE
        self._registered = AssetBundle()
        self._assets = self.config.bundle()

    # ------------------------------------------------------------------
    # Type-level configuration
    # ------------------------------------------------------------------

    @classmethod
    def configure(cls, **changes: Any) -> ViewConfig:
        """Replace config fields for this type (and types derived later)."""
        cls.config = cls.config.replace(**changes)
        return cls.config

    @typemethod
    def register(cls, view: Union[type, "View"]) -> ViewConfig:
        """Statically depend on ``view``: union its assets into this type's."""
        cls.config = cls.config.merge_assets(view.config)
        return cls.config

    @register.instance
    def register(self, other: Union["View", AssetBundle]) -> AssetBundle:
        """Union ``other``'s assets into this instance only."""
        if isinstance(other, type):
            bundle = other.config.bundle()
        elif isinstance(other, View):
            bundle = other.assets
        else:
            bundle = other
        self._registered.register(bundle)
        return self._assets.register(bundle)

    # ------------------------------------------------------------------
    # Resolved configuration
    # ------------------------------------------------------------------

    @property
    def template(self) -> str:
        template = self._template or self.config.template
        if not template:
            raise TemplateUnconfiguredFault(type(self).__name__)
        return template

    @property
    def theme(self) -> Optional[str]:
        return self._theme or self.config.theme

    @property
    def layout(self) -> Optional[str]:
        if not self.config.use_layout:
            return None
        return self._layout or self.config.layout or self.settings.default_layout

    @property
    def output_format(self) -> str:
        return self._output_format or self.config.output_format or self.settings.default_format

    def templates_path_list(self) -> list:
        return [part for part in (self.settings.templates_root, self.theme) if part]

    def _path_for(self, name: str) -> str:
        filename = f"{name}.{self.output_format}.{self.settings.template_extension}"
        return posixpath.join(*self.templates_path_list(), filename)

    @property
    def template_path(self) -> str:
        return self._path_for(self.template)

    @property
    def layout_path(self) -> Optional[str]:
        layout = self.layout
        return self._path_for(layout) if layout else None

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    @property
    def assets(self) -> AssetBundle:
        """Assets of the current (or most recent) render."""
        return self._assets

    @exposed(description="Stylesheet tags for the view and every view embedded in it")
    def css(self, value: Any) -> StylesheetSet:
        return self._assets.css

    @exposed(description="Script tags for the view and every view embedded in it")
    def js(self, value: Any) -> ScriptSet:
        return self._assets.js

    def hook(self, value: Any) -> Any:
        """Merge an embedded view's assets before it is stringified."""
        if isinstance(value, View) and value is not self:
            self._assets.register(value.assets)
        return value

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _transition(self, stage: RenderStage) -> None:
        logger.debug("%s: %s -> %s", type(self).__name__, self.stage.value, stage.value)
        self.stage = stage

    def render(self, encoding: Optional[str] = None) -> str:
        """
        Render content (wrapped in the layout when one exists).

        Raises:
            TemplateNotFound: Content template missing
            TemplateFault: Template failed to compile or evaluate
        """
        encoding = encoding or self.settings.encoding
        enclosing = _enclosing_assets.get()

        self.stage = RenderStage.IDLE
        self._assets = bundle = self.config.bundle().register(self._registered)
        token = _enclosing_assets.set(bundle)
        try:
            output = self._render(encoding)
        except Exception:
            self._transition(RenderStage.FAILED)
            raise
        finally:
            _enclosing_assets.reset(token)

        if enclosing is not None and enclosing is not bundle:
            enclosing.register(bundle)
        return output

    def _render(self, encoding: str) -> str:
        render_pass = RenderPass()

        self._transition(RenderStage.CONTENT_COMPILING)
        content = self.loader.load(self.template_path, encoding)

        self._transition(RenderStage.CONTENT_EXECUTING)
        fragment = content.execute(self, render_pass)

        layout_path = self.layout_path
        if layout_path:
            self._transition(RenderStage.LAYOUT_COMPILING)
            try:
                layout = self.loader.load(layout_path, encoding)
            except TemplateNotFound:
                logger.debug("No layout at %s, rendering %s without one", layout_path, type(self).__name__)
            else:
                self._transition(RenderStage.LAYOUT_EXECUTING)
                fragment = layout.execute(self, render_pass, inner=fragment)

        self._transition(RenderStage.DEFERRED_RESOLUTION)
        output = render_pass.resolve(fragment)

        self._transition(RenderStage.DONE)
        return output

    __str__ = render

    def __iter__(self) -> Iterator[str]:
        """Single-chunk body for hosts that consume iterables."""
        yield self.render()

    async def stream(self, encoding: Optional[str] = None) -> AsyncIterator[bytes]:
        """
        Single-chunk encoded body for async hosts.

        The synchronous render (file reads included) runs in the loop's
        default executor.
        """
        encoding = encoding or self.settings.encoding
        loop = asyncio.get_running_loop()
        output = await loop.run_in_executor(None, self.render, encoding)
        yield output.encode(encoding)

    def __repr__(self) -> str:
        name = self._template or self.config.template
        return f"<{type(self).__name__} template={name!r}>"
