"""
ViewerTemplates - Embedded-expression templates compiled to Python.

Directive syntax:
- ``<% code %>``: statement (``<% for x in xs: %> ... <% end %>``)
- ``<%= expr %>``: interpolation
- ``<%-> expr %>``: interpolation evaluated after the whole render
- ``<%# text %>``: comment

Example:
    from viewer.templates import Template

    template = Template("<% for n in names: %><li><%= n %></li><% end %>")
    template.render(names=["a", "b"])   # '<li>a</li><li>b</li>'
"""

from .lexer import Token, tokenize
from .program import Program, Segment, SegmentKind, parse
from .context import BasicContext, HookingContext, as_context
from .engine import (
    CodeBuilder,
    DeferredBinding,
    Fragment,
    RenderPass,
    Template,
    TemplateSource,
)
from .exposure import Context, Exposure, ExposureRegistry, exposed
from .loader import TemplateLoader
from .manager import TemplateManager, TemplateLintIssue

__all__ = [
    # Compiler
    "Token",
    "tokenize",
    "Program",
    "Segment",
    "SegmentKind",
    "parse",
    "CodeBuilder",

    # Rendering
    "Template",
    "TemplateSource",
    "DeferredBinding",
    "Fragment",
    "RenderPass",

    # Contexts
    "BasicContext",
    "HookingContext",
    "Context",
    "Exposure",
    "ExposureRegistry",
    "as_context",
    "exposed",

    # Files
    "TemplateLoader",
    "TemplateManager",
    "TemplateLintIssue",
]
