"""
ViewerViews - Views composed from templates, layouts and assets.
"""

from .assets import AssetBundle, AssetSet, ScriptSet, StylesheetSet
from .view import RenderStage, View, ViewConfig

__all__ = [
    "View",
    "ViewConfig",
    "RenderStage",
    "AssetBundle",
    "AssetSet",
    "StylesheetSet",
    "ScriptSet",
]
