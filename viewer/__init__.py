"""
Viewer - Embedded-expression templates and composable views.

Example:
    from viewer import View

    class Profile(View, template="profile", css=("profile.css",)):
        pass

    html = Profile(user=user).render()
"""

__version__ = "0.1.0"

from .config import SettingsLoader, ViewerSettings
from .faults import (
    Fault,
    TemplateFault,
    DirectiveSyntaxFault,
    CodeSyntaxFault,
    EvaluationFault,
    ExposureFault,
    TemplateUnconfiguredFault,
)
from .templates import (
    BasicContext,
    Context,
    HookingContext,
    Template,
    TemplateLoader,
    TemplateManager,
    exposed,
)
from .views import AssetBundle, RenderStage, View, ViewConfig

__all__ = [
    "__version__",

    # Config
    "ViewerSettings",
    "SettingsLoader",

    # Templates
    "Template",
    "TemplateLoader",
    "TemplateManager",
    "BasicContext",
    "HookingContext",
    "Context",
    "exposed",

    # Views
    "View",
    "ViewConfig",
    "RenderStage",
    "AssetBundle",

    # Faults
    "Fault",
    "TemplateFault",
    "DirectiveSyntaxFault",
    "CodeSyntaxFault",
    "EvaluationFault",
    "ExposureFault",
    "TemplateUnconfiguredFault",
]
