"""
ViewerFaults - Structured fault handling for templates and views.

Errors raised by the compiler, the renderer and the settings loader are
typed faults carrying a stable code, a domain and metadata describing
where in the template they happened.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain enumeration
- Severity: Severity levels
- Template faults: DirectiveSyntaxFault, CodeSyntaxFault, EvaluationFault,
  ExposureFault
- View faults: ViewFault, TemplateUnconfiguredFault
- Config faults: ConfigFault, ConfigInvalidFault
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    TemplateFault,
    DirectiveSyntaxFault,
    CodeSyntaxFault,
    EvaluationFault,
    ExposureFault,
    ViewFault,
    TemplateUnconfiguredFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",

    # Config
    "ConfigFault",
    "ConfigInvalidFault",

    # Templates
    "TemplateFault",
    "DirectiveSyntaxFault",
    "CodeSyntaxFault",
    "EvaluationFault",
    "ExposureFault",

    # Views
    "ViewFault",
    "TemplateUnconfiguredFault",
]
