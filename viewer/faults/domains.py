"""
ViewerFaults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- TEMPLATE faults (directive syntax, code syntax, evaluation, exposures)
- VIEW faults
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for settings faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            retryable=False,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Settings value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Setting '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# TEMPLATE Faults
# ============================================================================

class TemplateFault(Fault):
    """Base class for template compilation and rendering faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        template: Optional[str] = None,
        line: Optional[int] = None,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.template = template
        self.line = line
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.TEMPLATE,
            severity=severity,
            retryable=False,
            metadata={"template": template, "line": line, **(metadata or {})},
        )

    @property
    def location(self) -> str:
        """``template:line`` for messages."""
        location = self.template or "<string>"
        if self.line is not None:
            location += f":{self.line}"
        return location


class DirectiveSyntaxFault(TemplateFault):
    """Directive uses an indicator the lexer does not know."""

    def __init__(self, indicator: str, directive: str, **kwargs):
        self.indicator = indicator
        self.directive = directive
        super().__init__(
            code="DIRECTIVE_SYNTAX",
            message=f"Unrecognized directive indicator {indicator!r} in {directive!r}",
            severity=Severity.FATAL,
            metadata={"indicator": indicator, "directive": directive},
            **kwargs,
        )


class CodeSyntaxFault(TemplateFault):
    """Template code does not form a valid program."""

    def __init__(self, reason: str, code: str, **kwargs):
        self.reason = reason
        self.source_code = code
        super().__init__(
            code="CODE_SYNTAX",
            message=f"{reason} in {code.strip()!r}",
            severity=Severity.FATAL,
            metadata={"reason": reason, "code": code},
            **kwargs,
        )


class EvaluationFault(TemplateFault):
    """
    Template code raised while rendering.

    Wraps the original exception (available as ``__cause__``) with the
    template line and the directive code that failed.
    """

    def __init__(self, error: str, code: str, **kwargs):
        self.error = error
        self.source_code = code
        super().__init__(
            code="TEMPLATE_EVALUATION",
            message=f"{error} (in {code.strip()!r})",
            metadata={"error": error, "code": code},
            **kwargs,
        )

    def __str__(self) -> str:
        return f"[{self.code}] {self.location}: {self.message}"


class ExposureFault(TemplateFault):
    """Exposure has neither its own block nor a default block."""

    def __init__(self, name: str, owner: str, **kwargs):
        super().__init__(
            code="EXPOSURE_UNDEFINED",
            message=f"Exposure '{name}' on {owner} has no block and no default block",
            metadata={"name": name, "owner": owner},
            **kwargs,
        )


# ============================================================================
# VIEW Faults
# ============================================================================

class ViewFault(Fault):
    """Base class for view composition faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.VIEW,
            severity=severity,
            retryable=False,
            metadata=metadata,
        )


class TemplateUnconfiguredFault(ViewFault):
    """View has no template name to render."""

    def __init__(self, view: str, **kwargs):
        super().__init__(
            code="TEMPLATE_UNCONFIGURED",
            message=f"View {view} has no template configured",
            metadata={"view": view, **kwargs.get("metadata", {})},
        )
