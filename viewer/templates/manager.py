"""
Template Manager - Template discovery and linting.

Compiles every template a loader can see and reports directive and
code syntax problems with their source line.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass
import logging

from jinja2 import TemplateNotFound

from viewer.faults import CodeSyntaxFault, DirectiveSyntaxFault, TemplateFault
from .loader import TemplateLoader

logger = logging.getLogger("viewer.templates.manager")


@dataclass
class TemplateLintIssue:
    """
    Template lint issue.

    Attributes:
        template_name: Template file name
        line: Line number (if available)
        severity: Issue severity (error, warning, info)
        message: Human-readable message
        code: Issue code (e.g., "DIRECTIVE_SYNTAX", "CODE_SYNTAX")
        context: Offending directive or code
    """

    template_name: str
    severity: str
    message: str
    code: str
    line: Optional[int] = None
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "template_name": self.template_name,
            "line": self.line,
            "severity": self.severity,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }

    def __str__(self) -> str:
        location = f"{self.template_name}"
        if self.line:
            location += f":{self.line}"

        return f"{location}: {self.severity}: {self.message} [{self.code}]"


class TemplateManager:
    """
    Template discovery and linting.

    Args:
        loader: Template loader
        encoding: Encoding used to read templates

    Example:
        manager = TemplateManager(TemplateLoader(["."]))
        for issue in manager.lint_all():
            print(issue)
    """

    def __init__(self, loader: TemplateLoader, encoding: str = "utf-8"):
        self.loader = loader
        self.encoding = encoding

    def list_templates(self) -> List[str]:
        return self.loader.list_templates()

    def lint(self, name: str) -> List[TemplateLintIssue]:
        """Compile ``name`` and report what prevents it from compiling."""
        try:
            self.loader.load(name, self.encoding)
        except TemplateNotFound:
            return [TemplateLintIssue(
                template_name=name,
                severity="error",
                message=f"Template '{name}' not found",
                code="TEMPLATE_NOT_FOUND",
            )]
        except DirectiveSyntaxFault as fault:
            return [self._issue(name, fault, fault.directive)]
        except CodeSyntaxFault as fault:
            return [self._issue(name, fault, fault.source_code.strip())]
        return []

    def lint_all(self) -> List[TemplateLintIssue]:
        issues: List[TemplateLintIssue] = []
        names = self.list_templates()
        for name in names:
            issues.extend(self.lint(name))

        logger.debug("Linted %d template(s), %d issue(s)", len(names), len(issues))
        return issues

    @staticmethod
    def _issue(name: str, fault: TemplateFault, context: str) -> TemplateLintIssue:
        return TemplateLintIssue(
            template_name=name,
            severity="error",
            message=fault.message,
            code=fault.code,
            line=fault.line,
            context=context,
        )
