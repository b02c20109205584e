"""
Template Engine - Compiles programs to Python and renders them.

Provides:
- CodeBuilder: program segments -> Python source with a line map
- Template: compiled template with two-phase (immediate + deferred) rendering
- RenderPass / DeferredBinding / Fragment: the deferred evaluation machinery
- Source line attribution for every failure raised by template code

Templates are trusted code. Directive code is plain Python evaluated
against a namespace that falls back to attributes of the render context.
"""

from dataclasses import dataclass
import io
import logging
import re
import textwrap
import tokenize
from typing import Any, Callable, Dict, List, Optional, Union

from jinja2 import TemplateNotFound

from viewer.faults import CodeSyntaxFault, EvaluationFault, Fault, TemplateFault
from .context import HookingContext, as_context
from .program import Program, Segment, SegmentKind, parse

logger = logging.getLogger("viewer.templates.engine")

# Raised by nested renders; these keep their own location and kind.
PASSTHROUGH_ERRORS = (Fault, TemplateNotFound)

END_PATTERN = re.compile(r"^end\s*(#.*)?$")
CONTINUATION_PATTERN = re.compile(r"^(elif|else|except|finally)\b")

_IGNORED_TOKENS = {
    tokenize.COMMENT,
    tokenize.NL,
    tokenize.NEWLINE,
    tokenize.ENDMARKER,
    tokenize.INDENT,
    tokenize.DEDENT,
}


@dataclass(frozen=True)
class TemplateSource:
    """Template text plus the path it was read from."""

    text: str
    path: str = "<string>"


# ============================================================================
# Code generation
# ============================================================================

def _leading_whitespace(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]


def _opens_block(line: str) -> bool:
    """True when the last significant token of ``line`` is ``:``."""
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(line.strip() + "\n").readline))
    except (tokenize.TokenError, SyntaxError):
        return line.rstrip().endswith(":")

    significant = [t for t in tokens if t.type not in _IGNORED_TOKENS]
    return bool(significant) and significant[-1].type == tokenize.OP and significant[-1].string == ":"


class CodeBuilder:
    """
    Translates a Program into Python source.

    Statements are spliced verbatim. A statement ending in ``:`` opens a
    block that lasts until ``<% end %>``; ``elif``/``else``/``except``/
    ``finally`` close the current block before opening their own. Every
    generated line records the index of the segment it came from.
    """

    INDENT = "    "

    def __init__(self, program: Program):
        self.program = program
        self.lines: List[str] = []
        self.line_map: List[int] = []
        self._prefixes = [""]
        self._openers: List[Segment] = []

    @property
    def prefix(self) -> str:
        return self._prefixes[-1]

    @property
    def source(self) -> str:
        return "\n".join(self.lines) + "\n"

    def add_line(self, text: str, index: int, indent: bool = True) -> None:
        if text and indent:
            text = self.prefix + text
        self.lines.append(text)
        self.line_map.append(index)

    def build(self) -> "CodeBuilder":
        for index, segment in enumerate(self.program.segments):
            if segment.kind is SegmentKind.LITERAL:
                self.add_line(f"_tpl_write({segment.code!r})", index)
            elif segment.kind is SegmentKind.STATEMENT:
                self._add_statement(segment, index)
            elif segment.kind is SegmentKind.INTERPOLATION:
                self._add_expression("_tpl_emit", segment, index)
            elif segment.kind is SegmentKind.DEFERRED:
                self._check_expression(segment)
                self.add_line(f"_tpl_defer({index})", index)
            # COMMENT segments produce no code

        if self._openers:
            opener = self._openers[-1]
            raise CodeSyntaxFault(
                "block is never closed with 'end'",
                opener.code,
                template=self.program.name,
                line=opener.line,
            )
        return self

    def _add_expression(self, function: str, segment: Segment, index: int) -> None:
        self._check_expression(segment)
        self.add_line(f"{function}((", index)
        # Verbatim lines: indentation inside the parentheses is free.
        for line in segment.code.strip("\n").split("\n"):
            self.add_line(line, index, indent=False)
        self.add_line("))", index)

    def _check_expression(self, segment: Segment) -> None:
        if not segment.code.strip():
            raise CodeSyntaxFault(
                "empty expression",
                segment.directive,
                template=self.program.name,
                line=segment.line,
            )

    def _add_statement(self, segment: Segment, index: int) -> None:
        code = textwrap.dedent(segment.code.strip("\n")).rstrip()
        lines = code.split("\n")
        first = lines[0].strip()

        if END_PATTERN.match(first) and len(lines) == 1:
            self._close_block(segment)
            return

        if CONTINUATION_PATTERN.match(first):
            self._close_block(segment)

        for line in lines:
            self.add_line(line.rstrip(), index)

        last = next((line for line in reversed(lines) if line.strip()), "")
        if last and _opens_block(last):
            self._prefixes.append(self.prefix + _leading_whitespace(last) + self.INDENT)
            self._openers.append(segment)
            self.add_line("pass", index)

    def _close_block(self, segment: Segment) -> None:
        if not self._openers:
            raise CodeSyntaxFault(
                f"'{segment.code.strip().split()[0]}' without an open block",
                segment.code,
                template=self.program.name,
                line=segment.line,
            )
        self._prefixes.pop()
        self._openers.pop()


# ============================================================================
# Rendering primitives
# ============================================================================

class RenderNamespace(dict):
    """
    Globals of a template run.

    ``self`` is the render context. Names the template did not bind itself
    resolve as attributes of the render context (exposures included), then
    as builtins.
    """

    def __init__(self, context: Any, values: Optional[Dict[str, Any]] = None):
        super().__init__(values or ())
        self.context = context

    def __missing__(self, name: str) -> Any:
        try:
            return getattr(self.context, name)
        except AttributeError:
            raise KeyError(name) from None


class DeferredBinding:
    """
    Expression evaluated after the whole buffer has been assembled.

    Captures a shallow snapshot of the template namespace at creation, so
    rebound loop variables keep the value they had, while mutated objects
    (asset bundles in particular) are observed in their final state.
    """

    __slots__ = ("template", "segment", "_code", "_namespace", "value", "resolved")

    def __init__(self, template: "Template", segment: Segment, code: Any, namespace: RenderNamespace):
        self.template = template
        self.segment = segment
        self._code = code
        self._namespace = namespace
        self.value: Optional[str] = None
        self.resolved = False

    def evaluate(self) -> str:
        if self.resolved:
            return self.value

        try:
            result = eval(self._code, self._namespace)
        except PASSTHROUGH_ERRORS:
            raise
        except Exception as exc:
            raise self.template.evaluation_fault(exc, self.segment) from exc

        self.value = "" if result is None else str(result)
        self.resolved = True
        self._namespace = None
        return self.value

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "pending"
        return f"<DeferredBinding {self.segment.code.strip()!r} line={self.segment.line} {state}>"


class Fragment:
    """Rendered chunks; deferred bindings stand in for their future value."""

    __slots__ = ("chunks",)

    def __init__(self, chunks: Optional[List[Union[str, DeferredBinding]]] = None):
        self.chunks = list(chunks or [])

    def append(self, chunk: Union[str, DeferredBinding]) -> None:
        self.chunks.append(chunk)

    def append_value(self, value: Any) -> None:
        """Stringify and append; fragments are spliced, ``None`` renders empty."""
        if isinstance(value, Fragment):
            self.chunks.extend(value.chunks)
        elif value is not None:
            self.chunks.append(str(value))

    @property
    def bindings(self) -> List[DeferredBinding]:
        return [chunk for chunk in self.chunks if isinstance(chunk, DeferredBinding)]

    def join(self) -> str:
        parts = []
        for chunk in self.chunks:
            if isinstance(chunk, DeferredBinding):
                if not chunk.resolved:
                    raise TemplateFault(
                        "DEFERRED_UNRESOLVED",
                        f"Deferred expression {chunk.segment.code.strip()!r} has not been resolved",
                        template=chunk.template.name,
                        line=chunk.segment.line,
                    )
                parts.append(chunk.value)
            else:
                parts.append(chunk)
        return "".join(parts)

    __str__ = join

    def __repr__(self) -> str:
        return f"<Fragment chunks={len(self.chunks)} deferred={len(self.bindings)}>"


class RenderPass:
    """Deferred bindings of one render, in creation order."""

    def __init__(self):
        self.bindings: List[DeferredBinding] = []

    def register(self, binding: DeferredBinding) -> None:
        self.bindings.append(binding)

    def resolve(self, fragment: Fragment) -> str:
        """Evaluate every binding in creation order, then join ``fragment``."""
        if not self.bindings:
            return fragment.join()

        logger.debug("Resolving %d deferred expression(s)", len(self.bindings))
        for binding in self.bindings:
            binding.evaluate()
        return fragment.join()


# ============================================================================
# Template
# ============================================================================

class Template:
    """
    Compiled template.

    Args:
        source: Template text
        name: Identifier used in error messages (usually the file path)

    Raises:
        DirectiveSyntaxFault: Unknown directive indicator
        CodeSyntaxFault: Template code is not valid Python

    Example:
        template = Template("<% for item in items: %>[<%= item %>]<% end %>")
        template.render(items=[1, 2])   # '[1][2]'
    """

    def __init__(self, source: str, name: str = "<string>"):
        self.source = source
        self.name = name
        self.program = parse(source, name)

        builder = CodeBuilder(self.program).build()
        self.python_source = builder.source
        self._line_map = builder.line_map
        self._code = self._compile(builder)
        self._deferred = self._compile_deferred()

        logger.debug(
            "Compiled template %s: %d segments, %d deferred",
            name, len(self.program), len(self._deferred),
        )

    @classmethod
    def from_source(cls, source: TemplateSource) -> "Template":
        return cls(source.text, source.path)

    def _compile(self, builder: CodeBuilder) -> Any:
        try:
            return compile(builder.source, self.name, "exec")
        except SyntaxError as exc:
            segment = self._segment_at(exc.lineno)
            raise CodeSyntaxFault(
                exc.msg,
                segment.code,
                template=self.name,
                line=segment.line,
            ) from exc

    def _compile_deferred(self) -> Dict[int, Any]:
        compiled = {}
        for index, segment in enumerate(self.program.segments):
            if segment.kind is not SegmentKind.DEFERRED:
                continue
            try:
                compiled[index] = compile(f"({segment.code.strip()}\n)", self.name, "eval")
            except SyntaxError as exc:
                raise CodeSyntaxFault(
                    exc.msg,
                    segment.code,
                    template=self.name,
                    line=segment.line,
                ) from exc
        return compiled

    def _segment_at(self, lineno: Optional[int]) -> Segment:
        """Segment that produced generated line ``lineno`` (1-based)."""
        segments = self.program.segments
        if lineno is None or not self._line_map:
            return segments[-1] if segments else Segment(SegmentKind.LITERAL, "", 1)
        index = self._line_map[min(max(lineno, 1), len(self._line_map)) - 1]
        return segments[index]

    def _segment_for(self, exc: BaseException) -> Segment:
        tb = exc.__traceback__
        while tb is not None:
            if tb.tb_frame.f_code is self._code:
                return self._segment_at(tb.tb_lineno)
            tb = tb.tb_next
        return self._segment_at(None)

    def evaluation_fault(self, exc: BaseException, segment: Segment) -> EvaluationFault:
        fault = EvaluationFault(
            f"{type(exc).__name__}: {exc}",
            segment.code,
            template=self.name,
            line=segment.line,
        )
        logger.debug("Template %s failed: %s", fault.location, fault.error)
        return fault

    def execute(
        self,
        context: Any = None,
        render_pass: Optional[RenderPass] = None,
        inner: Union[Fragment, Callable[[], Any], None] = None,
        **values: Any,
    ) -> Fragment:
        """
        Run the primary pass.

        Args:
            context: Render context (object, mapping or None)
            render_pass: Collects deferred bindings (fresh one if omitted)
            inner: Block exposed to the template as ``content()``
            **values: Extra names bound in the template namespace

        Returns:
            Fragment holding literal text, interpolations and placeholders
        """
        context = as_context(context)
        if render_pass is None:
            render_pass = RenderPass()

        fragment = Fragment()
        hook = context.hook if isinstance(context, HookingContext) else None
        namespace = RenderNamespace(context)

        def emit(value: Any) -> None:
            if hook is not None:
                value = hook(value)
            fragment.append_value(value)

        def defer(index: int) -> None:
            binding = DeferredBinding(
                self,
                self.program.segments[index],
                self._deferred[index],
                RenderNamespace(context, namespace),
            )
            render_pass.register(binding)
            fragment.append(binding)

        def content() -> Any:
            if callable(inner):
                return inner()
            return inner if inner is not None else ""

        namespace["self"] = context
        namespace["content"] = content
        namespace.update(values)
        namespace.update(_tpl_write=fragment.append, _tpl_emit=emit, _tpl_defer=defer)

        try:
            exec(self._code, namespace)
        except PASSTHROUGH_ERRORS:
            raise
        except Exception as exc:
            raise self.evaluation_fault(exc, self._segment_for(exc)) from exc

        return fragment

    def render(
        self,
        context: Any = None,
        inner: Union[Fragment, Callable[[], Any], None] = None,
        **values: Any,
    ) -> str:
        """Run the primary pass and resolve deferred expressions."""
        render_pass = RenderPass()
        fragment = self.execute(context, render_pass, inner, **values)
        return render_pass.resolve(fragment)

    def __repr__(self) -> str:
        return f"<Template {self.name!r}>"
