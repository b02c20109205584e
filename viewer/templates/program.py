"""
Program Generator - Classifies lexer tokens into an ordered program.

A Program is the immutable, line-annotated list of segments the execution
engine turns into Python code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from viewer.faults import DirectiveSyntaxFault
from .lexer import COMMENT, DEFERRED, STATEMENT, Token, is_interpolation, tokenize


class SegmentKind(str, Enum):
    LITERAL = "literal"
    STATEMENT = "statement"
    INTERPOLATION = "interpolation"
    DEFERRED = "deferred"
    COMMENT = "comment"
    ERROR = "error"


@dataclass(frozen=True)
class Segment:
    """
    One classified unit of a program.

    Attributes:
        kind: Segment kind
        code: Literal text for LITERAL, directive body otherwise
        line: 1-based source line on which the segment ends
        indicator: Raw directive indicator (``None`` for literals)
    """

    kind: SegmentKind
    code: str
    line: int
    indicator: Optional[str] = None

    @property
    def directive(self) -> str:
        """Directive as written in the source."""
        if self.kind is SegmentKind.LITERAL:
            return self.code
        return f"<%{self.indicator or ''}{self.code}%>"


@dataclass(frozen=True)
class Program:
    """Ordered segments plus the final line counter."""

    name: str
    segments: Tuple[Segment, ...]
    lines: int

    @property
    def literal_text(self) -> str:
        """Source text with every directive region removed."""
        return "".join(
            segment.code for segment in self.segments
            if segment.kind is SegmentKind.LITERAL
        )

    def __len__(self) -> int:
        return len(self.segments)


def classify(indicator: Optional[str]) -> SegmentKind:
    """Map a lexer indicator to a segment kind."""
    if indicator is None or indicator == COMMENT:
        return SegmentKind.COMMENT
    if indicator == STATEMENT:
        return SegmentKind.STATEMENT
    if indicator == DEFERRED:
        return SegmentKind.DEFERRED
    if is_interpolation(indicator):
        return SegmentKind.INTERPOLATION
    return SegmentKind.ERROR


def generate(tokens: Iterable[Token], name: str = "<string>") -> Program:
    """
    Build a Program from lexer tokens.

    Raises:
        DirectiveSyntaxFault: On an unrecognized indicator
    """
    segments = []
    line = 1

    for token in tokens:
        line += token.text.count("\n")
        if token.text:
            segments.append(Segment(SegmentKind.LITERAL, token.text, line))

        kind = classify(token.indicator)
        line += token.code.count("\n")

        if kind is SegmentKind.ERROR:
            segment = Segment(kind, token.code, line, token.indicator)
            raise DirectiveSyntaxFault(
                segment.indicator,
                segment.directive,
                template=name,
                line=segment.line,
            )

        # Trailing text has no directive to record.
        if token.indicator is not None:
            segments.append(Segment(kind, token.code, line, token.indicator))

    return Program(name=name, segments=tuple(segments), lines=line)


def parse(source: str, name: str = "<string>") -> Program:
    """Tokenize and generate in one step."""
    return generate(tokenize(source), name)
