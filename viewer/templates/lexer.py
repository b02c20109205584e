"""
Directive Lexer - Splits template text into literal/directive tokens.

Directive grammar::

    <%   code %>      statement
    <%=  expr %>      interpolation (any number of '=')
    <%#  text %>      comment
    <%-> expr %>      deferred interpolation
    ... -%>           trailing '-' is consumed and has no effect

Any other punctuation right after ``<%`` is kept as the indicator so the
program generator can reject it (``<%!bad%>`` has indicator ``!``).
"""

import re
from typing import Iterator, NamedTuple, Optional


# Characters that may legitimately start a Python statement are excluded
# from the catch-all indicator run.
DIRECTIVE_PATTERN = re.compile(
    r"<%"
    r"(?P<indicator>->|\#|=+|[^\w\s%'\"(\[{+\-~*._#=\\]*)"
    r"(?P<code>.*?)"
    r"-?%>",
    re.DOTALL,
)

STATEMENT = ""
COMMENT = "#"
DEFERRED = "->"


class Token(NamedTuple):
    """
    One lexer triple.

    Attributes:
        text: Literal text preceding the directive
        indicator: Directive indicator, ``None`` for trailing text
        code: Directive body
    """

    text: str
    indicator: Optional[str]
    code: str


def is_interpolation(indicator: Optional[str]) -> bool:
    """True for ``=``, ``==``, ... indicators."""
    return bool(indicator) and indicator.strip("=") == ""


def tokenize(source: str) -> Iterator[Token]:
    """
    Split ``source`` into tokens.

    Every directive yields ``Token(preceding_text, indicator, code)``.
    Text after the last directive (or the whole source when there are no
    directives) yields a final ``Token(text, None, "")``.

    Example:
        >>> list(tokenize("a<%= b %>c"))
        [Token(text='a', indicator='=', code=' b '), Token(text='c', indicator=None, code='')]
    """
    pos = 0
    for match in DIRECTIVE_PATTERN.finditer(source):
        yield Token(source[pos:match.start()], match.group("indicator"), match.group("code"))
        pos = match.end()

    rest = source[pos:]
    if rest:
        yield Token(rest, None, "")
