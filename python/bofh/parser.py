"""Quoting-aware command line tokenizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .errors import InvalidInputSyntax

_QUOTES = ("'", '"')


@dataclass(frozen=True)
class Scan:
    """Result of scanning a (possibly partial) command line.

    ``tokens`` holds the unquoted words.  ``trailing`` is true when the line
    ends in unquoted whitespace, i.e. the cursor sits at the start of a new
    word.  ``partial_start`` is the offset in the line where the last word
    begins (the line length when ``trailing``).
    """

    tokens: List[str] = field(default_factory=list)
    trailing: bool = False
    partial_start: int = 0
    open_quote: Optional[str] = None
    dangling_escape: bool = False

    @property
    def complete_tokens(self) -> List[str]:
        if self.trailing or not self.tokens:
            return list(self.tokens)
        return list(self.tokens[:-1])

    @property
    def partial(self) -> str:
        if self.trailing or not self.tokens:
            return ""
        return self.tokens[-1]


def scan_line(line: str) -> Scan:
    """Tokenize *line* without failing on unterminated quotes.

    ``shlex`` is not used: it rejects an open quote and does not report
    where the last token starts, and completion needs both.
    """
    tokens: List[str] = []
    current: List[str] = []
    in_token = False
    token_start = 0
    quote: Optional[str] = None
    escape = False
    for index, ch in enumerate(line):
        if escape:
            current.append(ch)
            escape = False
            continue
        if quote:
            if ch == quote:
                quote = None
            elif ch == "\\" and quote == '"':
                escape = True
            else:
                current.append(ch)
            continue
        if ch.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
            continue
        if not in_token:
            in_token = True
            token_start = index
        if ch == "\\":
            escape = True
        elif ch in _QUOTES:
            quote = ch
        else:
            current.append(ch)
    if in_token:
        tokens.append("".join(current))
    trailing = not in_token
    return Scan(
        tokens=tokens,
        trailing=trailing and bool(line),
        partial_start=len(line) if trailing else token_start,
        open_quote=quote,
        dangling_escape=escape,
    )


def split_command(line: str) -> List[str]:
    """Split a submitted command line into argv tokens.

    Raises :class:`InvalidInputSyntax` for unterminated quotes or a trailing
    backslash so the caller can report it and keep the buffer.
    """
    if not line:
        return []
    scan = scan_line(line)
    if scan.open_quote:
        raise InvalidInputSyntax(
            f"unterminated {scan.open_quote} quote",
            line=line,
            position=line.rfind(scan.open_quote),
        )
    if scan.dangling_escape:
        raise InvalidInputSyntax("trailing backslash", line=line, position=len(line) - 1)
    return scan.tokens


def quote_argument(value: str) -> str:
    """Quote *value* so that :func:`split_command` yields it back unchanged."""
    if value and not any(ch.isspace() or ch in _QUOTES or ch == "\\" for ch in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = ["Scan", "scan_line", "split_command", "quote_argument"]
