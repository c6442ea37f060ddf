"""Colours for the prompt: command highlighting and argument hints."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.lexers import Lexer
from prompt_toolkit.styles import Style

from .completion import ARGUMENTS, Hint
from .context import ShellContext

BOFH_STYLE = Style.from_dict(
    {
        "prompt": "ansicyan bold",
        "command.valid": "ansigreen",
        "command.partial": "ansiyellow",
        "command.unknown": "ansired",
        "argument": "",
        "hint": "ansibrightblack",
        "hint.required": "bold",
        "hint.optional": "italic",
        "hint.current": "underline",
        "hint.error": "ansired",
        "mode": "reverse",
        "auto-suggestion": "ansibrightblack",
        "bottom-toolbar": "noreverse",
    }
)

_WORDS = re.compile(r"(\s+)")

StyleFragments = List[Tuple[str, str]]


def render_hint(hint: Optional[Hint]) -> FormattedText:
    """Turn a structured hint into styled fragments.

    Required arguments are bold, optional ones italic, the argument under the
    cursor is underlined and unknown commands are red.
    """
    if hint is None:
        return FormattedText([])
    if hint.status != ARGUMENTS:
        style = "class:hint.error" if hint.is_error else "class:hint"
        return FormattedText([(style, hint.message)])
    remaining = hint.remaining()
    if not remaining:
        return FormattedText([("class:hint", hint.text())])
    fragments: StyleFragments = [("class:hint", "expects:")]
    for part in remaining:
        classes = ["class:hint", "class:hint.required" if part.required else "class:hint.optional"]
        if part.current:
            classes.append("class:hint.current")
        fragments.append(("class:hint", " "))
        fragments.append((" ".join(classes), part.text()))
    return FormattedText(fragments)


def render_toolbar(hint: Optional[Hint], mode: str) -> FormattedText:
    fragments: StyleFragments = [("class:mode", f" {mode} "), ("", " ")]
    fragments.extend(render_hint(hint))
    return FormattedText(fragments)


def command_style(ctx: ShellContext, words: List[str]) -> Tuple[str, Optional[str]]:
    """Styles for the first word and, for grouped commands, the second."""
    catalog = ctx.catalog
    head = words[0]
    if head in catalog or catalog.is_group(head):
        first = "class:command.valid"
    elif catalog.prefix_search(head) or any(group.startswith(head) for group in catalog.groups()):
        first = "class:command.partial"
    else:
        first = "class:command.unknown"
    second: Optional[str] = None
    if len(words) > 1 and head not in catalog and catalog.is_group(head):
        matches = catalog.subcommand_search(head, words[1])
        if words[1] in matches:
            second = "class:command.valid"
        elif matches:
            second = "class:command.partial"
        else:
            second = "class:command.unknown"
    return first, second


class BofhLexer(Lexer):
    """Colour the command token green, yellow or red by how well it matches."""

    def __init__(self, ctx: ShellContext, *, builtins: Callable[[], List[str]] = list) -> None:
        self.ctx = ctx
        self._builtins = builtins

    def lex_document(self, document: Document) -> Callable[[int], StyleFragments]:
        lines = document.lines

        def get_line(lineno: int) -> StyleFragments:
            try:
                line = lines[lineno]
            except IndexError:
                return []
            return self._lex_line(line)

        return get_line

    def _lex_line(self, line: str) -> StyleFragments:
        chunks = [chunk for chunk in _WORDS.split(line) if chunk]
        words = [chunk for chunk in chunks if not chunk.isspace()]
        if not words:
            return [("", line)]
        if words[0] in self._builtins():
            styles: Tuple[str, Optional[str]] = ("class:command.valid", None)
        else:
            styles = command_style(self.ctx, words)
        fragments: StyleFragments = []
        word_index = 0
        for chunk in chunks:
            if chunk.isspace():
                fragments.append(("", chunk))
                continue
            style = "class:argument"
            if word_index < 2 and styles[word_index]:
                style = styles[word_index]
            fragments.append((style, chunk))
            word_index += 1
        return fragments


__all__ = ["BOFH_STYLE", "render_hint", "render_toolbar", "command_style", "BofhLexer"]
