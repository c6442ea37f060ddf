"""Key bindings: explicit completion and the emacs/vi toggle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.document import Document
from prompt_toolkit.enums import EditingMode
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.key_binding.vi_state import InputMode
from prompt_toolkit.shortcuts import print_formatted_text

from .completion import CompletionResult, Hint, complete
from .context import ShellContext
from .parser import quote_argument
from .styling import BOFH_STYLE, render_hint

if TYPE_CHECKING:  # pragma: no cover
    from .commands import CommandRegistry

SEPARATOR = " "
DEFAULT_TOGGLE_KEY = "f4"


@dataclass(frozen=True)
class CompletionAction:
    """What a completion request does to the buffer."""

    text: str
    cursor: int
    display: Tuple[str, ...] = ()
    hint: Optional[Hint] = None


def apply_completion(text: str, cursor: int, result: CompletionResult) -> CompletionAction:
    """Insert a unique candidate, or list several without touching the buffer."""
    if len(result.candidates) == 1:
        replacement = quote_argument(result.candidates[0])
        head = text[: result.replace_start] + replacement
        tail = text[cursor:]
        if not tail[:1].isspace():
            tail = SEPARATOR + tail
        return CompletionAction(head + tail, len(head) + 1, hint=result.hint)
    if result.candidates:
        return CompletionAction(text, cursor, display=result.candidates, hint=result.hint)
    return CompletionAction(text, cursor, hint=result.hint)


def editing_mode_for(ctx: ShellContext) -> EditingMode:
    return EditingMode.VI if ctx.vi_mode else EditingMode.EMACS


def mode_label(app) -> str:
    if app.editing_mode != EditingMode.VI:
        return "emacs"
    if app.vi_state.input_mode == InputMode.NAVIGATION:
        return "vi-normal"
    return "vi-insert"


def build_key_bindings(
    ctx: ShellContext,
    registry: "CommandRegistry",
    *,
    toggle_key: str = DEFAULT_TOGGLE_KEY,
) -> KeyBindings:
    bindings = KeyBindings()

    @bindings.add("tab")
    def _complete(event) -> None:
        buffer = event.current_buffer
        result = complete(ctx.catalog, buffer.text, buffer.cursor_position, builtins=registry.names())
        action = apply_completion(buffer.text, buffer.cursor_position, result)
        if action.display:
            if buffer.complete_state:
                buffer.complete_next()
            else:
                buffer.start_completion(select_first=False)
            return
        if (action.text, action.cursor) != (buffer.text, buffer.cursor_position):
            buffer.document = Document(action.text, action.cursor)
            return
        if action.hint is not None:
            hint = action.hint
            run_in_terminal(lambda: print_formatted_text(render_hint(hint), style=BOFH_STYLE))

    @bindings.add(toggle_key)
    def _toggle_mode(event) -> None:
        ctx.toggle_editing_mode()
        event.app.editing_mode = editing_mode_for(ctx)
        if ctx.vi_mode:
            event.app.vi_state.input_mode = InputMode.INSERT

    return bindings


__all__ = [
    "CompletionAction",
    "apply_completion",
    "build_key_bindings",
    "editing_mode_for",
    "mode_label",
    "DEFAULT_TOGGLE_KEY",
]
