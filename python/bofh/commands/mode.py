"""Switch between emacs and vi key bindings."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import EDITING_MODES, ShellContext
from ..output import emit_error, emit_result


class ModeCommand(Command):
    def __init__(self) -> None:
        super().__init__("mode", "Show or set the editing mode", usage="mode [emacs|vi|toggle]")

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        if not argv:
            emit_result(ctx, message=f"Editing mode: {ctx.editing_mode}", data={"mode": ctx.editing_mode})
            return 0
        choice = argv[0].lower()
        if choice == "toggle":
            mode = ctx.toggle_editing_mode()
        elif choice in EDITING_MODES:
            mode = ctx.set_editing_mode(choice)
        else:
            emit_error(ctx, message=f"unknown mode '{argv[0]}' (expected emacs, vi or toggle)")
            return 1
        emit_result(ctx, message=f"Editing mode: {mode}", data={"mode": mode})
        return 0
