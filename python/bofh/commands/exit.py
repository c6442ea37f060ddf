"""Exit command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ShellContext


class ExitCommand(Command):
    def __init__(self) -> None:
        super().__init__("quit", "Log out and leave the shell", aliases=("exit",))

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        ctx.disconnect()
        raise SystemExit(0)
