"""Re-fetch the command catalog."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ShellContext
from ..output import emit_error, emit_result


class ReloadCommand(Command):
    def __init__(self) -> None:
        super().__init__("reload", "Re-fetch the command list from the server", aliases=("rehash",))

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        if not ctx.reload_catalog():
            emit_error(ctx, message=f"reload failed, keeping {len(ctx.catalog)} known commands")
            return 1
        emit_result(ctx, message=f"Loaded {len(ctx.catalog)} commands", data={"commands": len(ctx.catalog)})
        return 0
