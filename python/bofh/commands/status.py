"""Session status command."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ShellContext
from ..output import emit_result


class StatusCommand(Command):
    def __init__(self) -> None:
        super().__init__("status", "Show connection status")

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        session = ctx.session
        if not session:
            emit_result(ctx, message="Not logged in", data={"status": "disconnected"})
            return 0
        data = {
            "status": "active",
            "url": session.url,
            "user": session.username,
            "commands": len(ctx.catalog),
            "groups": len(ctx.catalog.groups()),
            "mode": ctx.editing_mode,
        }
        emit_result(ctx, message=f"Logged in to {session.url} as {session.username}", data=data)
        if not ctx.json_output:
            print(f"  commands: {data['commands']} in {data['groups']} groups")
            print(f"  mode: {ctx.editing_mode}")
        return 0
