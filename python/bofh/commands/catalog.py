"""List the commands advertised by the server."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import ShellContext
from ..output import emit_result


class CommandsCommand(Command):
    def __init__(self) -> None:
        super().__init__("commands", "List server commands, optionally by prefix", usage="commands [prefix]")

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        prefix = argv[0] if argv else ""
        specs = ctx.catalog.prefix_search(prefix)
        if ctx.json_output:
            emit_result(ctx, message="commands", data={"commands": [spec.usage() for spec in specs]})
            return 0
        if not specs:
            print(f"No commands matching '{prefix}'")
            return 0
        for spec in specs:
            print(f"  {spec.usage()}")
        return 0
