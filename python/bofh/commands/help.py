"""Help command."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from .base import Command
from ..context import ShellContext
from ..output import emit_result

if TYPE_CHECKING:  # pragma: no cover
    from . import CommandRegistry


class HelpCommand(Command):
    def __init__(self) -> None:
        super().__init__("help", "Show help for local and server commands", aliases=("?",), usage="help [group [command]]")
        self._registry: CommandRegistry | None = None

    def bind(self, registry: "CommandRegistry") -> None:
        self._registry = registry

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        registry = self._registry
        if not registry:
            return 1
        if argv:
            local = registry.get(argv[0])
            if local is not None and len(argv) == 1:
                emit_result(ctx, message=local.usage or local.format_help())
                return 0
            spec = ctx.catalog.lookup(argv[0])
            topics = [spec.group, spec.subcommand] if spec and spec.group and spec.subcommand else argv
            emit_result(ctx, message=ctx.help(*[topic for topic in topics if topic]))
            return 0
        if not ctx.json_output:
            print("Local commands:")
            for command in registry.list_commands():
                print(f"  {command.format_help()}")
            print()
        emit_result(ctx, message=ctx.help())
        return 0
