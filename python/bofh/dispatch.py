"""Route a command line to a local command or to the server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from .catalog import ArgumentSpec, CommandSpec
from .context import ShellContext
from .errors import BofhError, MissingArgument
from .output import render_result
from .parser import split_command

if TYPE_CHECKING:  # pragma: no cover
    from .commands import CommandRegistry

LOGGER = logging.getLogger("bofh.dispatch")

AskCallback = Callable[[ArgumentSpec], str]


def execute_line(
    ctx: ShellContext,
    registry: "CommandRegistry",
    line: str,
    *,
    ask: Optional[AskCallback] = None,
) -> int:
    """Run one line.  Syntax and remote errors propagate as BofhError."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return 0
    argv = split_command(stripped)
    if not argv:
        return 0
    local = registry.get(argv[0])
    if local is not None:
        return local.run(ctx, argv[1:])
    return run_remote(ctx, argv, ask=ask)


def resolve_command(ctx: ShellContext, argv: List[str]) -> Tuple[CommandSpec, int]:
    resolved = ctx.catalog.resolve(argv, exact=False)
    if resolved is not None:
        return resolved
    head = argv[0]
    groups = [group for group in ctx.catalog.groups() if group.startswith(head)]
    group = head if ctx.catalog.is_group(head) else (groups[0] if len(groups) == 1 else None)
    if group is not None:
        subs = ", ".join(ctx.catalog.subcommand_search(group, ""))
        if len(argv) == 1:
            raise BofhError(f"Incomplete command '{head}', possible subcommands: {subs}")
        raise BofhError(f"Unknown command '{group} {argv[1]}', possible subcommands: {subs}")
    matches = [spec.name for spec in ctx.catalog.prefix_search(head)]
    if matches:
        raise BofhError(f"Ambiguous command '{head}': {', '.join(matches)}")
    raise BofhError(f"Unknown command '{head}'")


def fill_arguments(command: CommandSpec, args: List[str], ask: Optional[AskCallback]) -> List[str]:
    """Prompt for required arguments the user left out."""
    filled = list(args)
    for index in range(len(filled), len(command.arguments)):
        argument = command.arguments[index]
        if not argument.required:
            break
        if ask is None:
            raise MissingArgument(f"{command.name}: missing argument <{argument.label}>")
        answer = ask(argument)
        if not answer and argument.default is not None:
            answer = argument.default
        if not answer:
            raise MissingArgument(f"{command.name}: missing argument <{argument.label}>")
        filled.append(answer)
    return filled


def run_remote(
    ctx: ShellContext,
    argv: List[str],
    *,
    ask: Optional[AskCallback] = None,
) -> int:
    command, consumed = resolve_command(ctx, argv)
    args = fill_arguments(command, argv[consumed:], ask)
    LOGGER.debug("run_command %s (%d args)", command.name, len(args))
    result = ctx.invoke(command, args)
    render_result(ctx, result, ctx.catalog.format_suggestion(command))
    return 0


__all__ = ["AskCallback", "execute_line", "fill_arguments", "resolve_command", "run_remote"]
