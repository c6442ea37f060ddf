"""Command registry for bofh local commands."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .base import Command
from .catalog import CommandsCommand
from .exit import ExitCommand
from .help import HelpCommand
from .mode import ModeCommand
from .reload import ReloadCommand
from .source import SourceCommand
from .status import StatusCommand


class CommandRegistry:
    """Stores the local commands and resolves aliases."""

    def __init__(self) -> None:
        self._commands: Dict[str, Command] = {}
        self._ordered: List[Command] = []

    def register(self, command: Command) -> None:
        self._ordered.append(command)
        self._commands[command.name] = command
        for alias in command.aliases:
            self._commands[alias] = command

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def list_commands(self) -> Iterable[Command]:
        return self._ordered

    def names(self) -> List[str]:
        return sorted(self._commands)


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    commands = [
        HelpCommand(),
        CommandsCommand(),
        StatusCommand(),
        ModeCommand(),
        ReloadCommand(),
        SourceCommand(),
        ExitCommand(),
    ]
    for command in commands:
        registry.register(command)
        bind = getattr(command, "bind", None)
        if callable(bind):
            bind(registry)
    return registry


__all__ = ["Command", "CommandRegistry", "build_registry"]
