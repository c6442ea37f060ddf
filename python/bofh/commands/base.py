"""Command base classes for bofh local commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ..context import ShellContext


@dataclass
class Command:
    """A command handled by the client itself, without a server round trip."""

    name: str
    description: str
    aliases: Sequence[str] = field(default_factory=tuple)
    usage: str = ""

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        raise NotImplementedError("Command must implement run()")

    def format_help(self) -> str:
        return f"{self.name:<12} {self.description}"
