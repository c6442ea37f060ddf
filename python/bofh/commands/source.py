"""Run commands from a file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List

from .base import Command
from ..context import ShellContext
from ..errors import BofhError
from ..output import emit_error

if TYPE_CHECKING:  # pragma: no cover
    from . import CommandRegistry

LOGGER = logging.getLogger("bofh.commands.source")


class SourceCommand(Command):
    def __init__(self) -> None:
        super().__init__("source", "Run commands from a file", usage="source <file>")
        self._registry: CommandRegistry | None = None

    def bind(self, registry: "CommandRegistry") -> None:
        self._registry = registry

    def run(self, ctx: ShellContext, argv: List[str]) -> int:
        from ..dispatch import execute_line

        if len(argv) != 1 or self._registry is None:
            emit_error(ctx, message="usage: source <file>")
            return 1
        path = Path(argv[0]).expanduser()
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            emit_error(ctx, message=f"cannot read {path}: {exc}")
            return 1
        status = 0
        for lineno, line in enumerate(lines, start=1):
            try:
                rc = execute_line(ctx, self._registry, line)
            except BofhError as exc:
                LOGGER.debug("%s:%d failed", path, lineno, exc_info=True)
                emit_error(ctx, message=f"{path}:{lineno}: {exc}")
                rc = 1
            status = status or rc
        return status
