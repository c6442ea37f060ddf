"""Grammar-driven completion over the command catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .catalog import CommandCatalog, CommandSpec
from .context import ShellContext
from .parser import Scan, quote_argument, scan_line

if TYPE_CHECKING:  # pragma: no cover
    from .commands import CommandRegistry

ARGUMENTS = "arguments"
UNKNOWN_COMMAND = "unknown-command"
AMBIGUOUS_COMMAND = "ambiguous-command"
NO_MORE_ARGUMENTS = "no-more-arguments"
SUBCOMMANDS = "subcommands"
LOCAL_COMMAND = "local-command"


@dataclass(frozen=True)
class HintPart:
    name: str
    type_name: Optional[str]
    required: bool
    current: bool = False
    repeat: bool = False

    def text(self) -> str:
        label = self.type_name or self.name
        body = f"<{label}>" if self.required else f"[{label}]"
        return body + ("..." if self.repeat else "")


@dataclass(frozen=True)
class Hint:
    status: str
    command: Optional[str] = None
    parts: Tuple[HintPart, ...] = ()
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.status == UNKNOWN_COMMAND

    def remaining(self) -> Tuple[HintPart, ...]:
        for index, part in enumerate(self.parts):
            if part.current:
                return self.parts[index:]
        return self.parts

    def text(self) -> str:
        if self.status != ARGUMENTS:
            return self.message
        remaining = self.remaining()
        if not remaining:
            return f"{self.command}: no arguments"
        return "expects: " + " ".join(part.text() for part in remaining)


@dataclass(frozen=True)
class CompletionResult:
    candidates: Tuple[str, ...] = ()
    replace_start: int = 0
    hint: Optional[Hint] = None
    partial: str = ""

    @property
    def unique(self) -> Optional[str]:
        return self.candidates[0] if len(self.candidates) == 1 else None


def _unique_sorted(names: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(sorted(names)))


def argument_hint(command: CommandSpec, current: Optional[int] = None) -> Hint:
    """Describe *command*'s arguments, marking position *current*."""
    parts: List[HintPart] = []
    last = len(command.arguments) - 1
    for index, arg in enumerate(command.arguments):
        is_current = current is not None and (index == current or (index == last and arg.repeat and current > last))
        parts.append(HintPart(arg.name, arg.type_name, arg.required, is_current, arg.repeat))
    return Hint(ARGUMENTS, command=command.name, parts=tuple(parts))


def complete(
    catalog: CommandCatalog,
    text: str,
    cursor: Optional[int] = None,
    *,
    builtins: Sequence[str] = (),
    lookup_values: bool = True,
) -> CompletionResult:
    """Compute completion candidates and a hint for *text* at *cursor*.

    Only the text before the cursor is considered.  With ``lookup_values``
    false no server lookups are made (used for live hints).
    """
    if cursor is None:
        cursor = len(text)
    scan = scan_line(text[:cursor])
    if not scan.complete_tokens:
        return _complete_command(catalog, scan, builtins)
    return _complete_argument(catalog, scan, builtins, lookup_values)


def _complete_command(catalog: CommandCatalog, scan: Scan, builtins: Sequence[str]) -> CompletionResult:
    prefix = scan.partial
    specs = catalog.prefix_search(prefix)
    local = [name for name in builtins if name.startswith(prefix)]
    candidates = _unique_sorted([spec.name for spec in specs] + local)
    hint: Optional[Hint] = None
    if len(specs) == 1 and not local:
        hint = argument_hint(specs[0])
    elif len(candidates) > 1 and prefix:
        hint = Hint(AMBIGUOUS_COMMAND, command=prefix, message=f"{len(candidates)} commands match '{prefix}'")
    elif not candidates and prefix:
        if catalog.is_group(prefix):
            subs = catalog.subcommand_search(prefix, "")
            hint = Hint(SUBCOMMANDS, command=prefix, message=f"{prefix}: {', '.join(subs)}")
        else:
            hint = Hint(UNKNOWN_COMMAND, command=prefix, message=f"unknown command: {prefix}")
    return CompletionResult(candidates, scan.partial_start, hint, prefix)


def _complete_argument(
    catalog: CommandCatalog, scan: Scan, builtins: Sequence[str], lookup_values: bool
) -> CompletionResult:
    completed = scan.complete_tokens
    partial = scan.partial
    if completed[0] in builtins:
        # Local commands take precedence over the catalog when dispatched.
        hint = Hint(LOCAL_COMMAND, command=completed[0], message=f"{completed[0]}: local command")
        return CompletionResult((), scan.partial_start, hint, partial)
    resolved = catalog.resolve(completed, exact=True)
    if resolved is None:
        head = completed[0]
        if len(completed) == 1 and catalog.is_group(head):
            subs = catalog.subcommand_search(head, partial)
            hint = Hint(SUBCOMMANDS, command=head, message=f"{head}: {', '.join(catalog.subcommand_search(head, ''))}")
            return CompletionResult(tuple(subs), scan.partial_start, hint, partial)
        name = " ".join(completed[:2]) if catalog.is_group(head) else head
        hint = Hint(UNKNOWN_COMMAND, command=head, message=f"unknown command: {name}")
        return CompletionResult((), scan.partial_start, hint, partial)

    command, consumed = resolved
    index = len(completed) - consumed
    argument = command.argument_at(index)
    if argument is None:
        hint = Hint(
            NO_MORE_ARGUMENTS,
            command=command.name,
            parts=argument_hint(command).parts,
            message=f"{command.name} takes no more arguments",
        )
        return CompletionResult((), scan.partial_start, hint, partial)
    if lookup_values or not argument.kind.remote:
        values = catalog.enumerated_values(command, argument, partial, typed=completed[consumed:])
    else:
        values = [value for value in argument.choices if value.startswith(partial)]
    return CompletionResult(_unique_sorted(values), scan.partial_start, argument_hint(command, index), partial)


class BofhCompleter(Completer):
    """prompt_toolkit adapter around :func:`complete`."""

    def __init__(self, ctx: ShellContext, registry: "CommandRegistry") -> None:
        self.ctx = ctx
        self.registry = registry

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        result = complete(
            self.ctx.catalog,
            document.text,
            document.cursor_position,
            builtins=self.registry.names(),
        )
        start = result.replace_start - document.cursor_position
        for candidate in result.candidates:
            yield Completion(
                quote_argument(candidate),
                start_position=start,
                display=candidate,
                display_meta=self._meta(candidate),
            )

    def _meta(self, candidate: str) -> str:
        spec = self.ctx.catalog.lookup(candidate)
        if spec is not None:
            return spec.usage()
        command = self.registry.get(candidate)
        if command is not None:
            return command.description
        return ""


class BofhAutoSuggest(AutoSuggest):
    """Inline grey suffix for an unambiguous command or subcommand."""

    def __init__(self, ctx: ShellContext, registry: "CommandRegistry") -> None:
        self.ctx = ctx
        self.registry = registry

    def get_suggestion(self, buffer, document: Document) -> Optional[Suggestion]:
        if not document.is_cursor_at_the_end or not document.text or document.text[-1].isspace():
            return None
        result = complete(
            self.ctx.catalog,
            document.text,
            builtins=self.registry.names(),
            lookup_values=False,
        )
        candidate = result.unique
        if candidate is None or candidate == result.partial or not candidate.startswith(result.partial):
            return None
        return Suggestion(candidate[len(result.partial):])


__all__ = [
    "ARGUMENTS",
    "UNKNOWN_COMMAND",
    "AMBIGUOUS_COMMAND",
    "NO_MORE_ARGUMENTS",
    "SUBCOMMANDS",
    "LOCAL_COMMAND",
    "HintPart",
    "Hint",
    "CompletionResult",
    "argument_hint",
    "complete",
    "BofhCompleter",
    "BofhAutoSuggest",
]
