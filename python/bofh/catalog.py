"""Command catalog built from the server's ``get_commands`` response."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import BofhError, CatalogFetchFailed, RemoteFault, SessionExpired

LOGGER = logging.getLogger("bofh.catalog")

_BOOLEAN_TYPES = {"yesNo"}
_NUMERIC_TYPES = {"int", "integer", "id", "number", "entityId"}
_REFERENCE_TYPES = {"disk", "ou", "emailAddress", "personId", "entityName", "host"}
_ENUMERATED_TYPES = {"spread", "affiliation", "quarantineType", "source", "externalIdType", "traitType"}


class ArgumentKind(enum.Enum):
    FREE_TEXT = "free-text"
    ENUMERATED = "enumerated"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    REFERENCE = "reference"

    @classmethod
    def classify(cls, type_name: Optional[str], *, prompt_func: bool = False) -> "ArgumentKind":
        if prompt_func:
            return cls.ENUMERATED
        if not type_name:
            return cls.FREE_TEXT
        if type_name in _BOOLEAN_TYPES:
            return cls.BOOLEAN
        if type_name in _NUMERIC_TYPES:
            return cls.NUMERIC
        if type_name in _ENUMERATED_TYPES:
            return cls.ENUMERATED
        if type_name in _REFERENCE_TYPES or type_name.endswith("Name"):
            return cls.REFERENCE
        return cls.FREE_TEXT

    @property
    def remote(self) -> bool:
        return self in (ArgumentKind.ENUMERATED, ArgumentKind.REFERENCE)


@dataclass(frozen=True)
class ArgumentSpec:
    name: str
    type_name: Optional[str] = None
    kind: ArgumentKind = ArgumentKind.FREE_TEXT
    optional: bool = False
    repeat: bool = False
    default: Optional[str] = None
    prompt: Optional[str] = None
    help_ref: Optional[str] = None
    choices: Tuple[str, ...] = ()

    @property
    def required(self) -> bool:
        return not self.optional

    @property
    def label(self) -> str:
        return self.type_name or self.name


@dataclass(frozen=True)
class CommandSpec:
    name: str
    arguments: Tuple[ArgumentSpec, ...] = ()
    group: Optional[str] = None
    subcommand: Optional[str] = None
    help: str = ""
    prompt_func: bool = False

    def argument_at(self, index: int) -> Optional[ArgumentSpec]:
        if index < 0:
            return None
        if index < len(self.arguments):
            return self.arguments[index]
        if self.arguments and self.arguments[-1].repeat:
            return self.arguments[-1]
        return None

    @property
    def required_count(self) -> int:
        return sum(1 for arg in self.arguments if arg.required)

    def usage(self) -> str:
        parts = [self.name]
        for arg in self.arguments:
            text = f"<{arg.label}>" if arg.required else f"[{arg.label}]"
            parts.append(text + ("..." if arg.repeat else ""))
        return " ".join(parts)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value == "True"
    return False


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def parse_argument(raw: Mapping[str, Any], position: int) -> ArgumentSpec:
    type_name = _optional_str(raw.get("type"))
    prompt = _optional_str(raw.get("prompt"))
    kind = ArgumentKind.classify(type_name)
    return ArgumentSpec(
        name=prompt or type_name or f"arg{position + 1}",
        type_name=type_name,
        kind=kind,
        optional=_flag(raw.get("optional", False)),
        repeat=_flag(raw.get("repeat", False)),
        default=_optional_str(raw.get("default")),
        prompt=prompt,
        help_ref=_optional_str(raw.get("help_ref")),
        choices=("no", "yes") if kind is ArgumentKind.BOOLEAN else (),
    )


def parse_command(name: str, raw: Any) -> CommandSpec:
    """Parse one ``get_commands`` entry: ``[[group, sub], args, ...]``."""
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValueError(f"malformed command entry for {name!r}")
    group = subcommand = None
    names = raw[0]
    if isinstance(names, (list, tuple)) and len(names) >= 2:
        group, subcommand = str(names[0]), str(names[1])
    raw_args = raw[1] if len(raw) > 1 else []
    if isinstance(raw_args, str):
        # Arguments negotiated through call_prompt_func.
        kind = ArgumentKind.classify(None, prompt_func=True)
        argument = ArgumentSpec(name="value", kind=kind, optional=True, repeat=True)
        return CommandSpec(name=name, arguments=(argument,), group=group, subcommand=subcommand, prompt_func=True)
    arguments: List[ArgumentSpec] = []
    for position, entry in enumerate(raw_args or []):
        if not isinstance(entry, Mapping):
            raise ValueError(f"malformed argument {position} for {name!r}")
        arguments.append(parse_argument(entry, position))
    return CommandSpec(name=name, arguments=tuple(arguments), group=group, subcommand=subcommand)


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def _match(names: Iterable[str], token: str, exact: bool) -> Optional[str]:
    names = list(names)
    if token in names:
        return token
    if exact:
        return None
    matches = [name for name in names if name.startswith(token)]
    return matches[0] if len(matches) == 1 else None


@dataclass
class CommandCatalog:
    """Commands supported by the connected server.

    A catalog is built completely before anyone sees it; ``refresh`` returns
    a new catalog rather than mutating this one.
    """

    commands: Dict[str, CommandSpec] = field(default_factory=dict)
    _groups: Dict[str, Dict[str, CommandSpec]] = field(default_factory=dict, init=False, repr=False)
    _value_cache: Dict[Tuple[str, Tuple[str, ...]], List[str]] = field(default_factory=dict, init=False, repr=False)
    _formats: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict, init=False, repr=False)
    transport: Any = field(default=None, repr=False)
    session: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for spec in self.commands.values():
            if spec.group and spec.subcommand:
                self._groups.setdefault(spec.group, {})[spec.subcommand] = spec

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_specs(cls, specs: Iterable[CommandSpec], *, transport: Any = None, session: Any = None) -> "CommandCatalog":
        commands: Dict[str, CommandSpec] = {}
        for spec in specs:
            if spec.name in commands:
                raise ValueError(f"duplicate command {spec.name!r}")
            commands[spec.name] = spec
        return cls(commands=commands, transport=transport, session=session)

    @classmethod
    def from_response(cls, response: Mapping[str, Any], *, transport: Any = None, session: Any = None) -> "CommandCatalog":
        specs = [parse_command(str(name), raw) for name, raw in response.items()]
        return cls.from_specs(specs, transport=transport, session=session)

    @classmethod
    def load(cls, transport: Any, session: Any, *, timeout: Optional[float] = None) -> "CommandCatalog":
        """Fetch and parse the catalog; all-or-nothing."""
        try:
            response = transport.list_commands(session, timeout=timeout)
        except BofhError as exc:
            raise CatalogFetchFailed(f"could not fetch commands: {exc}") from exc
        try:
            catalog = cls.from_response(response, transport=transport, session=session)
        except (ValueError, TypeError, AttributeError) as exc:
            raise CatalogFetchFailed(f"could not parse commands: {exc}") from exc
        LOGGER.info("loaded %d commands in %d groups", len(catalog), len(catalog._groups))
        return catalog

    def refresh(self, transport: Any = None, session: Any = None, *, timeout: Optional[float] = None) -> "CommandCatalog":
        return CommandCatalog.load(transport or self.transport, session or self.session, timeout=timeout)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self):
        return iter(self.commands.values())

    def __contains__(self, name: object) -> bool:
        return name in self.commands

    def names(self) -> List[str]:
        return list(self.commands)

    def lookup(self, name: str) -> Optional[CommandSpec]:
        return self.commands.get(name)

    def prefix_search(self, prefix: str) -> List[CommandSpec]:
        matches = [spec for spec in self.commands.values() if spec.name.startswith(prefix)]
        return sorted(matches, key=lambda spec: spec.name)

    def groups(self) -> List[str]:
        return sorted(self._groups)

    def group_commands(self, group: str) -> List[CommandSpec]:
        entries = self._groups.get(group, {})
        return [entries[sub] for sub in sorted(entries)]

    def subcommand_search(self, group: str, prefix: str) -> List[str]:
        return sorted(sub for sub in self._groups.get(group, {}) if sub.startswith(prefix))

    def resolve(self, tokens: Sequence[str], *, exact: bool = True) -> Optional[Tuple[CommandSpec, int]]:
        """Resolve the leading *tokens* to a command.

        Returns the command and the number of tokens that named it (1 for
        ``user_create``, 2 for ``user create``).
        """
        if not tokens:
            return None
        head = tokens[0]
        spec = self.commands.get(head)
        if spec is not None:
            return spec, 1
        if len(tokens) > 1:
            group = _match(self._groups, head, exact)
            if group is not None:
                sub = _match(self._groups[group], tokens[1], exact)
                if sub is not None:
                    return self._groups[group][sub], 2
        if not exact:
            name = _match(self.commands, head, exact=False)
            if name is not None:
                return self.commands[name], 1
        return None

    def is_group(self, name: str) -> bool:
        return name in self._groups

    # ------------------------------------------------------------------
    # Argument values
    # ------------------------------------------------------------------
    def enumerated_values(
        self,
        command: CommandSpec,
        argument: ArgumentSpec,
        partial: str = "",
        *,
        typed: Sequence[str] = (),
    ) -> List[str]:
        """Legal values for *argument* starting with *partial*.

        Remote lookups are cached per command, position and preceding
        arguments; failures and timeouts yield an empty list.
        """
        resolver = _RESOLVERS[argument.kind]
        values = resolver(self, command, argument, tuple(typed))
        return _unique(sorted(value for value in values if value.startswith(partial)))

    def _remote_values(self, command: CommandSpec, argument: ArgumentSpec, typed: Tuple[str, ...]) -> List[str]:
        if self.transport is None:
            return []
        key = (command.name, typed)
        if key in self._value_cache:
            return self._value_cache[key]
        try:
            values = list(
                self.transport.resolve_enumerated_values(self.session, command.name, argument.type_name, "", typed)
            )
        except SessionExpired as exc:
            LOGGER.debug("value lookup for %s failed: %s", command.name, exc)
            return []
        except RemoteFault as exc:
            # Commands without a server-side prompt function are refused
            # every time; remember that for this catalog.
            LOGGER.debug("value lookup for %s refused: %s", command.name, exc)
            values = []
        except BofhError as exc:
            LOGGER.debug("value lookup for %s failed: %s", command.name, exc)
            return []
        self._value_cache[key] = values
        return values

    def format_suggestion(self, command: CommandSpec) -> Optional[Dict[str, Any]]:
        if command.name in self._formats:
            return self._formats[command.name]
        suggestion = None
        if self.transport is not None:
            try:
                suggestion = self.transport.format_suggestion(self.session, command.name)
            except BofhError as exc:
                LOGGER.debug("format suggestion for %s failed: %s", command.name, exc)
        self._formats[command.name] = suggestion
        return suggestion


Resolver = Callable[[CommandCatalog, CommandSpec, ArgumentSpec, Tuple[str, ...]], List[str]]


def _no_values(catalog: CommandCatalog, command: CommandSpec, argument: ArgumentSpec, typed: Tuple[str, ...]) -> List[str]:
    return []


def _static_values(catalog: CommandCatalog, command: CommandSpec, argument: ArgumentSpec, typed: Tuple[str, ...]) -> List[str]:
    return list(argument.choices)


def _remote_values(catalog: CommandCatalog, command: CommandSpec, argument: ArgumentSpec, typed: Tuple[str, ...]) -> List[str]:
    return list(argument.choices) + catalog._remote_values(command, argument, typed)


_RESOLVERS: Dict[ArgumentKind, Resolver] = {
    ArgumentKind.FREE_TEXT: _no_values,
    ArgumentKind.NUMERIC: _no_values,
    ArgumentKind.BOOLEAN: _static_values,
    ArgumentKind.ENUMERATED: _remote_values,
    ArgumentKind.REFERENCE: _remote_values,
}


__all__ = [
    "ArgumentKind",
    "ArgumentSpec",
    "CommandSpec",
    "CommandCatalog",
    "parse_argument",
    "parse_command",
]
