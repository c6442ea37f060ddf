"""
Pytest configuration and fixtures for bofh tests.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
PYTHON_SRC = REPO_ROOT / "python"
if str(PYTHON_SRC) not in sys.path:
    sys.path.append(str(PYTHON_SRC))

from bofh.catalog import CommandCatalog
from bofh.context import ShellContext
from bofh.errors import AuthFailed
from bofh.transport import Credentials, Session

SAMPLE_COMMANDS: Dict[str, Any] = {
    "user_create": [
        ["user", "create"],
        [{"type": "accountName", "prompt": "Account name"}, {"type": "date", "optional": True}],
    ],
    "user_delete": [["user", "delete"], [{"type": "accountName"}]],
    "user_password": [
        ["user", "password"],
        [{"type": "accountName"}, {"type": "accountPassword", "optional": True}],
    ],
    "user_reserve": [
        ["user", "reserve"],
        [{"type": "accountName"}, {"type": "yesNo", "optional": True, "default": "yes"}],
    ],
    "group_list": [["group", "list"], [{"type": "groupName"}]],
    "group_add_entity": [
        ["group", "add"],
        [{"type": "groupName"}, {"type": "accountName", "repeat": True}],
    ],
    "spread_add": [["spread", "add"], [{"type": "entityType"}, {"type": "id"}, {"type": "spread"}]],
    "access_grant": [["access", "grant"], "access_grant_prompt_func"],
    "misc_motd": [["misc", "motd"], []],
}

EXAMPLE_COMMANDS: Dict[str, Any] = {
    "user_create": SAMPLE_COMMANDS["user_create"],
    "user_delete": SAMPLE_COMMANDS["user_delete"],
    "group_list": SAMPLE_COMMANDS["group_list"],
}

SAMPLE_VALUES: Dict[str, List[str]] = {
    "accountName": ["alice", "albert", "bob"],
    "groupName": ["admins", "staff", "students"],
    "spread": ["AD_account", "NIS_user@uio"],
    "value": ["read", "write"],
}


class StubClient:
    """In-memory stand-in for BofhClient."""

    def __init__(
        self,
        commands: Optional[Dict[str, Any]] = None,
        *,
        values: Optional[Dict[str, List[str]]] = None,
        results: Optional[Dict[str, Any]] = None,
        password: str = "secret",
    ) -> None:
        self.commands = dict(SAMPLE_COMMANDS if commands is None else commands)
        self.values = dict(SAMPLE_VALUES if values is None else values)
        self.results = dict(results or {})
        self.password = password
        self.commands_stale = False
        self.calls: List[tuple] = []
        self.closed: List[Session] = []
        self.errors: Dict[str, BaseException] = {}
        self.logins = 0
        self.motd = "Welcome to bofhd"

    def _maybe_raise(self, method: str) -> None:
        error = self.errors.pop(method, None)
        if error is not None:
            raise error

    def get_motd(self) -> str:
        self.calls.append(("get_motd",))
        self._maybe_raise("get_motd")
        return self.motd

    def connect(self, credentials: Credentials, *, motd: Optional[str] = None) -> Session:
        self.calls.append(("login", credentials.username))
        self._maybe_raise("login")
        if credentials.password != self.password:
            raise AuthFailed("Unknown username or password")
        self.logins += 1
        return Session(f"sid-{self.logins}", credentials.username, "https://bofhd.test:8000/", motd)

    def close(self, session: Optional[Session]) -> None:
        self.calls.append(("logout",))
        if session is not None:
            self.closed.append(session)

    def list_commands(self, session: Optional[Session], *, timeout: Optional[float] = None) -> Dict[str, Any]:
        self.calls.append(("get_commands", timeout))
        self._maybe_raise("get_commands")
        self.commands_stale = False
        return dict(self.commands)

    def resolve_enumerated_values(
        self,
        session: Optional[Session],
        command: str,
        type_name: Optional[str],
        filter: str = "",
        args: Sequence[str] = (),
    ) -> List[str]:
        self.calls.append(("call_prompt_func", command, type_name, tuple(args)))
        self._maybe_raise("call_prompt_func")
        return [value for value in self.values.get(type_name or "value", []) if value.startswith(filter)]

    def invoke(self, session: Optional[Session], command: str, args: Sequence[str]) -> Any:
        self.calls.append(("run_command", command, tuple(args)))
        self._maybe_raise("run_command")
        return self.results.get(command, "OK")

    def format_suggestion(self, session: Optional[Session], command: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("get_format_suggestion", command))
        return None

    def help(self, session: Optional[Session], *topics: str) -> str:
        self.calls.append(("help",) + topics)
        return "help: " + " ".join(topics) if topics else "General help"

    def remote_calls(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()


@pytest.fixture
def session() -> Session:
    return Session("sid-0", "alice", "https://bofhd.test:8000/")


@pytest.fixture
def catalog(stub_client: StubClient, session: Session) -> CommandCatalog:
    return CommandCatalog.from_response(SAMPLE_COMMANDS, transport=stub_client, session=session)


@pytest.fixture
def example_catalog() -> CommandCatalog:
    return CommandCatalog.from_response(EXAMPLE_COMMANDS)


@pytest.fixture
def shell_ctx(stub_client: StubClient, session: Session, catalog: CommandCatalog) -> ShellContext:
    return ShellContext(client=stub_client, session=session, catalog=catalog)
