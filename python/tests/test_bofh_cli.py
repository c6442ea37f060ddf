"""CLI entry point tests."""

from __future__ import annotations

import contextlib

import pytest
from prompt_toolkit.enums import EditingMode

from bofh import cli
from bofh import repl as repl_module
from bofh.errors import NetworkError, RemoteFault, TransportTimeout

from conftest import StubClient


class _NeverStarted:
    def __init__(self) -> None:
        self.created = False

    def factory(self, **options):
        self.created = True
        raise AssertionError("interactive loop must not start")


class _Scripted:
    def __init__(self, lines) -> None:
        self.lines = list(lines)
        self.options = {}

    def factory(self, **options):
        self.options = options
        return self

    def prompt(self, message, **kwargs):
        if not self.lines:
            raise EOFError
        line = self.lines.pop(0)
        # An accepted buffer is appended to the session history.
        self.options["history"].append_string(line)
        return line


@pytest.fixture(autouse=True)
def _quiet_environment(monkeypatch):
    for name in ("BOFH_URL", "BOFH_USER", "BOFH_PASSWORD", "BOFH_CA_CERT", "BOFH_TIMEOUT", "BOFH_HISTORY", "BOFH_LOG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "_install_signal_handlers", lambda: None)
    monkeypatch.setattr(repl_module, "patch_stdout", contextlib.nullcontext)


def _main(client, argv, *, session_factory=None, password="secret"):
    prompts = []

    def password_prompt(text):
        prompts.append(text)
        return password

    status = cli.main(
        ["-u", "alice"] + list(argv),
        client_factory=lambda config: client,
        password_prompt=password_prompt,
        session_factory=session_factory,
    )
    return status, prompts


def test_catalog_timeout_aborts_before_loop(tmp_path, capsys):
    client = StubClient()
    client.errors["get_commands"] = TransportTimeout("get_commands timed out")
    never = _NeverStarted()
    status, _ = _main(client, ["--history", str(tmp_path / "h")], session_factory=never.factory)
    assert status == 1
    assert not never.created
    assert "could not fetch commands" in capsys.readouterr().err
    assert len(client.closed) == 1


def test_authentication_failure(tmp_path, capsys):
    client = StubClient()
    status, prompts = _main(client, ["--history", str(tmp_path / "h")], password="wrong")
    assert status == 1
    assert prompts == ["Password for alice: "]
    assert "authentication failed" in capsys.readouterr().err


def test_unreachable_server(tmp_path, capsys):
    client = StubClient()
    client.errors["get_motd"] = NetworkError("connection refused")
    status, prompts = _main(client, ["--history", str(tmp_path / "h")])
    assert status == 1
    assert prompts == []
    assert "cannot reach" in capsys.readouterr().err


def test_server_fault_during_startup(tmp_path, capsys):
    client = StubClient()
    client.errors["get_motd"] = RemoteFault("server broken")
    never = _NeverStarted()
    status, prompts = _main(client, ["--history", str(tmp_path / "h")], session_factory=never.factory)
    assert status == 1
    assert prompts == []
    assert not never.created
    assert "bofh: server broken" in capsys.readouterr().err


def test_password_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("BOFH_PASSWORD", "secret")
    client = StubClient()
    status, prompts = _main(client, ["-c", "user_delete alice"])
    assert status == 0
    assert prompts == []


def test_single_command(capsys):
    client = StubClient(results={"user_delete": "OK, deleted alice"})
    status, _ = _main(client, ["-c", "user delete alice"])
    assert status == 0
    out = capsys.readouterr().out
    assert "Welcome to bofhd" in out
    assert "OK, deleted alice" in out
    assert client.remote_calls("run_command") == [("run_command", "user_delete", ("alice",))]
    assert len(client.closed) == 1


def test_single_command_failure(capsys):
    client = StubClient()
    client.errors["run_command"] = RemoteFault("Unknown group: foo")
    status, _ = _main(client, ["-c", "group_list foo"])
    assert status == 1
    assert "error: Unknown group: foo" in capsys.readouterr().out


def test_interactive_session(tmp_path, capsys):
    client = StubClient()
    history = tmp_path / "history"
    scripted = _Scripted(["user_delete alice", "group list staff"])
    status, _ = _main(client, ["--history", str(history), "--vi"], session_factory=scripted.factory)
    assert status == 0
    assert history.read_text(encoding="utf-8").splitlines() == ["user_delete alice", "group list staff"]
    assert cli.FAREWELL in capsys.readouterr().out
    assert len(client.closed) == 1
    assert scripted.options["editing_mode"] == EditingMode.VI


def test_no_history_option(tmp_path):
    client = StubClient()
    history = tmp_path / "history"
    history.write_text("group_list staff\n", encoding="utf-8")
    scripted = _Scripted(["user_delete alice"])
    status, _ = _main(client, ["--no-history", "--history", str(history)], session_factory=scripted.factory)
    assert status == 0
    assert scripted.options["history"].get_strings() == ["user_delete alice"]
    assert history.read_text(encoding="utf-8") == "group_list staff\n"


def test_environment_defaults(monkeypatch):
    monkeypatch.setenv("BOFH_URL", "https://bofhd.example.org:8000/")
    monkeypatch.setenv("BOFH_TIMEOUT", "12.5")
    args = cli.build_arg_parser().parse_args([])
    assert args.url == "https://bofhd.example.org:8000/"
    assert args.timeout == 12.5
    assert args.log_level == "WARNING"


def test_config_reaches_client(tmp_path):
    seen = {}

    def factory(config):
        seen["config"] = config
        client = StubClient()
        client.errors["get_motd"] = NetworkError("down")
        return client

    cli.main(
        ["--url", "https://bofhd.test/", "--timeout", "5", "--lookup-timeout", "1", "--insecure"],
        client_factory=factory,
        password_prompt=lambda text: "secret",
    )
    config = seen["config"]
    assert (config.url, config.timeout, config.lookup_timeout, config.insecure) == ("https://bofhd.test/", 5.0, 1.0, True)


def test_verbosity_flags():
    parser = cli.build_arg_parser()
    assert cli._log_level(parser.parse_args(["-q"])) == "ERROR"
    assert cli._log_level(parser.parse_args(["-vv"])) == "DEBUG"
    assert cli._log_level(parser.parse_args(["--log-level", "INFO"])) == "INFO"


def test_termination_signal_becomes_system_exit():
    with pytest.raises(SystemExit) as excinfo:
        cli._raise_exit(15, None)
    assert excinfo.value.code == 143
