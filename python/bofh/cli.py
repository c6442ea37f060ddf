"""bofh CLI entry point."""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

from .commands import CommandRegistry, build_registry
from .context import ShellContext
from .dispatch import execute_line
from .errors import AuthFailed, BofhError, CatalogFetchFailed, NetworkError
from .history import HistoryStore
from .keys import DEFAULT_TOGGLE_KEY
from .output import emit_error
from .repl import DEFAULT_PROMPT, BofhREPL
from .transport import BofhClient, Credentials, Session, TransportConfig

LOG = logging.getLogger("bofh.cli")

DEFAULT_URL = TransportConfig.url
FAREWELL = "So long, and thanks for all the fish!"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bofh", description="Interactive client for bofhd")
    parser.add_argument("--url", default=os.environ.get("BOFH_URL", DEFAULT_URL), help="bofhd URL")
    parser.add_argument(
        "-u",
        "--user",
        default=os.environ.get("BOFH_USER"),
        help="Username (default: $BOFH_USER or the login name)",
    )
    parser.add_argument("--cert", default=os.environ.get("BOFH_CA_CERT"), help="CA certificate bundle")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument(
        "--timeout",
        type=float,
        default=_env_float("BOFH_TIMEOUT", 30.0),
        help="Timeout in seconds for commands and the catalog fetch",
    )
    parser.add_argument(
        "--lookup-timeout",
        type=float,
        default=3.0,
        help="Timeout in seconds for completion value lookups",
    )
    parser.add_argument("--vi", "--vim", dest="vi", action="store_true", help="Start in vi editing mode")
    parser.add_argument("-p", "--prompt", default=DEFAULT_PROMPT, help="Prompt string")
    parser.add_argument(
        "--history",
        type=Path,
        default=Path(os.environ.get("BOFH_HISTORY", str(Path.home() / ".bofh_history"))),
        help="Path to command history file",
    )
    parser.add_argument("--history-limit", type=int, default=1000, help="Number of history entries kept")
    parser.add_argument("--no-history", action="store_true", help="Do not read or write the history file")
    parser.add_argument(
        "--toggle-key",
        default=DEFAULT_TOGGLE_KEY,
        help="Key that toggles emacs/vi editing (default f4)",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON output")
    parser.add_argument(
        "-c",
        "--cmd",
        dest="command",
        help="Execute a single command non-interactively (quote the command string)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("BOFH_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeatable)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    return parser


def _log_level(args: argparse.Namespace) -> str:
    if args.quiet:
        return "ERROR"
    if args.verbose >= 2:
        return "DEBUG"
    if args.verbose == 1:
        return "INFO"
    return args.log_level


def _raise_exit(signum: int, frame: Any) -> None:
    raise SystemExit(128 + signum)


def _install_signal_handlers() -> None:
    for name in ("SIGTERM", "SIGHUP"):
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            signal.signal(signum, _raise_exit)
        except ValueError:
            # Not the main thread.
            LOG.debug("cannot install %s handler", name)


def main(
    argv: Optional[List[str]] = None,
    *,
    client_factory: Callable[[TransportConfig], Any] = BofhClient,
    password_prompt: Callable[[str], str] = getpass.getpass,
    session_factory: Optional[Callable[..., Any]] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(_log_level(args))
    _install_signal_handlers()

    config = TransportConfig(
        url=args.url,
        timeout=args.timeout,
        lookup_timeout=args.lookup_timeout,
        ca_file=args.cert,
        insecure=args.insecure,
    )
    client = client_factory(config)
    username = args.user or getpass.getuser()
    ctx = ShellContext(
        client=client,
        json_output=args.json,
        editing_mode="vi" if args.vi else "emacs",
        catalog_timeout=args.timeout,
    )
    try:
        motd = client.get_motd()
        if motd:
            print(motd)
        password = os.environ.get("BOFH_PASSWORD") or password_prompt(f"Password for {username}: ")
        credentials = Credentials(username, password)
        ctx.session = client.connect(credentials, motd=motd)
        ctx.load_catalog()
    except AuthFailed as exc:
        print(f"bofh: authentication failed: {exc}", file=sys.stderr)
        return 1
    except CatalogFetchFailed as exc:
        print(f"bofh: {exc}", file=sys.stderr)
        ctx.disconnect()
        return 1
    except NetworkError as exc:
        print(f"bofh: cannot reach {config.url}: {exc}", file=sys.stderr)
        ctx.disconnect()
        return 1
    except BofhError as exc:
        print(f"bofh: {exc}", file=sys.stderr)
        ctx.disconnect()
        return 1
    except (EOFError, KeyboardInterrupt):
        print()
        return 1

    def _reauthenticate(_ctx: ShellContext) -> Session:
        return client.connect(credentials, motd=motd)

    ctx.reauthenticate = _reauthenticate
    registry = build_registry()
    try:
        if args.command:
            return _run_single_command(ctx, registry, args.command)
        with HistoryStore(None if args.no_history else str(args.history), limit=args.history_limit) as store:
            kwargs = {"history_store": store, "prompt": args.prompt, "toggle_key": args.toggle_key}
            if session_factory is not None:
                kwargs["session_factory"] = session_factory
            status = BofhREPL(ctx, registry, **kwargs).run()
        if not args.json:
            print(FAREWELL)
        return status
    except KeyboardInterrupt:
        print()
        return 0
    finally:
        ctx.disconnect()


def _run_single_command(ctx: ShellContext, registry: CommandRegistry, command_line: str) -> int:
    try:
        return execute_line(ctx, registry, command_line)
    except SystemExit as exc:
        return int(exc.code or 0)
    except BofhError as exc:
        emit_error(ctx, message=str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
