"""Interactive REPL for bofh."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .catalog import ArgumentSpec
from .commands import CommandRegistry
from .completion import BofhAutoSuggest, BofhCompleter, complete
from .context import ShellContext
from .dispatch import execute_line
from .errors import BofhError, InvalidInputSyntax, SessionExpired
from .history import HistoryStore, SessionHistory
from .keys import DEFAULT_TOGGLE_KEY, build_key_bindings, editing_mode_for, mode_label
from .output import emit_error
from .styling import BOFH_STYLE, BofhLexer, render_toolbar

LOGGER = logging.getLogger("bofh.repl")

DEFAULT_PROMPT = "bofh> "


class BofhREPL:
    """prompt_toolkit REPL bound to one shell context."""

    def __init__(
        self,
        ctx: ShellContext,
        registry: CommandRegistry,
        *,
        history_store: Optional[HistoryStore] = None,
        prompt: str = DEFAULT_PROMPT,
        toggle_key: str = DEFAULT_TOGGLE_KEY,
        session_factory: Callable[..., Any] = PromptSession,
        ask_factory: Callable[..., Any] = PromptSession,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.history_store = history_store
        self.prompt = prompt
        self.toggle_key = toggle_key
        self._session_factory = session_factory
        self._ask_factory = ask_factory
        self._session: Any = None
        self._pending = ""

    def _build_session(self) -> Any:
        return self._session_factory(
            history=SessionHistory(self.history_store),
            completer=BofhCompleter(self.ctx, self.registry),
            auto_suggest=BofhAutoSuggest(self.ctx, self.registry),
            lexer=BofhLexer(self.ctx, builtins=self.registry.names),
            style=BOFH_STYLE,
            key_bindings=build_key_bindings(self.ctx, self.registry, toggle_key=self.toggle_key),
            bottom_toolbar=self._toolbar,
            editing_mode=editing_mode_for(self.ctx),
            complete_while_typing=False,
        )

    def _toolbar(self) -> Any:
        session = self._session
        app = getattr(session, "app", None)
        if app is None:
            return ""
        document = app.current_buffer.document
        result = complete(
            self.ctx.catalog,
            document.text,
            document.cursor_position,
            builtins=self.registry.names(),
            lookup_values=False,
        )
        return render_toolbar(result.hint, mode_label(app))

    def run(self) -> int:
        self._session = self._build_session()
        try:
            while True:
                if self.ctx.catalog_stale:
                    self.ctx.reload_catalog()
                try:
                    with patch_stdout():
                        line = self._session.prompt(
                            [("class:prompt", self.prompt)],
                            default=self._pending,
                            editing_mode=editing_mode_for(self.ctx),
                        )
                except KeyboardInterrupt:
                    # Cancel the line; nothing is recorded.
                    self._pending = ""
                    continue
                except EOFError:
                    print()
                    break
                # Accepted lines are already in the session history.
                self._pending = ""
                self._dispatch(line)
        except SystemExit as exc:
            if exc.code not in (None, 0):
                raise
        finally:
            self.ctx.disconnect()
        return 0

    def _ask(self, argument: ArgumentSpec) -> str:
        label = argument.prompt or argument.label
        if argument.default:
            label = f"{label} [{argument.default}]"
        secret = "password" in (argument.type_name or "").lower()
        # A throwaway prompt: answers stay out of the command history and
        # the command-line toolbar and completer do not apply.
        asker = self._ask_factory(history=InMemoryHistory(), style=BOFH_STYLE)
        with patch_stdout():
            return asker.prompt(
                f"{label} > ",
                default="",
                is_password=secret,
                editing_mode=editing_mode_for(self.ctx),
            )

    def _dispatch(self, line: str) -> None:
        try:
            self._execute(line)
        except SessionExpired:
            if not self._renew():
                return
            try:
                self._execute(line)
            except BofhError as exc:
                emit_error(self.ctx, message=str(exc))
        except InvalidInputSyntax as exc:
            emit_error(self.ctx, message=str(exc))
            self._pending = exc.line or line
        except BofhError as exc:
            emit_error(self.ctx, message=str(exc))
        except KeyboardInterrupt:
            print("interrupted")
        except SystemExit:
            raise
        except Exception as exc:
            LOGGER.exception("command failed")
            emit_error(self.ctx, message=f"command failed: {exc}")

    def _execute(self, line: str) -> int:
        return execute_line(self.ctx, self.registry, line, ask=self._ask)

    def _renew(self) -> bool:
        LOGGER.info("session expired, logging in again")
        try:
            renewed = self.ctx.renew_session()
        except BofhError as exc:
            emit_error(self.ctx, message=f"session expired and re-login failed: {exc}")
            return False
        if not renewed:
            emit_error(self.ctx, message="session expired")
        return renewed


__all__ = ["BofhREPL", "DEFAULT_PROMPT"]
