"""Shell context: the single owner of the client, session and catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from .catalog import CommandCatalog, CommandSpec
from .errors import CatalogFetchFailed
from .transport import Session

LOGGER = logging.getLogger("bofh.context")

EDITING_MODES = ("emacs", "vi")


@dataclass
class ShellContext:
    """Holds shared shell state.

    Everything that talks to the server goes through this object so the
    session id is threaded explicitly instead of living in a global.
    """

    client: Any
    session: Optional[Session] = None
    catalog: CommandCatalog = field(default_factory=CommandCatalog)
    json_output: bool = False
    editing_mode: str = "emacs"
    catalog_timeout: Optional[float] = None
    reauthenticate: Optional[Callable[["ShellContext"], Session]] = field(default=None, repr=False)

    @property
    def vi_mode(self) -> bool:
        return self.editing_mode == "vi"

    def set_editing_mode(self, mode: str) -> str:
        if mode not in EDITING_MODES:
            raise ValueError(f"unknown editing mode {mode!r} (choose from {', '.join(EDITING_MODES)})")
        self.editing_mode = mode
        return mode

    def toggle_editing_mode(self) -> str:
        return self.set_editing_mode("emacs" if self.vi_mode else "vi")

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------
    def load_catalog(self) -> CommandCatalog:
        """Fetch the catalog; raises CatalogFetchFailed and keeps the old one."""
        catalog = CommandCatalog.load(self.client, self.session, timeout=self.catalog_timeout)
        self.catalog = catalog
        return catalog

    def reload_catalog(self) -> bool:
        try:
            self.catalog = self.catalog.refresh(self.client, self.session, timeout=self.catalog_timeout)
        except CatalogFetchFailed as exc:
            LOGGER.warning("catalog reload failed, keeping %d known commands: %s", len(self.catalog), exc)
            return False
        return True

    @property
    def catalog_stale(self) -> bool:
        return bool(getattr(self.client, "commands_stale", False))

    # ------------------------------------------------------------------
    # Remote calls
    # ------------------------------------------------------------------
    def invoke(self, command: CommandSpec, args: Sequence[str]) -> Any:
        return self.client.invoke(self.session, command.name, list(args))

    def help(self, *topics: str) -> str:
        return self.client.help(self.session, *topics)

    def renew_session(self) -> bool:
        if self.reauthenticate is None:
            return False
        self.session = self.reauthenticate(self)
        self.catalog.session = self.session
        return True

    def disconnect(self) -> None:
        session = self.session
        if session is None:
            return
        self.session = None
        try:
            self.client.close(session)
        except Exception as exc:
            LOGGER.debug("session close failed: %s", exc)


__all__ = ["EDITING_MODES", "ShellContext"]
