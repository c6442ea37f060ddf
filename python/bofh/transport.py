"""
XML-RPC transport for bofhd.

Responsibilities:
    * Open a session (``get_motd`` + ``login``) and close it (``logout``).
    * Forward raw calls, threading the session id explicitly.
    * Translate bofhd faults and socket failures into :mod:`bofh.errors`.
    * Bound every call by a socket timeout; lookups use a shorter deadline.

The transport deliberately knows nothing about individual commands.
"""

from __future__ import annotations

import http.client
import logging
import socket
import ssl
import xmlrpc.client
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .errors import (
    AuthFailed,
    CompletionLookupTimeout,
    NetworkError,
    NoSessionError,
    RemoteFault,
    SessionExpired,
    TransportTimeout,
)

LOGGER = logging.getLogger("bofh.transport")

BOFHD_ERROR_PREFIX = "Cerebrum.modules.bofhd.errors."
CLIENT_ID = "bofh-py"
CLIENT_VERSION = "0.1.0"


@dataclass
class TransportConfig:
    url: str = "https://cerebrum-uio-test.uio.no:8000/"
    timeout: Optional[float] = 30.0
    lookup_timeout: Optional[float] = 3.0
    ca_file: Optional[str] = None
    insecure: bool = False
    restart_retries: int = 1


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Session:
    """One authenticated session lifetime."""

    session_id: str
    username: str
    url: str
    motd: Optional[str] = None


class _TimeoutMixin:
    timeout: Optional[float] = None

    def make_connection(self, host):  # type: ignore[no-untyped-def]
        conn = super().make_connection(host)  # type: ignore[misc]
        conn.timeout = self.timeout
        if conn.sock is not None:
            conn.sock.settimeout(self.timeout)
        return conn


class _TimeoutTransport(_TimeoutMixin, xmlrpc.client.Transport):
    pass


class _TimeoutSafeTransport(_TimeoutMixin, xmlrpc.client.SafeTransport):
    pass


def build_ssl_context(config: TransportConfig) -> ssl.SSLContext:
    context = ssl.create_default_context(cafile=config.ca_file)
    if config.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def translate_fault(fault_string: str) -> Exception:
    """Map a bofhd fault string onto the client exception hierarchy."""
    if fault_string.startswith(BOFHD_ERROR_PREFIX):
        name, _, message = fault_string[len(BOFHD_ERROR_PREFIX):].partition(":")
        message = message.strip()
        if name == "SessionExpiredError":
            return SessionExpired(message or "Session expired", fault_string=fault_string)
        if name == "ServerRestartedError":
            return _ServerRestarted(fault_string)
        return RemoteFault(message or name, fault_string=fault_string)
    if fault_string.startswith("NotImplementedError:"):
        message = fault_string.split(":", 1)[1].strip()
        return RemoteFault(message or "Not implemented", fault_string=fault_string)
    return RemoteFault(fault_string, fault_string=fault_string)


class _ServerRestarted(Exception):
    def __init__(self, fault_string: str) -> None:
        super().__init__(fault_string)
        self.fault_string = fault_string


class BofhClient:
    """Thin XML-RPC wrapper around a bofhd endpoint."""

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        *,
        proxy_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.config = config or TransportConfig()
        self.commands_stale = False
        if self.config.url.startswith("https"):
            self._transport: _TimeoutMixin = _TimeoutSafeTransport(context=build_ssl_context(self.config))
        else:
            self._transport = _TimeoutTransport()
        self._transport.timeout = self.config.timeout
        factory = proxy_factory or xmlrpc.client.ServerProxy
        self._proxy = factory(self.config.url, transport=self._transport, allow_none=True)

    # ------------------------------------------------------------------
    # Raw calls
    # ------------------------------------------------------------------
    @contextmanager
    def _deadline(self, seconds: Optional[float]) -> Iterator[None]:
        previous = self._transport.timeout
        self._transport.timeout = seconds
        try:
            yield
        finally:
            self._transport.timeout = previous

    def _reset_connection(self) -> None:
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()

    def call(self, method: str, *args: Any) -> Any:
        """Invoke *method* and translate failures."""
        attempts = max(0, self.config.restart_retries) + 1
        for attempt in range(attempts):
            LOGGER.debug("-> %s (%d args)", method, len(args))
            try:
                return getattr(self._proxy, method)(*args)
            except xmlrpc.client.Fault as exc:
                error = translate_fault(str(exc.faultString))
                if isinstance(error, _ServerRestarted):
                    LOGGER.info("server restarted; retrying %s", method)
                    self.commands_stale = True
                    if attempt + 1 < attempts:
                        continue
                    raise RemoteFault("Server restarted", fault_string=error.fault_string) from exc
                raise error from exc
            except (socket.timeout, TimeoutError) as exc:
                self._reset_connection()
                raise TransportTimeout(f"{method} timed out") from exc
            except xmlrpc.client.ProtocolError as exc:
                self._reset_connection()
                raise NetworkError(f"{method} failed: HTTP {exc.errcode} {exc.errmsg}") from exc
            except xmlrpc.client.Error as exc:
                self._reset_connection()
                raise NetworkError(f"{method} failed: {exc}") from exc
            except (OSError, http.client.HTTPException) as exc:
                self._reset_connection()
                raise NetworkError(f"{method} failed: {exc}") from exc
            except KeyboardInterrupt:
                # The response may be half read; drop the connection.
                self._reset_connection()
                raise
        raise AssertionError("unreachable")  # pragma: no cover

    def session_call(self, session: Optional[Session], method: str, *args: Any) -> Any:
        if session is None:
            raise NoSessionError()
        return self.call(method, session.session_id, *args)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def get_motd(self) -> str:
        motd = self.call("get_motd", CLIENT_ID, CLIENT_VERSION)
        return "" if motd is None else str(motd)

    def connect(self, credentials: Credentials, *, motd: Optional[str] = None) -> Session:
        """Log in, fetching the motd first unless the caller already has it."""
        if motd is None:
            motd = self.get_motd()
        try:
            session_id = self.call("login", credentials.username, credentials.password)
        except RemoteFault as exc:
            raise AuthFailed(str(exc)) from exc
        if not session_id:
            raise AuthFailed("server returned an empty session id")
        LOGGER.info("logged in as %s", credentials.username)
        return Session(
            session_id=str(session_id),
            username=credentials.username,
            url=self.config.url,
            motd=motd or None,
        )

    def close(self, session: Optional[Session]) -> None:
        """Log out; failures are logged, never raised."""
        if session is None:
            return
        try:
            self.call("logout", session.session_id)
        except Exception as exc:
            LOGGER.debug("logout failed: %s", exc)
        finally:
            self._reset_connection()

    # ------------------------------------------------------------------
    # Catalog and commands
    # ------------------------------------------------------------------
    def list_commands(self, session: Optional[Session], *, timeout: Optional[float] = None) -> Dict[str, Any]:
        with self._deadline(timeout if timeout is not None else self.config.timeout):
            response = self.session_call(session, "get_commands")
        self.commands_stale = False
        if not isinstance(response, dict):
            raise RemoteFault(f"get_commands returned {type(response).__name__}")
        return response

    def resolve_enumerated_values(
        self,
        session: Optional[Session],
        command: str,
        type_name: Optional[str],
        filter: str = "",
        args: Sequence[str] = (),
    ) -> List[str]:
        """Ask the server for the legal values of the next argument of *command*."""
        try:
            with self._deadline(self.config.lookup_timeout):
                response = self.session_call(session, "call_prompt_func", command, *args)
        except TransportTimeout as exc:
            raise CompletionLookupTimeout(f"lookup for {command} ({type_name or 'value'}) timed out") from exc
        values: List[str] = []
        if not isinstance(response, dict):
            return values
        for entry in response.get("map") or []:
            if not isinstance(entry, (list, tuple)) or len(entry) < 2 or entry[1] is None:
                continue
            value = str(entry[1])
            if value.startswith(filter):
                values.append(value)
        return values

    def invoke(self, session: Optional[Session], command: str, args: Sequence[str]) -> Any:
        return self.session_call(session, "run_command", command, *args)

    def format_suggestion(self, session: Optional[Session], command: str) -> Optional[Dict[str, Any]]:
        response = self.session_call(session, "get_format_suggestion", command)
        return response if isinstance(response, dict) else None

    def help(self, session: Optional[Session], *topics: str) -> str:
        response = self.session_call(session, "help", *topics)
        return "" if response is None else str(response)


__all__ = [
    "BofhClient",
    "Credentials",
    "Session",
    "TransportConfig",
    "build_ssl_context",
    "translate_fault",
]
