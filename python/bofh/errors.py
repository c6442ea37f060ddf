"""Exception hierarchy for the bofh client."""

from __future__ import annotations

from typing import Optional


class BofhError(RuntimeError):
    """Base class for all client errors."""


class NoSessionError(BofhError):
    """Raised when a session command is issued before login."""

    def __init__(self, message: str = "Attempted to run session command before session was established") -> None:
        super().__init__(message)


class AuthFailed(BofhError):
    """Raised when the server rejects the supplied credentials."""


class NetworkError(BofhError):
    """Raised when the server cannot be reached or the connection drops."""


class TransportTimeout(NetworkError):
    """Raised when a remote call exceeds its deadline."""


class CompletionLookupTimeout(TransportTimeout):
    """Raised when an enumerated-value lookup exceeds the lookup deadline."""


class CatalogFetchFailed(BofhError):
    """Raised when the command catalog cannot be fetched or parsed."""


class RemoteFault(BofhError):
    """The server rejected a call; the session is still usable."""

    def __init__(self, message: str, *, fault_string: Optional[str] = None) -> None:
        super().__init__(message)
        self.fault_string = fault_string if fault_string is not None else message


class SessionExpired(RemoteFault):
    """The server no longer recognises the session id."""


class MissingArgument(BofhError):
    """Raised when a required argument is absent and cannot be prompted for."""


class InvalidInputSyntax(BofhError):
    """Raised when a command line cannot be tokenized."""

    def __init__(self, message: str, *, line: str = "", position: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.position = position


__all__ = [
    "BofhError",
    "NoSessionError",
    "AuthFailed",
    "NetworkError",
    "TransportTimeout",
    "CompletionLookupTimeout",
    "CatalogFetchFailed",
    "RemoteFault",
    "SessionExpired",
    "InvalidInputSyntax",
    "MissingArgument",
]
