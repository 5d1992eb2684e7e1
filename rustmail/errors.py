"""Exception hierarchy for rustmail.

Setup failures (config, credentials, connection, auth, folder selection)
abort a check.  ``FetchError`` and ``StorageError`` are per-message and are
collected by the checker instead of ending the run.
"""

from __future__ import annotations

from pathlib import Path


class RustmailError(Exception):
    """Base class for every error rustmail reports to the user."""


class ConfigError(RustmailError):
    """Configuration file missing or invalid."""


class CredentialError(RustmailError):
    """The password command could not produce a credential."""


class MailConnectionError(RustmailError):
    """DNS failure, refused connection, TLS failure or dropped connection."""


class AuthError(RustmailError):
    """The server rejected the login.  Never carries the credential."""


class FolderNotFoundError(RustmailError):
    """The server has no mailbox with the requested name."""


class FetchError(RustmailError):
    """The server returned no message for a UID (or the search failed)."""

    def __init__(self, message: str, *, uid: int | None = None) -> None:
        super().__init__(message)
        self.uid = uid


class StorageError(RustmailError):
    """A message could not be written below the data directory."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class SessionStateError(RustmailError):
    """A session operation was called from the wrong state."""
