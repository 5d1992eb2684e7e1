"""SessionClient: the ABC the checker drives, plus the Session it hands out.

A session moves strictly forward::

    DISCONNECTED -> CONNECTED -> AUTHENTICATED -> FOLDER_SELECTED -> CLOSED

Any open state may jump to ``CLOSED`` (logout, or abandoning the session
after a fatal error).  Nothing ever moves backwards, so a session serves
exactly one check.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import SessionStateError


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    FOLDER_SELECTED = "folder_selected"
    CLOSED = "closed"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.DISCONNECTED: frozenset({SessionState.CONNECTED, SessionState.CLOSED}),
    SessionState.CONNECTED: frozenset({SessionState.AUTHENTICATED, SessionState.CLOSED}),
    SessionState.AUTHENTICATED: frozenset({SessionState.FOLDER_SELECTED, SessionState.CLOSED}),
    SessionState.FOLDER_SELECTED: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


@dataclass
class Session:
    """One connection to the mail server, owned by a single check."""

    host: str
    port: int
    state: SessionState = SessionState.DISCONNECTED
    folder: str | None = None
    handle: Any = field(default=None, repr=False)

    def require(self, *states: SessionState) -> None:
        """Raise :class:`SessionStateError` unless the session is in one of *states*."""
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(
                f"session is {self.state.value}, expected one of: {allowed}"
            )

    def advance(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise SessionStateError(
                f"cannot move session from {self.state.value} to {new_state.value}"
            )
        self.state = new_state


class SessionClient(abc.ABC):
    """Protocol operations needed to check a mailbox.

    Implementations translate their library's failures into the
    :mod:`rustmail.errors` taxonomy.  Tests use an in-memory double.
    """

    @abc.abstractmethod
    def connect(self, host: str, port: int, use_tls: bool) -> Session:
        """Open the transport.  Raises :class:`MailConnectionError`."""
        ...

    @abc.abstractmethod
    def authenticate(self, session: Session, username: str, credential: str) -> Session:
        """Log in.  Raises :class:`AuthError` without echoing *credential*."""
        ...

    @abc.abstractmethod
    def select_folder(self, session: Session, name: str) -> Session:
        """Select a mailbox.  Raises :class:`FolderNotFoundError`."""
        ...

    @abc.abstractmethod
    def list_unseen(self, session: Session) -> list[int]:
        """Return UIDs of unseen messages; empty when there are none."""
        ...

    @abc.abstractmethod
    def fetch_raw(self, session: Session, uid: int) -> bytes:
        """Return the full RFC 822 message.  Raises :class:`FetchError`."""
        ...

    @abc.abstractmethod
    def close(self, session: Session) -> None:
        """Log out, best effort.  Never raises."""
        ...
