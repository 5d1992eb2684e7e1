"""Result types produced by a mailbox check."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .errors import RustmailError


@dataclass(frozen=True)
class StoredMessage:
    """A message persisted as ``<address>.eml`` under the account directory.

    Holds no message body, so a check result stays small however large the
    batch was.
    """

    address: str
    path: Path
    folder: str
    uid: int
    size: int
    written: bool = True


@dataclass(frozen=True)
class MessageFailure:
    """A UID that could not be fetched or stored during a check."""

    uid: int
    error: RustmailError

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class CheckResult:
    """Outcome of one check.

    ``count`` is the number of unseen UIDs the server reported, regardless
    of how many were stored successfully.
    """

    folder: str
    count: int = 0
    stored: list[StoredMessage] = field(default_factory=list)
    failures: list[MessageFailure] = field(default_factory=list)

    @property
    def written(self) -> int:
        return sum(1 for m in self.stored if m.written)

    @property
    def skipped(self) -> int:
        return sum(1 for m in self.stored if not m.written)

    @property
    def ok(self) -> bool:
        return not self.failures
