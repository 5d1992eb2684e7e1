"""MailChecker: fetch unseen messages from one folder into the local store.

Setup failures (credentials, connect, login, folder selection, the unseen
search) abort the check.  A message that cannot be fetched or stored is
recorded as a :class:`~rustmail.models.MessageFailure` and the loop moves
on, so one bad message never blocks the rest of the batch.  Messages left
behind stay unseen on the server and are picked up by the next check.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from .config import AccountSettings, Settings
from .credentials import CommandCredentialProvider, CredentialProvider
from .errors import FetchError, StorageError
from .imap_client import ImapSessionClient
from .interface import Session, SessionClient
from .models import CheckResult, MessageFailure
from .storage import MessageStore

logger = structlog.get_logger()

DEFAULT_FOLDER = "inbox"


class MailChecker:
    """Drive one check: credentials, session, unseen search, fetch and store."""

    def __init__(
        self,
        account: AccountSettings,
        credentials: CredentialProvider,
        client: SessionClient,
        store: MessageStore,
    ) -> None:
        self._account = account
        self._credentials = credentials
        self._client = client
        self._store = store

    @classmethod
    def from_settings(cls, settings: Settings, *, data_root: Path | None = None) -> MailChecker:
        """Wire the shell credential provider, the IMAP client and the disk store."""
        account = settings.email_account
        return cls(
            account,
            CommandCredentialProvider(),
            ImapSessionClient(retry=settings.retry, timeout=account.timeout_seconds),
            MessageStore(data_root),
        )

    @property
    def account(self) -> AccountSettings:
        return self._account

    def resolve_folder(self, folder_override: str | None = None) -> str:
        """Command-line folder, else the account default, else ``inbox``."""
        return folder_override or self._account.default_folder or DEFAULT_FOLDER

    def check(self, folder_override: str | None = None) -> int:
        """Run a check and return the number of unseen messages observed."""
        return self.run(folder_override).count

    def run(self, folder_override: str | None = None) -> CheckResult:
        folder = self.resolve_folder(folder_override)
        account = self._account
        log = logger.bind(account=account.email, folder=folder)

        password = self._credentials.retrieve(account.password_cmd)
        session = self._client.connect(account.imap_server, account.imap_port, account.use_tls)
        try:
            self._client.authenticate(session, account.username, password)
            self._client.select_folder(session, folder)
            result = self._fetch_unseen(session, folder)
        finally:
            self._client.close(session)

        emit = log.info if result.ok else log.warning
        emit(
            "check_complete",
            unseen=result.count,
            written=result.written,
            skipped=result.skipped,
            failed=len(result.failures),
        )
        return result

    def _fetch_unseen(self, session: Session, folder: str) -> CheckResult:
        uids = self._client.list_unseen(session)
        result = CheckResult(folder=folder, count=len(uids))
        logger.info("unseen_messages", folder=folder, count=len(uids))

        for uid in uids:
            try:
                raw = self._client.fetch_raw(session, uid)
                stored = self._store.save(self._account.email, folder, uid, raw)
            except (FetchError, StorageError) as exc:
                logger.warning("message_failed", uid=uid, folder=folder, error=str(exc))
                result.failures.append(MessageFailure(uid=uid, error=exc))
                continue
            result.stored.append(stored)
        return result
