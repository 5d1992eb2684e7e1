"""Shared test fixtures for the rustmail test suite."""

from __future__ import annotations

from email.mime.text import MIMEText
from pathlib import Path

import pytest

from rustmail.checker import MailChecker
from rustmail.config import AccountSettings, RetryConfig, Settings
from rustmail.credentials import CredentialProvider
from rustmail.errors import AuthError, CredentialError, FetchError, FolderNotFoundError
from rustmail.interface import Session, SessionClient, SessionState
from rustmail.storage import MessageStore

SECRET = "hunter2-s3cret"


@pytest.fixture
def account() -> AccountSettings:
    return AccountSettings(
        email="me@example.com",
        imap_server="imap.test.com",
        imap_port=993,
        smtp_server="smtp.test.com",
        smtp_port=587,
        username="me",
        password_cmd="pass show mail/me",
        default_folder="inbox",
    )


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_wait_seconds=0, max_wait_seconds=0)


@pytest.fixture
def settings(account: AccountSettings, retry_config: RetryConfig) -> Settings:
    return Settings(email_account=account, retry=retry_config)


# ------------------------------------------------------------------
# Test doubles
# ------------------------------------------------------------------


class FakeCredentialProvider(CredentialProvider):
    def __init__(self, secret: str = SECRET, *, fail: bool = False) -> None:
        self.secret = secret
        self.fail = fail
        self.instructions: list[str] = []

    def retrieve(self, instruction: str) -> str:
        self.instructions.append(instruction)
        if self.fail:
            raise CredentialError("password command exited with status 1")
        return self.secret


class FakeSessionClient(SessionClient):
    """In-memory server: one password, a set of folders and scripted messages."""

    def __init__(
        self,
        *,
        messages: dict[int, bytes] | None = None,
        unseen: list[int] | None = None,
        password: str = SECRET,
        folders: tuple[str, ...] = ("inbox", "Archive"),
        fetch_failures: set[int] | None = None,
    ) -> None:
        self.messages = dict(messages or {})
        self.unseen = list(unseen) if unseen is not None else list(self.messages)
        self.password = password
        self.folders = set(folders)
        self.fetch_failures = set(fetch_failures or ())
        self.sessions: list[Session] = []
        self.fetched: list[int] = []
        self.selected: list[str] = []

    def connect(self, host: str, port: int, use_tls: bool) -> Session:
        session = Session(host=host, port=port)
        session.advance(SessionState.CONNECTED)
        self.sessions.append(session)
        return session

    def authenticate(self, session: Session, username: str, credential: str) -> Session:
        session.require(SessionState.CONNECTED)
        if credential != self.password:
            raise AuthError(f"login rejected for {username}")
        session.advance(SessionState.AUTHENTICATED)
        return session

    def select_folder(self, session: Session, name: str) -> Session:
        session.require(SessionState.AUTHENTICATED)
        if name not in self.folders:
            raise FolderNotFoundError(f"no such folder {name!r}")
        self.selected.append(name)
        session.folder = name
        session.advance(SessionState.FOLDER_SELECTED)
        return session

    def list_unseen(self, session: Session) -> list[int]:
        session.require(SessionState.FOLDER_SELECTED)
        return list(self.unseen)

    def fetch_raw(self, session: Session, uid: int) -> bytes:
        session.require(SessionState.FOLDER_SELECTED)
        self.fetched.append(uid)
        if uid in self.fetch_failures or uid not in self.messages:
            raise FetchError(f"server returned no body for uid {uid}", uid=uid)
        return self.messages[uid]

    def close(self, session: Session) -> None:
        if session.state is not SessionState.CLOSED:
            session.advance(SessionState.CLOSED)


@pytest.fixture
def credentials() -> FakeCredentialProvider:
    return FakeCredentialProvider()


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def store(data_root: Path) -> MessageStore:
    return MessageStore(data_root)


@pytest.fixture
def make_checker(account: AccountSettings, credentials: FakeCredentialProvider, store: MessageStore):
    """Factory building a MailChecker around a FakeSessionClient."""

    def _make(client: FakeSessionClient, *, account_settings: AccountSettings | None = None) -> MailChecker:
        return MailChecker(account_settings or account, credentials, client, store)

    return _make


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    subject: str = "Test Subject",
    from_addr: str = "sender@example.com",
    to_addr: str = "me@example.com",
    body: str = "Hello, World!",
    message_id: str = "<test-001@example.com>",
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain")
    msg["Subject"] = subject
    msg["From"] = from_addr
    msg["To"] = to_addr
    msg["Message-ID"] = message_id
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    return msg.as_bytes()


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email()
