"""rustmail: fetch unseen IMAP mail into a local, content-addressed store.

Public API re-exported here for convenience::

    from rustmail import MailChecker, MessageStore, load_settings
"""

__version__ = "0.1.0"

from .checker import MailChecker
from .config import AccountSettings, RetryConfig, Settings, load_settings
from .credentials import CommandCredentialProvider, CredentialProvider
from .errors import (
    AuthError,
    ConfigError,
    CredentialError,
    FetchError,
    FolderNotFoundError,
    MailConnectionError,
    RustmailError,
    SessionStateError,
    StorageError,
)
from .imap_client import ImapSessionClient
from .interface import Session, SessionClient, SessionState
from .models import CheckResult, MessageFailure, StoredMessage
from .storage import MessageStore, content_address

__all__ = [
    "AccountSettings",
    "AuthError",
    "CheckResult",
    "CommandCredentialProvider",
    "ConfigError",
    "CredentialError",
    "CredentialProvider",
    "FetchError",
    "FolderNotFoundError",
    "ImapSessionClient",
    "MailChecker",
    "MailConnectionError",
    "MessageFailure",
    "MessageStore",
    "RetryConfig",
    "RustmailError",
    "Session",
    "SessionClient",
    "SessionState",
    "Settings",
    "StorageError",
    "StoredMessage",
    "content_address",
    "load_settings",
    "__version__",
]
