"""IMAP SessionClient built on stdlib imaplib.

Every call is a single blocking round trip.  UIDs are used throughout;
sequence numbers never leave the server.
"""

from __future__ import annotations

import base64
import imaplib
import ssl

import structlog

from .config import RetryConfig
from .errors import AuthError, FetchError, FolderNotFoundError, MailConnectionError
from .interface import Session, SessionClient, SessionState
from .retry import with_retry

logger = structlog.get_logger()

# Worth another attempt when opening the transport.  DNS and TLS
# failures are not: they will fail the same way again.
TRANSIENT_CONNECT_ERRORS: tuple[type[BaseException], ...] = (
    ConnectionRefusedError,
    ConnectionResetError,
    TimeoutError,
)

_MAILBOX_SPECIALS = frozenset(' (){%*"\\')


class ImapSessionClient(SessionClient):
    """Blocking IMAP client; one instance may open several sessions in turn."""

    def __init__(self, *, retry: RetryConfig | None = None, timeout: float | None = 30.0) -> None:
        self._retry = retry if retry is not None else RetryConfig()
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self, host: str, port: int, use_tls: bool) -> Session:
        session = Session(host=host, port=port)
        opener = with_retry(self._retry, retryable_exceptions=TRANSIENT_CONNECT_ERRORS)(
            self._open
        )
        try:
            session.handle = opener(host, port, use_tls)
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailConnectionError(f"cannot connect to {host}:{port}: {exc}") from exc
        session.advance(SessionState.CONNECTED)
        logger.info("imap_connected", host=host, port=port, tls=use_tls)
        return session

    def _open(self, host: str, port: int, use_tls: bool) -> imaplib.IMAP4:
        if use_tls:
            return imaplib.IMAP4_SSL(
                host,
                port,
                ssl_context=ssl.create_default_context(),
                timeout=self._timeout,
            )
        return imaplib.IMAP4(host, port, timeout=self._timeout)

    def authenticate(self, session: Session, username: str, credential: str) -> Session:
        session.require(SessionState.CONNECTED)
        conn: imaplib.IMAP4 = session.handle
        # Errors are raised "from None": the library exception may quote the
        # command that carried the credential.
        try:
            conn.login(username, credential)
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError(
                f"connection lost during login: {_mask(str(exc), credential)}"
            ) from None
        except imaplib.IMAP4.error as exc:
            raise AuthError(
                f"login rejected for {username}: {_mask(str(exc), credential)}"
            ) from None
        except UnicodeEncodeError:
            raise AuthError(
                f"login for {username} failed: username or credential is not ASCII"
            ) from None
        except OSError as exc:
            raise MailConnectionError(
                f"connection lost during login: {_mask(str(exc), credential)}"
            ) from None
        session.advance(SessionState.AUTHENTICATED)
        logger.info("imap_authenticated", username=username)
        return session

    def select_folder(self, session: Session, name: str) -> Session:
        session.require(SessionState.AUTHENTICATED)
        conn: imaplib.IMAP4 = session.handle
        try:
            status, data = conn.select(quote_mailbox(encode_mailbox(name)))
        except UnicodeEncodeError as exc:
            raise FolderNotFoundError(f"cannot encode folder name {name!r}: {exc}") from exc
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError(f"connection lost selecting {name!r}: {exc}") from exc
        except imaplib.IMAP4.error as exc:
            raise FolderNotFoundError(f"cannot select folder {name!r}: {exc}") from exc
        except OSError as exc:
            raise MailConnectionError(f"connection lost selecting {name!r}: {exc}") from exc
        if status != "OK":
            raise FolderNotFoundError(f"no such folder {name!r}: {_text(data)}")
        session.folder = name
        session.advance(SessionState.FOLDER_SELECTED)
        logger.info("folder_selected", folder=name, exists=_text(data))
        return session

    def close(self, session: Session) -> None:
        if session.state is SessionState.CLOSED:
            return
        conn: imaplib.IMAP4 | None = session.handle
        if conn is not None:
            if session.state is SessionState.FOLDER_SELECTED:
                try:
                    conn.close()
                except (imaplib.IMAP4.error, OSError) as exc:
                    logger.warning("imap_close_failed", error=str(exc))
            try:
                conn.logout()
            except (imaplib.IMAP4.error, OSError) as exc:
                logger.warning("imap_logout_failed", error=str(exc))
        session.handle = None
        session.advance(SessionState.CLOSED)
        logger.info("imap_disconnected", host=session.host)

    # ------------------------------------------------------------------
    # Message retrieval
    # ------------------------------------------------------------------

    def list_unseen(self, session: Session) -> list[int]:
        session.require(SessionState.FOLDER_SELECTED)
        conn: imaplib.IMAP4 = session.handle
        try:
            status, data = conn.uid("SEARCH", None, "UNSEEN")
        except imaplib.IMAP4.abort as exc:
            raise MailConnectionError(f"connection lost during search: {exc}") from exc
        except imaplib.IMAP4.error as exc:
            raise FetchError(f"unseen search failed: {exc}") from exc
        except OSError as exc:
            raise MailConnectionError(f"connection lost during search: {exc}") from exc
        if status != "OK":
            raise FetchError(f"unseen search failed: {_text(data)}")

        uids = [int(x) for x in data[0].split()] if data and data[0] else []
        logger.debug("imap_unseen", folder=session.folder, count=len(uids))
        return uids

    def fetch_raw(self, session: Session, uid: int) -> bytes:
        session.require(SessionState.FOLDER_SELECTED)
        conn: imaplib.IMAP4 = session.handle
        try:
            status, data = conn.uid("FETCH", str(uid), "(RFC822)")
        except imaplib.IMAP4.abort as exc:
            # The connection is gone; every later fetch would fail too.
            raise MailConnectionError(f"connection lost fetching uid {uid}: {exc}") from exc
        except imaplib.IMAP4.error as exc:
            raise FetchError(f"fetch failed for uid {uid}: {exc}", uid=uid) from exc
        except OSError as exc:
            raise MailConnectionError(f"connection lost fetching uid {uid}: {exc}") from exc
        if status != "OK":
            raise FetchError(f"fetch failed for uid {uid}: {_text(data)}", uid=uid)

        # Literal payloads arrive as (header, bytes) tuples; plain bytes
        # entries are the closing paren or unsolicited flag updates.
        for part in data or []:
            if isinstance(part, tuple) and len(part) > 1 and part[1] is not None:
                raw: bytes = part[1]
                logger.debug("imap_fetched", uid=uid, size=len(raw))
                return raw
        raise FetchError(f"server returned no body for uid {uid}", uid=uid)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def encode_mailbox(name: str) -> str:
    """Encode *name* in IMAP modified UTF-7 (RFC 3501, section 5.1.3).

    Printable ASCII passes through, ``&`` becomes ``&-`` and each run of
    other characters becomes ``&`` + modified base64 of its UTF-16BE form + ``-``.
    """
    out: list[str] = []
    run: list[str] = []

    def flush() -> None:
        if run:
            encoded = base64.b64encode("".join(run).encode("utf-16-be"))
            out.append("&" + encoded.decode("ascii").rstrip("=").replace("/", ",") + "-")
            run.clear()

    for char in name:
        if 0x20 <= ord(char) <= 0x7E:
            flush()
            out.append("&-" if char == "&" else char)
        else:
            run.append(char)
    flush()
    return "".join(out)


def quote_mailbox(name: str) -> str:
    """Quote *name* for SELECT when it contains spaces or IMAP specials."""
    if len(name) > 1 and name.startswith('"') and name.endswith('"'):
        return name
    if name and not (_MAILBOX_SPECIALS & set(name)):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _mask(text: str, secret: str) -> str:
    """Replace every occurrence of *secret* in *text*."""
    return text.replace(secret, "***") if secret else text


def _text(data: list | None) -> str:
    """Decode the last line of an imaplib response for messages."""
    if not data or data[-1] is None:
        return ""
    last = data[-1]
    if isinstance(last, bytes):
        return last.decode("utf-8", errors="replace")
    return str(last)
