"""Local message store: one ``.eml`` file per (folder, UID).

Layout::

    <data-root>/rustmail/<account-email>/<folder>/<address>.eml

``address`` is the SHA-1 of the folder name followed by the decimal UID.
The digest does not include the account; the per-account directory keeps
accounts apart.  Because the address is deterministic, the filesystem
itself is the dedup index: an existing file is never rewritten.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path, PurePosixPath

import structlog

from .config import APP_NAME, default_data_root
from .errors import StorageError
from .models import StoredMessage

logger = structlog.get_logger()

EML_SUFFIX = ".eml"


def content_address(folder: str, uid: int) -> str:
    """Return the 40-character hex address for *uid* in *folder*."""
    digest = hashlib.sha1()
    digest.update(folder.encode("utf-8"))
    digest.update(str(uid).encode("ascii"))
    return digest.hexdigest()


def account_data_dir(email: str, data_root: Path | None = None) -> Path:
    """Return ``<data_root>/rustmail/<email>``."""
    root = data_root if data_root is not None else default_data_root()
    if not email or _unsafe_segment(email):
        raise StorageError(f"cannot use account {email!r} as a directory name")
    return root / APP_NAME / email


class MessageStore:
    """Write fetched messages below the account data directory."""

    def __init__(self, data_root: Path | None = None) -> None:
        self._data_root = data_root

    def folder_dir(self, account_email: str, folder: str) -> Path:
        return account_data_dir(account_email, self._data_root).joinpath(
            *_folder_parts(folder)
        )

    def path_for(self, account_email: str, folder: str, uid: int) -> Path:
        return self.folder_dir(account_email, folder) / f"{content_address(folder, uid)}{EML_SUFFIX}"

    def store(self, account_email: str, folder: str, uid: int, raw_bytes: bytes) -> Path:
        """Persist *raw_bytes* unless already stored.  Returns the path either way."""
        return self.save(account_email, folder, uid, raw_bytes).path

    def save(self, account_email: str, folder: str, uid: int, raw_bytes: bytes) -> StoredMessage:
        """Like :meth:`store`, returning a :class:`StoredMessage`."""
        path = self.path_for(account_email, folder, uid)
        address = path.stem
        directory = path.parent
        size = len(raw_bytes)

        if path.exists():
            logger.debug("message_already_stored", uid=uid, path=str(path))
            return StoredMessage(address, path, folder, uid, size, written=False)

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot create {directory}: {exc}", path=directory) from exc

        _write_atomic(path, raw_bytes)
        logger.info("message_saved", uid=uid, path=str(path), size=size)
        return StoredMessage(address, path, folder, uid, size, written=True)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _write_atomic(path: Path, data: bytes) -> None:
    """Write via a temp file in the same directory, then rename into place."""
    fd, tmp_name = None, None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        with os.fdopen(fd, "wb") as fh:
            fd = None
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise StorageError(f"cannot write {path}: {exc}", path=path) from exc
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass


def _folder_parts(folder: str) -> tuple[str, ...]:
    """Split an IMAP folder name into relative directory segments."""
    pure = PurePosixPath(folder)
    if not pure.parts or pure.is_absolute() or any(_unsafe_segment(p) for p in pure.parts):
        raise StorageError(f"cannot use folder {folder!r} as a directory name")
    return pure.parts


def _unsafe_segment(segment: str) -> bool:
    return segment in (".", "..") or "\\" in segment or "/" in segment or "\x00" in segment
