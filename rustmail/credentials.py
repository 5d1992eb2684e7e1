"""Credential providers: turn an opaque instruction into a password.

The checker depends only on :class:`CredentialProvider`.  The shipped
implementation runs the account's ``password_cmd`` through the shell, so
``pass show mail/me``, ``security find-generic-password -w ...`` or
``secret-tool lookup ...`` all work unchanged.
"""

from __future__ import annotations

import abc
import subprocess

import structlog

from .errors import CredentialError

logger = structlog.get_logger()


class CredentialProvider(abc.ABC):
    """Supplies a plaintext credential for a retrieval instruction."""

    @abc.abstractmethod
    def retrieve(self, instruction: str) -> str:
        """Return the credential, or raise :class:`CredentialError`."""
        ...


class CommandCredentialProvider(CredentialProvider):
    """Run *instruction* as a shell command and return its trimmed stdout.

    No retries: password commands are expected to be fast and idempotent,
    and a caller can retry on :class:`CredentialError` itself.
    """

    def __init__(self, *, timeout: float | None = 60.0) -> None:
        self._timeout = timeout

    def retrieve(self, instruction: str) -> str:
        if not instruction.strip():
            raise CredentialError("password command is empty")
        try:
            proc = subprocess.run(
                instruction,
                shell=True,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CredentialError(
                f"password command timed out after {self._timeout}s"
            ) from exc
        except OSError as exc:
            raise CredentialError(f"cannot launch password command: {exc}") from exc

        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            logger.debug("password_command_failed", returncode=proc.returncode)
            detail = f": {stderr}" if stderr else ""
            raise CredentialError(
                f"password command exited with status {proc.returncode}{detail}"
            )

        try:
            output = proc.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CredentialError("password command output is not valid UTF-8") from exc
        return output.strip()
