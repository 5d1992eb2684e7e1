"""Tests for rustmail.credentials."""

from __future__ import annotations

import os
import subprocess
from unittest.mock import patch

import pytest

from rustmail.credentials import CommandCredentialProvider
from rustmail.errors import CredentialError

pytestmark = pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell")


@pytest.fixture
def provider() -> CommandCredentialProvider:
    return CommandCredentialProvider(timeout=10.0)


class TestCommandCredentialProvider:
    def test_returns_trimmed_stdout(self, provider: CommandCredentialProvider):
        assert provider.retrieve("echo '  hunter2  '") == "hunter2"

    def test_shell_pipelines(self, provider: CommandCredentialProvider):
        assert provider.retrieve("printf 'line1\\nsecret\\n' | tail -n 1") == "secret"

    def test_non_zero_exit(self, provider: CommandCredentialProvider):
        with pytest.raises(CredentialError, match="status 3"):
            provider.retrieve("exit 3")

    def test_stderr_in_message(self, provider: CommandCredentialProvider):
        with pytest.raises(CredentialError, match="vault locked"):
            provider.retrieve("echo 'vault locked' >&2; exit 1")

    def test_invalid_utf8(self, provider: CommandCredentialProvider):
        with pytest.raises(CredentialError, match="UTF-8"):
            provider.retrieve("printf '\\377\\376'")

    def test_empty_instruction(self, provider: CommandCredentialProvider):
        with pytest.raises(CredentialError, match="empty"):
            provider.retrieve("   ")

    def test_cannot_launch(self, provider: CommandCredentialProvider):
        with patch("rustmail.credentials.subprocess.run", side_effect=OSError("no shell")):
            with pytest.raises(CredentialError, match="cannot launch"):
                provider.retrieve("pass show mail/me")

    def test_timeout(self, provider: CommandCredentialProvider):
        with patch(
            "rustmail.credentials.subprocess.run",
            side_effect=subprocess.TimeoutExpired("pass", 10.0),
        ):
            with pytest.raises(CredentialError, match="timed out"):
                provider.retrieve("pass show mail/me")
