"""Account configuration loaded from a TOML file and environment variables.

The file lives at ``<user config dir>/rustmail/config.toml``::

    [email_account]
    email = "me@example.com"
    imap_server = "imap.example.com"
    imap_port = 993
    smtp_server = "smtp.example.com"
    smtp_port = 587
    username = "me"
    password_cmd = "pass show mail/me"
    default_folder = "inbox"
    use_tls = true

Every field can be overridden with ``RUSTMAIL_``-prefixed env vars, using
``__`` for nesting (``RUSTMAIL_EMAIL_ACCOUNT__IMAP_SERVER``).
"""

from __future__ import annotations

from pathlib import Path

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .errors import ConfigError

APP_NAME = "rustmail"


def default_config_path() -> Path:
    """Return the platform config file path.

    Linux: ``~/.config/rustmail/config.toml``; Windows:
    ``%APPDATA%\\rustmail\\config.toml``.
    """
    return platformdirs.user_config_path(APP_NAME, appauthor=False, roaming=True) / "config.toml"


def default_data_root() -> Path:
    """Return the per-user application data directory (e.g. ``~/.local/share``)."""
    return platformdirs.user_data_path(appauthor=False, roaming=True)


class AccountSettings(BaseModel):
    """A single mail account."""

    model_config = ConfigDict(frozen=True)

    email: str = Field(description="Email address; names the local storage directory")
    imap_server: str = Field(description="IMAP server hostname")
    imap_port: int = Field(default=993, description="IMAP server port")
    smtp_server: str = Field(description="SMTP server hostname")
    smtp_port: int = Field(default=587, description="SMTP server port")
    username: str = Field(description="IMAP login username")
    password_cmd: str = Field(description="Shell command printing the password")
    default_folder: str | None = Field(
        default=None,
        description="Folder checked when none is given on the command line",
    )
    use_tls: bool = Field(default=True, description="Connect with implicit TLS")
    timeout_seconds: float = Field(default=30.0, description="Socket timeout for IMAP")


class RetryConfig(BaseSettings):
    """Backoff for opening the IMAP connection, driven by Tenacity."""

    model_config = SettingsConfigDict(env_prefix="RUSTMAIL_RETRY_", frozen=True)

    max_attempts: int = Field(default=3, ge=1, description="Connection attempts before giving up")
    initial_wait_seconds: float = Field(default=0.5, description="Initial backoff wait in seconds")
    max_wait_seconds: float = Field(default=5.0, description="Maximum backoff wait in seconds")
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class Settings(BaseSettings):
    """Root configuration: the account plus retry tuning."""

    model_config = SettingsConfigDict(
        env_prefix="RUSTMAIL_",
        env_nested_delimiter="__",
        frozen=True,
    )

    email_account: AccountSettings
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, TomlConfigSettingsSource(settings_cls))


def load_settings(path: Path | None = None) -> Settings:
    """Load :class:`Settings` from *path* (default: :func:`default_config_path`)."""
    config_path = path if path is not None else default_config_path()
    if not config_path.is_file():
        raise ConfigError(f"config file not found: {config_path}")

    class _FileSettings(Settings):
        model_config = SettingsConfigDict(toml_file=config_path)

    try:
        return _FileSettings()
    except ValidationError as exc:
        raise ConfigError(f"invalid config file {config_path}: {exc}") from exc
    except ValueError as exc:
        # tomllib.TOMLDecodeError
        raise ConfigError(f"cannot parse config file {config_path}: {exc}") from exc
