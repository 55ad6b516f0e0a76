# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and validating streammail configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/streammail/  (default: ~/.config/streammail/)
#
# Files:
#   - config.toml: Sending accounts and SMTP preferences
#
# Passwords are never written here; see streammail.smtp.auth.
# =============================================================================

import os
import tomllib  # Built into Python 3.11+
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w  # For writing TOML (tomllib is read-only)

from streammail.core import AUTH_MECHANISMS, SECURITY_MODES, Account
from streammail.errors import StreamMailError


# =============================================================================
# XDG Directory Management
# =============================================================================

# Application identifier used in XDG paths
APP_NAME = "streammail"


def get_xdg_config_home() -> Path:
    """
    Returns the XDG config directory for streammail.

    Respects $XDG_CONFIG_HOME if set, otherwise uses ~/.config/streammail/
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base = Path(xdg_config)
    else:
        base = Path.home() / ".config"
    return base / APP_NAME


# =============================================================================
# Configuration Data Structures
# =============================================================================

@dataclass
class SMTPConfig:
    """
    Session settings shared by all accounts.

    Attributes:
        timeout: Per-operation timeout in seconds. 0 disables timeouts.
    """
    timeout: float = 0


@dataclass
class Config:
    """
    Main configuration container for streammail.

    Attributes:
        default_account: Name of the account used when none is given.
        accounts: Configured sending accounts, keyed by name.
        smtp: Session settings.

    Usage:
        >>> config = Config.load()
        >>> print(config.accounts['work'].email)
        'user@example.com'
    """
    # General settings
    default_account: str = ""

    # Account configurations (name -> Account)
    accounts: dict[str, Account] = field(default_factory=dict)

    smtp: SMTPConfig = field(default_factory=SMTPConfig)

    # -------------------------------------------------------------------------
    # File Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        """Returns the path to the main config file."""
        return get_xdg_config_home() / "config.toml"

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Load configuration from a config file.

        If the file doesn't exist, returns default configuration.

        Args:
            path: Config file to read. Defaults to the XDG location.

        Returns:
            Loaded Config object.

        Raises:
            ConfigError: If the config file exists but is invalid.
        """
        config_path = path or cls.config_file_path()

        if not config_path.exists():
            # No config file yet - return defaults
            return cls()

        # Load and parse the TOML file
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e

        return cls._from_dict(data)

    def save(self, path: Path | None = None) -> None:
        """
        Save configuration to a config file.

        Creates the parent directory if it doesn't exist.
        """
        config_path = path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self._to_dict(), f)

    def get_account(self, name: str | None = None) -> Account:
        """
        Pick an account: the named one, else the default, else the only one.

        Raises:
            ConfigError: If no account matches.
        """
        name = name or self.default_account
        if name:
            try:
                return self.accounts[name]
            except KeyError:
                raise ConfigError(f"No account named {name!r} in config") from None

        if len(self.accounts) == 1:
            return next(iter(self.accounts.values()))
        if not self.accounts:
            raise ConfigError(f"No accounts configured. Add one to {self.config_file_path()}")
        raise ConfigError("Several accounts configured; pick one with --account or default_account")

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Create a Config object from a dictionary (parsed TOML).

        Converts account entries into Account objects and validates the
        values that have a fixed set of choices.
        """
        config = cls()

        # General settings
        general = data.get("general", {})
        config.default_account = general.get("default_account", "")

        # SMTP settings
        smtp = data.get("smtp", {})
        config.smtp = SMTPConfig(timeout=smtp.get("timeout", 0))

        # Accounts - each key under [accounts] is an account name
        accounts_data = data.get("accounts", {})
        for name, acct_data in accounts_data.items():
            account = Account(
                name=name,
                email=acct_data.get("email", ""),
                display_name=acct_data.get("display_name", ""),
                smtp_host=acct_data.get("smtp_host", ""),
                smtp_port=acct_data.get("smtp_port", 587),
                smtp_security=acct_data.get("smtp_security", "starttls"),
                auth_mechanism=acct_data.get("auth_mechanism", "plain"),
                username=acct_data.get("username", ""),
            )
            _validate_account(account)
            config.accounts[name] = account

        return config

    def _to_dict(self) -> dict[str, Any]:
        """
        Convert Config to a dictionary for TOML serialization.
        """
        data: dict[str, Any] = {}

        data["general"] = {
            "default_account": self.default_account,
        }

        data["smtp"] = {
            "timeout": self.smtp.timeout,
        }

        data["accounts"] = {}
        for name, account in self.accounts.items():
            data["accounts"][name] = {
                "email": account.email,
                "display_name": account.display_name,
                "smtp_host": account.smtp_host,
                "smtp_port": account.smtp_port,
                "smtp_security": account.smtp_security,
                "auth_mechanism": account.auth_mechanism,
                "username": account.username,
            }

        return data


def _validate_account(account: Account) -> None:
    if account.smtp_security not in SECURITY_MODES:
        raise ConfigError(
            f"Account {account.name!r}: smtp_security must be one of "
            f"{', '.join(SECURITY_MODES)}, got {account.smtp_security!r}"
        )
    if account.auth_mechanism.lower() not in AUTH_MECHANISMS:
        raise ConfigError(
            f"Account {account.name!r}: auth_mechanism must be one of "
            f"{', '.join(AUTH_MECHANISMS)}, got {account.auth_mechanism!r}"
        )


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(StreamMailError):
    """Raised when there's an error loading or parsing configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths() -> None:
    """
    Print config paths for debugging.
    Useful for users wondering where their config is stored.
    """
    print(f"Config:       {get_xdg_config_home()}")
    print(f"Config file:  {Config.config_file_path()}")
