import pytest

from streammail.config import Config, ConfigError, SMTPConfig, get_xdg_config_home
from streammail.core import Account


def test_missing_file_gives_defaults(temp_dir):
    config = Config.load(temp_dir / "nope.toml")

    assert config.accounts == {}
    assert config.default_account == ""
    assert config.smtp.timeout == 0


def test_save_and_load_round_trip(temp_dir, sample_account):
    path = temp_dir / "nested" / "config.toml"
    config = Config(
        default_account="test",
        accounts={"test": sample_account},
        smtp=SMTPConfig(timeout=30),
    )

    config.save(path)
    loaded = Config.load(path)

    assert loaded.default_account == "test"
    assert loaded.smtp.timeout == 30
    assert loaded.accounts["test"] == sample_account


def test_load_fills_account_defaults(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text(
        '[accounts.work]\n'
        'email = "jane@example.com"\n'
        'smtp_host = "smtp.example.com"\n'
    )

    account = Config.load(path).accounts["work"]

    assert account.smtp_port == 587
    assert account.smtp_security == "starttls"
    assert account.auth_mechanism == "plain"
    assert account.username == "jane@example.com"
    assert account.sender == "jane@example.com"


def test_invalid_toml(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text("[accounts\n")

    with pytest.raises(ConfigError, match="Invalid config file"):
        Config.load(path)


@pytest.mark.parametrize("line, message", [
    ('smtp_security = "tls"', "smtp_security"),
    ('auth_mechanism = "xoauth2"', "auth_mechanism"),
])
def test_invalid_account_values(temp_dir, line, message):
    path = temp_dir / "config.toml"
    path.write_text(f'[accounts.work]\nemail = "a@x.com"\n{line}\n')

    with pytest.raises(ConfigError, match=message):
        Config.load(path)


# =============================================================================
# Account selection
# =============================================================================

def _account(name: str) -> Account:
    return Account(name=name, email=f"{name}@example.com", smtp_host="smtp.example.com")


def test_get_account_by_name():
    config = Config(accounts={"a": _account("a"), "b": _account("b")})
    assert config.get_account("b").name == "b"


def test_get_account_default():
    config = Config(default_account="a", accounts={"a": _account("a"), "b": _account("b")})
    assert config.get_account().name == "a"


def test_get_account_only_one():
    config = Config(accounts={"solo": _account("solo")})
    assert config.get_account().name == "solo"


def test_get_account_ambiguous():
    config = Config(accounts={"a": _account("a"), "b": _account("b")})
    with pytest.raises(ConfigError, match="Several accounts"):
        config.get_account()


def test_get_account_unknown():
    config = Config(accounts={"a": _account("a")})
    with pytest.raises(ConfigError, match="No account named 'zzz'"):
        config.get_account("zzz")


def test_get_account_none_configured():
    with pytest.raises(ConfigError, match="No accounts configured"):
        Config().get_account()


# =============================================================================
# Paths
# =============================================================================

def test_xdg_config_home_override(monkeypatch, temp_dir):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir))

    assert get_xdg_config_home() == temp_dir / "streammail"
    assert Config.config_file_path() == temp_dir / "streammail" / "config.toml"


def test_xdg_config_home_default(monkeypatch, temp_dir):
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(temp_dir))

    assert get_xdg_config_home() == temp_dir / ".config" / "streammail"
