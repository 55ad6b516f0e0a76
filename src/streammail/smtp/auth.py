# =============================================================================
# SMTP Authentication
# =============================================================================
# Credentials are capabilities: the Transmitter hands them what the server
# said and sends back whatever they produce. It never knows which mechanism
# is in use, so new mechanisms only need a new class here.
#
#   AUTH <mech> [initial response]    <- Credential.start()
#   334 <challenge>                   -> Credential.next(challenge)
#   ...                                  (repeated while the server says 334)
#   235 ok
#
# Passwords come from the system keyring, never from config files.
# =============================================================================

import base64
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import keyring
from aiosmtplib.auth import auth_crammd5_verify, auth_login_encode, auth_plain_encode

from streammail.errors import SMTPAuthenticationError

if TYPE_CHECKING:
    from streammail.core import Account

logger = logging.getLogger(__name__)

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass
class ServerInfo:
    """
    What a credential gets to know about the server.

    Attributes:
        name: Hostname we connected to.
        tls: Whether the session is encrypted (implicit TLS or STARTTLS).
        mechanisms: AUTH mechanisms the server advertised, upper case.
    """
    name: str
    tls: bool = False
    mechanisms: list[str] = field(default_factory=list)


class Credential(Protocol):
    """Anything that can drive one SASL exchange."""

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        """
        Begin authenticating.

        Returns:
            The mechanism name and the initial response (None for none).

        Raises:
            SMTPAuthenticationError: If the credential refuses to run
                against this server.
        """
        ...

    def next(self, challenge: bytes) -> bytes:
        """Answer a decoded 334 challenge."""
        ...


def _check_offered(mechanism: str, server: ServerInfo) -> None:
    if server.mechanisms and mechanism not in server.mechanisms:
        raise SMTPAuthenticationError(
            f"Server {server.name} does not offer {mechanism} "
            f"(offers: {', '.join(server.mechanisms)})"
        )


def _check_encrypted(mechanism: str, server: ServerInfo) -> None:
    # Cleartext passwords only go over TLS, or to this machine
    if not server.tls and server.name not in _LOCAL_HOSTS:
        raise SMTPAuthenticationError(
            f"Refusing {mechanism} authentication over an unencrypted "
            f"connection to {server.name}"
        )


class PlainAuth:
    """
    AUTH PLAIN (RFC 4616). Sends the password in the initial response.

    Args:
        username: Login name.
        password: Password.
        identity: Authorization identity, usually empty.
        host: If set, only authenticate against this hostname.
    """

    mechanism = "PLAIN"

    def __init__(self, username: str, password: str, identity: str = "", host: str = "") -> None:
        self.username = username
        self.password = password
        self.identity = identity
        self.host = host

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        if self.host and server.name != self.host:
            raise SMTPAuthenticationError(
                f"Credential is for {self.host}, not {server.name}"
            )
        _check_offered(self.mechanism, server)
        _check_encrypted(self.mechanism, server)
        # aiosmtplib returns the wire (base64) form; the transmitter encodes it again
        encoded = auth_plain_encode(self.username.encode("utf-8"), self.password.encode("utf-8"))
        return self.mechanism, self.identity.encode("utf-8") + base64.b64decode(encoded)

    def next(self, challenge: bytes) -> bytes:
        raise SMTPAuthenticationError("Unexpected server challenge during AUTH PLAIN")


class LoginAuth:
    """AUTH LOGIN: username and password sent as two separate answers."""

    mechanism = "LOGIN"

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password
        self._step = 0

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        _check_offered(self.mechanism, server)
        _check_encrypted(self.mechanism, server)
        self._step = 0
        return self.mechanism, None

    def next(self, challenge: bytes) -> bytes:
        username, password = (
            base64.b64decode(answer)
            for answer in auth_login_encode(
                self.username.encode("utf-8"), self.password.encode("utf-8")
            )
        )
        self._step += 1
        prompt = challenge.strip().lower()
        if prompt.startswith(b"username"):
            return username
        if prompt.startswith(b"password"):
            return password

        # Nonstandard prompts: fall back to the usual order
        if self._step == 1:
            return username
        if self._step == 2:
            return password
        raise SMTPAuthenticationError(f"Unexpected AUTH LOGIN challenge: {challenge!r}")


class CramMD5Auth:
    """
    AUTH CRAM-MD5 (RFC 2195). The password never crosses the wire, so it
    is allowed on unencrypted connections.
    """

    mechanism = "CRAM-MD5"

    def __init__(self, username: str, secret: str) -> None:
        self.username = username
        self.secret = secret

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        _check_offered(self.mechanism, server)
        return self.mechanism, None

    def next(self, challenge: bytes) -> bytes:
        # auth_crammd5_verify works on the base64 wire form in both directions
        verification = auth_crammd5_verify(
            self.username.encode("utf-8"),
            self.secret.encode("utf-8"),
            base64.b64encode(challenge),
        )
        return base64.b64decode(verification)


def password_from_keyring(service: str, username: str) -> str:
    """
    Look up a password in the system keyring.

    Raises:
        SMTPAuthenticationError: If no password is stored.
    """
    password = keyring.get_password(service, username)
    if not password:
        raise SMTPAuthenticationError(
            f"No password found in keyring for {username}. "
            f"Set it with: keyring set {service} {username}"
        )
    return password


def credential_for_account(account: "Account") -> Credential | None:
    """
    Build the credential configured for an account.

    Returns:
        None when the account's auth_mechanism is "none".
    """
    mechanism = account.auth_mechanism.lower()
    if mechanism == "none":
        return None

    logger.debug(f"Loading {mechanism} credential for {account.username}")
    password = password_from_keyring(account.keyring_service, account.username)

    if mechanism == "plain":
        return PlainAuth(account.username, password, host=account.smtp_host)
    if mechanism == "login":
        return LoginAuth(account.username, password)
    if mechanism == "cram-md5":
        return CramMD5Auth(account.username, password)
    raise SMTPAuthenticationError(f"Unsupported auth mechanism: {account.auth_mechanism}")
