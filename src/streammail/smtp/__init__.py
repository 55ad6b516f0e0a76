# =============================================================================
# SMTP Module
# =============================================================================
# Sends sealed messages via SMTP (Simple Mail Transfer Protocol).
#
# Features:
#   - Opportunistic STARTTLS, or implicit TLS
#   - Pluggable AUTH mechanisms (PLAIN, LOGIN, CRAM-MD5)
#   - Passwords from the system keyring
# =============================================================================

from streammail.smtp.auth import (
    CramMD5Auth,
    Credential,
    LoginAuth,
    PlainAuth,
    ServerInfo,
    credential_for_account,
    password_from_keyring,
)
from streammail.smtp.client import Transmitter, send_message

__all__ = [
    "Transmitter",
    "send_message",
    "Credential",
    "ServerInfo",
    "PlainAuth",
    "LoginAuth",
    "CramMD5Auth",
    "credential_for_account",
    "password_from_keyring",
]
