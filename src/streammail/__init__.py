# =============================================================================
# streammail: Streaming MIME Composition and SMTP Delivery
# =============================================================================
#
# streammail builds a multipart/mixed message part by part, straight into a
# byte stream, and delivers it over SMTP.
#
# Features:
#   - Text, HTML and attachment parts, base64 wrapped at 76 columns
#   - Unicode headers as RFC 2047 encoded words
#   - Opportunistic STARTTLS and pluggable AUTH mechanisms
#   - Passwords from the system keyring
#   - XDG Base Directory compliant config
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "streammail"

from streammail.core import Account, Envelope
from streammail.errors import (
    CompositionError,
    RecipientRefusedError,
    SendError,
    SMTPAuthenticationError,
    SMTPConnectionError,
    SMTPError,
    StreamMailError,
)
from streammail.mime import MessageBuilder
from streammail.smtp import Transmitter, send_message

__all__ = [
    "__version__",
    "__app_name__",
    "Account",
    "Envelope",
    "MessageBuilder",
    "Transmitter",
    "send_message",
    "StreamMailError",
    "CompositionError",
    "SMTPError",
    "SMTPConnectionError",
    "SMTPAuthenticationError",
    "SendError",
    "RecipientRefusedError",
]
