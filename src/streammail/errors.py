# =============================================================================
# Exceptions
# =============================================================================
# Every failure surfaced by streammail derives from StreamMailError.
#
#   StreamMailError
#     ├── CompositionError          builder contract violations
#     └── SMTPError                 anything that goes wrong in a session
#           ├── SMTPConnectionError     dial, EHLO, STARTTLS, disconnects
#           ├── SMTPAuthenticationError credential rejected or unusable
#           └── SendError               MAIL / DATA / QUIT rejected
#                 └── RecipientRefusedError
#
# Nothing here retries. Callers own retry policy.
# =============================================================================


class StreamMailError(Exception):
    """Base exception for streammail."""
    pass


class CompositionError(StreamMailError):
    """
    Raised when a message is mutated out of order.

    Examples: opening a part while another is still open, adding a part
    after the message was sealed, sealing twice.
    """
    pass


class SMTPError(StreamMailError):
    """Base exception for SMTP operations."""
    pass


class SMTPConnectionError(SMTPError):
    """Raised when unable to connect, greet or upgrade to TLS."""
    pass


class SMTPAuthenticationError(SMTPError):
    """Raised when SMTP authentication fails."""
    pass


class SendError(SMTPError):
    """
    Raised when the server rejects a command of the mail transaction.

    Attributes:
        code: SMTP reply code, or None if the failure had none.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class RecipientRefusedError(SendError):
    """Raised when the server refuses a RCPT TO address."""

    def __init__(self, recipient: str, message: str, code: int | None = None) -> None:
        super().__init__(message, code)
        self.recipient = recipient
