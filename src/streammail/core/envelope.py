# =============================================================================
# Envelope
# =============================================================================
# Addressing for one message. The same addresses are used for the visible
# headers and for the SMTP envelope (MAIL FROM / RCPT TO).
# =============================================================================

from dataclasses import dataclass, field
from email.utils import parseaddr
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from streammail.smtp.auth import Credential


@dataclass
class Envelope:
    """
    Sender, recipients, subject and credential for a message.

    Addresses may carry display names ("Jane <jane@example.com>"); they are
    written as-is to the headers and reduced to the bare address for the
    SMTP commands.

    Attributes:
        sender: From address.
        to: To recipients, in order.
        cc: CC recipients, in order.
        bcc: BCC recipients, in order.
        subject: Subject line. May contain any Unicode text.
        credential: Used if the server advertises AUTH. None skips AUTH.
    """
    sender: str
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    subject: str = ""
    credential: "Credential | None" = None

    @property
    def sender_address(self) -> str:
        """Bare sender address for MAIL FROM."""
        return parseaddr(self.sender)[1] or self.sender

    def recipients(self) -> Iterator[str]:
        """Yield bare recipient addresses: To, then Cc, then Bcc."""
        for addr in (*self.to, *self.cc, *self.bcc):
            yield parseaddr(addr)[1] or addr
