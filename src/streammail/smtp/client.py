# =============================================================================
# SMTP Transmitter
# =============================================================================
# Sends one sealed message over one SMTP session.
#
#   connect ─> EHLO ─> [STARTTLS ─> EHLO] ─> [AUTH] ─> MAIL FROM
#           ─> RCPT TO (To, Cc, Bcc) ─> DATA ─> QUIT
#
# STARTTLS and AUTH are used only when the server advertises them. A failed
# STARTTLS ends the session; there is no plaintext fallback. The first
# failure of any step aborts the rest, and the connection is closed on every
# exit path.
#
# Uses aiosmtplib for the connection and command codec. send_message() is a
# blocking wrapper for callers without an event loop.
# =============================================================================

import asyncio
import base64
import contextlib
import logging
import ssl
from typing import TYPE_CHECKING

import aiosmtplib

from streammail.core import Envelope
from streammail.errors import (
    CompositionError,
    RecipientRefusedError,
    SendError,
    SMTPAuthenticationError,
    SMTPConnectionError,
)
from streammail.smtp.auth import Credential, ServerInfo

if TYPE_CHECKING:
    from streammail.core import Account
    from streammail.mime import MessageBuilder

logger = logging.getLogger(__name__)

# Reply codes for AUTH (RFC 4954)
AUTH_CONTINUE = 334
AUTH_SUCCESS = 235


class Transmitter:
    """
    SMTP client for sending sealed messages.

    Usage:
        >>> transmitter = Transmitter("smtp.example.com", 587)
        >>> await transmitter.send(builder)

    Attributes:
        hostname: Server to connect to. Also the name the TLS certificate
                  is verified against.
        port: Server port.
        use_tls: Connect with implicit TLS (port 465 style). STARTTLS is
                 skipped in that case.
        timeout: Per-operation timeout in seconds. None means no timeout;
                 wrap send() in asyncio.timeout() for an overall deadline.
    """

    def __init__(
        self,
        hostname: str,
        port: int = 587,
        *,
        use_tls: bool = False,
        timeout: float | None = None,
        tls_context: ssl.SSLContext | None = None,
    ) -> None:
        self.hostname = hostname
        self.port = port
        self.use_tls = use_tls
        self.timeout = timeout
        self.tls_context = tls_context

    @classmethod
    def from_account(cls, account: "Account", **kwargs) -> "Transmitter":
        """Create a transmitter for an account's SMTP server."""
        return cls(
            account.smtp_host,
            account.smtp_port,
            use_tls=account.smtp_security == "ssl",
            **kwargs,
        )

    async def send(self, message: "MessageBuilder") -> None:
        """
        Transmit a sealed message to every recipient of its envelope.

        Raises:
            CompositionError: If the message isn't sealed or was already sent.
            SMTPConnectionError: If connecting, greeting or STARTTLS fails,
                                 or the server drops the connection.
            SMTPAuthenticationError: If authentication fails.
            RecipientRefusedError: If a RCPT TO is refused.
            SendError: If MAIL FROM, DATA or QUIT is rejected.
        """
        if not message.sealed:
            raise CompositionError("message must be sealed before it is sent")
        if message.consumed:
            raise CompositionError("message was already sent")

        envelope = message.envelope
        smtp = aiosmtplib.SMTP(
            hostname=self.hostname,
            port=self.port,
            use_tls=self.use_tls,
            start_tls=False,
            timeout=self.timeout,
            tls_context=self.tls_context,
        )

        logger.info(f"Connecting to SMTP {self.hostname}:{self.port}")
        try:
            tls = await self._connect(smtp)

            if smtp.supports_extension("auth"):
                await self._authenticate(smtp, envelope.credential, tls)

            await self._send_envelope(smtp, envelope)
            await self._send_data(smtp, message.take())

            logger.info(f"Message sent via {self.hostname}")

        except (aiosmtplib.SMTPException, OSError) as e:
            # Anything a step didn't translate: disconnects, timeouts, socket errors
            logger.error(f"SMTP session with {self.hostname} failed: {e}")
            raise SMTPConnectionError(
                f"SMTP session with {self.hostname}:{self.port} failed: {e}"
            ) from e
        finally:
            smtp.close()
            logger.debug(f"Closed SMTP connection to {self.hostname}")

    # -------------------------------------------------------------------------
    # Session steps
    # -------------------------------------------------------------------------

    async def _hello(self, smtp: aiosmtplib.SMTP) -> None:
        """EHLO, falling back to HELO for servers without ESMTP."""
        try:
            await smtp.ehlo()
        except aiosmtplib.SMTPHeloError:
            logger.debug("EHLO rejected, falling back to HELO")
            await smtp.helo()

    async def _connect(self, smtp: aiosmtplib.SMTP) -> bool:
        """
        Connect, greet and upgrade to TLS when offered.

        Returns:
            True if the session is encrypted.
        """
        try:
            await smtp.connect()
            await self._hello(smtp)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to connect to SMTP {self.hostname}:{self.port}: {e}")
            raise SMTPConnectionError(
                f"Failed to connect to SMTP {self.hostname}:{self.port}: {e}"
            ) from e
        logger.debug("SMTP connection established")

        if self.use_tls:
            return True
        if not smtp.supports_extension("starttls"):
            logger.debug("Server does not offer STARTTLS")
            return False

        try:
            await smtp.starttls(server_hostname=self.hostname, tls_context=self.tls_context)
            await self._hello(smtp)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"STARTTLS with {self.hostname} failed: {e}")
            raise SMTPConnectionError(f"STARTTLS with {self.hostname} failed: {e}") from e

        logger.debug("Upgraded connection with STARTTLS")
        return True

    async def _authenticate(
        self,
        smtp: aiosmtplib.SMTP,
        credential: Credential | None,
        tls: bool,
    ) -> None:
        """Run the SASL exchange driven by ``credential``."""
        if credential is None:
            logger.info(f"{self.hostname} offers AUTH but no credential is set, skipping")
            return

        server = ServerInfo(
            name=self.hostname,
            tls=tls,
            mechanisms=[m.upper() for m in smtp.server_auth_methods],
        )

        try:
            mechanism, initial = credential.start(server)
            logger.debug(f"Authenticating with {mechanism}")

            command = [b"AUTH", mechanism.encode("ascii")]
            if initial is not None:
                # "=" stands for an empty initial response
                command.append(base64.b64encode(initial) if initial else b"=")
            response = await smtp.execute_command(*command)

            while response.code == AUTH_CONTINUE:
                challenge = base64.b64decode(response.message)
                try:
                    answer = credential.next(challenge)
                except Exception:
                    # Cancel the exchange; the credential's error is what matters
                    with contextlib.suppress(aiosmtplib.SMTPException):
                        await smtp.execute_command(b"*")
                    raise
                response = await smtp.execute_command(base64.b64encode(answer))

        except SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            raise
        except (aiosmtplib.SMTPException, ValueError) as e:
            logger.error(f"SMTP authentication failed: {e}")
            raise SMTPAuthenticationError(f"SMTP authentication failed: {e}") from e

        if response.code != AUTH_SUCCESS:
            logger.error(f"SMTP authentication rejected: {response.code} {response.message}")
            raise SMTPAuthenticationError(
                f"SMTP authentication rejected: {response.code} {response.message}"
            )
        logger.debug("SMTP authentication successful")

    async def _send_envelope(self, smtp: aiosmtplib.SMTP, envelope: Envelope) -> None:
        """MAIL FROM, then one RCPT TO per recipient. First refusal aborts."""
        sender = envelope.sender_address
        try:
            await smtp.mail(sender)
        except aiosmtplib.SMTPResponseException as e:
            logger.error(f"Sender {sender} refused: {e.code} {e.message}")
            raise SendError(f"Sender {sender} refused: {e.code} {e.message}", e.code) from e

        for recipient in envelope.recipients():
            try:
                await smtp.rcpt(recipient)
            except aiosmtplib.SMTPResponseException as e:
                logger.error(f"Recipient {recipient} refused: {e.code} {e.message}")
                raise RecipientRefusedError(
                    recipient, f"Recipient {recipient} refused: {e.code} {e.message}", e.code
                ) from e
            logger.debug(f"Recipient accepted: {recipient}")

    async def _send_data(self, smtp: aiosmtplib.SMTP, data: bytes) -> None:
        """DATA with the full transcript, then QUIT."""
        try:
            await smtp.data(data)
        except aiosmtplib.SMTPResponseException as e:
            logger.error(f"Message rejected: {e.code} {e.message}")
            raise SendError(f"Message rejected: {e.code} {e.message}", e.code) from e

        try:
            await smtp.quit()
        except aiosmtplib.SMTPResponseException as e:
            raise SendError(f"QUIT failed: {e.code} {e.message}", e.code) from e


def send_message(transmitter: Transmitter, message: "MessageBuilder") -> None:
    """
    Blocking version of Transmitter.send() for synchronous callers.

    Must not be called from inside a running event loop.
    """
    asyncio.run(transmitter.send(message))
