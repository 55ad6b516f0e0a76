# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the streammail test suite.
#
# FakeServer scripts what an SMTP server advertises and how it answers;
# FakeSMTP stands in for aiosmtplib.SMTP and records every command into the
# server's transcript.
# =============================================================================

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import aiosmtplib
import pytest
from aiosmtplib import SMTPResponse as Reply

from streammail.core import Account, Envelope


class FakeServer:
    """Scripted server state shared by every FakeSMTP it spawns."""

    def __init__(self):
        # ESMTP extensions advertised before and after STARTTLS
        self.extensions: dict[str, str] = {}
        self.tls_extensions: dict[str, str] | None = None
        # Replies handed out to AUTH exchanges, in order
        self.auth_replies: list[Reply] = [Reply(235, "2.7.0 Authentication successful")]
        # Failure knobs
        self.connect_error: Exception | None = None
        self.starttls_error: Exception | None = None
        self.mail_error: tuple[int, str] | None = None
        self.refused: dict[str, tuple[int, str]] = {}
        self.data_error: tuple[int, str] | None = None
        # Recorded session
        self.commands: list[str] = []
        self.clients: list["FakeSMTP"] = []
        self.data: bytes | None = None

    @property
    def closed(self) -> bool:
        return all(client.closed for client in self.clients)


class FakeSMTP:
    def __init__(self, server: FakeServer, **kwargs):
        self.server = server
        self.kwargs = kwargs
        self.hostname = kwargs["hostname"]
        self.tls = kwargs.get("use_tls", False)
        self.closed = False
        self._extensions: dict[str, str] = {}

    def _record(self, command: str) -> None:
        self.server.commands.append(command)

    async def connect(self):
        self._record("CONNECT")
        if self.server.connect_error:
            raise self.server.connect_error
        return Reply(220, "ready")

    async def ehlo(self):
        self._record("EHLO")
        if self.tls and self.server.tls_extensions is not None:
            extensions = self.server.tls_extensions
        elif self.tls:
            extensions = {k: v for k, v in self.server.extensions.items() if k != "starttls"}
        else:
            extensions = self.server.extensions
        self._extensions = dict(extensions)
        return Reply(250, "ok")

    async def helo(self):
        self._record("HELO")
        return Reply(250, "ok")

    def supports_extension(self, name: str) -> bool:
        return name.lower() in self._extensions

    @property
    def server_auth_methods(self) -> list[str]:
        return self._extensions.get("auth", "").lower().split()

    async def starttls(self, server_hostname=None, tls_context=None, **kwargs):
        self._record(f"STARTTLS {server_hostname}")
        if self.server.starttls_error:
            raise self.server.starttls_error
        self.tls = True
        self._extensions = {}
        return Reply(220, "go ahead")

    async def execute_command(self, *args: bytes):
        self._record(b" ".join(args).decode("ascii"))
        return self.server.auth_replies.pop(0)

    async def mail(self, sender: str, **kwargs):
        self._record(f"MAIL FROM:{sender}")
        if self.server.mail_error:
            code, message = self.server.mail_error
            raise aiosmtplib.SMTPSenderRefused(code, message, sender)
        return Reply(250, "ok")

    async def rcpt(self, recipient: str, **kwargs):
        self._record(f"RCPT TO:{recipient}")
        if recipient in self.server.refused:
            code, message = self.server.refused[recipient]
            raise aiosmtplib.SMTPRecipientRefused(code, message, recipient)
        return Reply(250, "ok")

    async def data(self, message, **kwargs):
        self._record("DATA")
        if self.server.data_error:
            code, text = self.server.data_error
            raise aiosmtplib.SMTPDataError(code, text)
        self.server.data = message
        return Reply(250, "queued")

    async def quit(self):
        self._record("QUIT")
        return Reply(221, "bye")

    def close(self):
        self.closed = True


@pytest.fixture
def smtp_server(monkeypatch):
    """Patch aiosmtplib.SMTP with a FakeSMTP bound to a fresh FakeServer."""
    server = FakeServer()

    def factory(**kwargs):
        client = FakeSMTP(server, **kwargs)
        server.clients.append(client)
        return client

    monkeypatch.setattr("streammail.smtp.client.aiosmtplib.SMTP", factory)
    return server


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fixed_date():
    """A fixed, timezone-aware send date (a Monday)."""
    return datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_envelope():
    """The simplest useful envelope: one sender, one recipient."""
    return Envelope(sender="a@x.com", to=["b@x.com"], subject="Test")


@pytest.fixture
def sample_account():
    """Create a sample Account for testing."""
    return Account(
        name="test",
        email="test@example.com",
        display_name="Test User",
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_security="starttls",
        auth_mechanism="plain",
    )
