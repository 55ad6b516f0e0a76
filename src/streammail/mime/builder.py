# =============================================================================
# Message Builder
# =============================================================================
# Builds a multipart/mixed message directly into a byte stream.
#
# Layout of the transcript:
#
#   Date / From / To / Cc / Bcc / Subject
#   Content-Type: multipart/mixed; boundary=<token>
#   MIME-Version: 1.0
#   <blank line>
#   --<token>                  ┐
#   <part headers>             │ repeated per part, body is
#   <blank line>               │ base64 wrapped at 76 columns
#   <body>                     ┘
#   --<token>--
#
# The sink is a single linear stream, so parts are written one at a time:
#
#   CREATED ──> PART_OPEN ──> PART_CLOSED ──> ... ──> SEALED
#
# Anything out of order raises CompositionError.
# =============================================================================

import io
import logging
import secrets
import shutil
from contextlib import contextmanager
from datetime import datetime
from email.utils import format_datetime, formatdate
from enum import Enum, auto
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Iterator, Mapping

from streammail.core import Envelope
from streammail.errors import CompositionError
from streammail.mime.encoder import PartEncoder
from streammail.mime.headers import (
    canonical_key,
    encode_address_list,
    encode_filename,
    encode_word,
)

logger = logging.getLogger(__name__)

CRLF = b"\r\n"

BodyWriter = Callable[[PartEncoder], object]


class BuilderState(Enum):
    """Lifecycle of a MessageBuilder."""
    CREATED = auto()
    PART_OPEN = auto()
    PART_CLOSED = auto()
    SEALED = auto()


def _make_boundary() -> str:
    """60 random hex characters; never collides with base64 text."""
    return secrets.token_hex(30)


class MessageBuilder:
    """
    Incrementally builds a MIME message for one envelope.

    The header block is written as soon as the builder is created. Parts
    are appended with text(), html(), attach_stream(), attach_file() or
    the lower level part() context manager, then seal() closes the
    multipart container.

    Usage:
        >>> builder = MessageBuilder(envelope)
        >>> builder.text("Hello!")
        >>> builder.attach_file("report.pdf")
        >>> builder.seal()
        >>> data = builder.take()

    Attributes:
        envelope: Addressing used for the header block.
        boundary: Multipart boundary token, fixed for the builder's lifetime.
        state: Current BuilderState.
    """

    def __init__(
        self,
        envelope: Envelope,
        sink: BinaryIO | None = None,
        *,
        date: datetime | None = None,
    ) -> None:
        """
        Create the builder and write the header block.

        Args:
            envelope: Sender, recipients and subject.
            sink: Where the transcript goes. Defaults to an in-memory buffer.
            date: Date header value. Defaults to now, in local time.
        """
        self.envelope = envelope
        self.boundary = _make_boundary()
        self.state = BuilderState.CREATED
        self._sink = sink if sink is not None else io.BytesIO()
        self._parts = 0
        self._consumed = False

        self._write_headers(date)

    # -------------------------------------------------------------------------
    # Header block
    # -------------------------------------------------------------------------

    def _write_headers(self, date: datetime | None) -> None:
        env = self.envelope
        date_value = format_datetime(date) if date else formatdate(localtime=True)

        headers = [("Date", date_value), ("From", encode_address_list([env.sender]))]
        headers.append(("To", encode_address_list(env.to)))
        if env.bcc:
            headers.append(("Bcc", encode_address_list(env.bcc)))
        if env.cc:
            headers.append(("Cc", encode_address_list(env.cc)))
        headers.append(("Subject", encode_word(env.subject, "Subject")))
        headers.append(("Content-Type", f"multipart/mixed; boundary={self.boundary}"))
        headers.append(("MIME-Version", "1.0"))

        for name, value in headers:
            self._write_line(f"{name}: {value}")
        self._sink.write(CRLF)

    def _write_line(self, line: str) -> None:
        self._sink.write(line.encode("ascii") + CRLF)

    # -------------------------------------------------------------------------
    # Parts
    # -------------------------------------------------------------------------

    def _check_can_open_part(self) -> None:
        if self.state is BuilderState.SEALED:
            raise CompositionError("message is sealed; no more parts can be added")
        if self.state is BuilderState.PART_OPEN:
            raise CompositionError("a part is already open; close it before opening another")

    @contextmanager
    def part(self, headers: Mapping[str, str]) -> Iterator[PartEncoder]:
        """
        Open a base64 encoded part and yield its body stream.

        ``Content-Transfer-Encoding: base64`` is always set, replacing any
        value the caller passed. The encoder is finalized on exit even if
        the body raised; in that case the body's exception is the one that
        propagates.

        Raises:
            CompositionError: If the message is sealed or a part is open.
                Also if a header value has a line break or non-ASCII text.
        """
        self._check_can_open_part()

        part_headers: dict[str, str] = {}
        for key, value in headers.items():
            if "\r" in value or "\n" in value:
                raise CompositionError(f"line break in {key} header value")
            part_headers[canonical_key(key)] = value
        part_headers["Content-Transfer-Encoding"] = "base64"

        # Render the whole delimiter and header block before writing any of it
        lines = [f"--{self.boundary}"]
        lines.extend(f"{key}: {value}" for key, value in part_headers.items())
        try:
            block = CRLF.join(line.encode("ascii") for line in lines) + CRLF + CRLF
        except UnicodeEncodeError as e:
            raise CompositionError(f"part header values must be ASCII: {e}") from e
        if self._parts:
            block = CRLF + block
        self._sink.write(block)

        self.state = BuilderState.PART_OPEN
        self._parts += 1
        logger.debug(f"Opened part {self._parts}: {part_headers.get('Content-Type', '')}")

        encoder = PartEncoder(self._sink)
        try:
            yield encoder
        except BaseException:
            try:
                encoder.close()
            except Exception as e:
                logger.warning(f"Failed to finalize part {self._parts} after body error: {e}")
            raise
        else:
            encoder.close()
        finally:
            self.state = BuilderState.PART_CLOSED

    def add_part(self, headers: Mapping[str, str], write_body: BodyWriter) -> None:
        """Open a part, let ``write_body`` fill it, and close it."""
        with self.part(headers) as body:
            write_body(body)

    def text_part(self, subtype: str, write_body: BodyWriter) -> None:
        """Add a ``text/<subtype>; charset=utf-8`` part."""
        headers = {"Content-Type": f"text/{subtype}; charset=utf-8"}
        self.add_part(headers, write_body)

    def binary_part(self, name: str, write_body: BodyWriter) -> None:
        """Add an ``application/octet-stream`` attachment named ``name``."""
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Disposition": f"attachment; filename={encode_filename(name)}",
        }
        self.add_part(headers, write_body)

    def text(self, text: str) -> None:
        """Add a plain text part."""
        self.text_part("plain", lambda w: w.write(text.encode("utf-8")))

    def html(self, html: str) -> None:
        """Add an HTML part."""
        self.text_part("html", lambda w: w.write(html.encode("utf-8")))

    def attach_stream(self, filename: str, source: BinaryIO | Iterable[bytes]) -> None:
        """
        Attach the bytes produced by ``source``.

        Args:
            filename: Name shown to the recipient.
            source: A readable binary stream, or any iterable of byte chunks.
                    Read once, front to back.
        """
        def copy(body: PartEncoder) -> None:
            if hasattr(source, "read"):
                shutil.copyfileobj(source, body)
            else:
                for chunk in source:
                    body.write(chunk)

        self.binary_part(filename, copy)

    def attach_file(self, path: str | Path) -> None:
        """
        Attach a file from disk under its base name.

        The file is closed before this returns, whether or not the
        attachment was written.
        """
        self._check_can_open_part()
        path = Path(path)
        with open(path, "rb") as f:
            self.attach_stream(path.name, f)

    # -------------------------------------------------------------------------
    # Finishing
    # -------------------------------------------------------------------------

    @property
    def sealed(self) -> bool:
        return self.state is BuilderState.SEALED

    @property
    def consumed(self) -> bool:
        """True once take() has handed the transcript out."""
        return self._consumed

    def seal(self) -> None:
        """
        Write the closing boundary. The message can't be changed afterwards.

        Raises:
            CompositionError: If already sealed or a part is still open.
        """
        if self.state is BuilderState.SEALED:
            raise CompositionError("message is already sealed")
        if self.state is BuilderState.PART_OPEN:
            raise CompositionError("cannot seal while a part is open")

        if self._parts:
            self._sink.write(CRLF)
        self._write_line(f"--{self.boundary}--")
        self.state = BuilderState.SEALED
        logger.debug(f"Sealed message with {self._parts} part(s)")

    def getvalue(self) -> bytes:
        """Return the transcript written so far (in-memory sinks only)."""
        if not isinstance(self._sink, io.BytesIO):
            raise TypeError("getvalue() needs the default in-memory sink")
        return self._sink.getvalue()

    def take(self) -> bytes:
        """
        Return the sealed transcript for transmission. Works once.

        Raises:
            CompositionError: If the message isn't sealed or was already taken.
        """
        if not self.sealed:
            raise CompositionError("message must be sealed before it is sent")
        if self._consumed:
            raise CompositionError("message was already sent")
        self._consumed = True
        return self.getvalue()
