# =============================================================================
# Part Encoder
# =============================================================================
# Streaming base64 encoder for MIME body parts.
#
#   caller bytes ──> base64 (3-byte groups) ──> LineWrapper ──> part sink
#
# At most two input bytes are held back between writes: the tail of a write
# that doesn't fill a whole 3-byte group. They're flushed (with padding) when
# the encoder is closed.
# =============================================================================

import base64
from typing import BinaryIO

from streammail.errors import CompositionError
from streammail.mime.wrap import LineWrapper


class PartEncoder:
    """
    Write-only binary stream that base64-encodes into a wrapped sink.

    Usage:
        >>> with PartEncoder(sink) as enc:
        ...     enc.write(b"hello")
        >>> sink.getvalue()
        b'aGVsbG8='

    Attributes:
        closed: True once close() has run.
    """

    def __init__(self, sink: BinaryIO) -> None:
        self._wrapper = LineWrapper(sink)
        self._pending = b""
        self.closed = False

    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:
        """
        Encode ``data`` and pass it on.

        Returns:
            Number of plaintext bytes accepted.

        Raises:
            CompositionError: If the encoder was already closed.
        """
        if self.closed:
            raise CompositionError("write to a closed part")

        if not data:
            return 0

        buf = self._pending + bytes(data)
        usable = len(buf) - len(buf) % 3
        self._pending = buf[usable:]
        if usable:
            self._wrapper.write(base64.b64encode(buf[:usable]))
        return len(data)

    def close(self) -> None:
        """
        Flush the final partial group, with padding.

        Safe to call more than once. The encoder counts as closed even if
        the final write fails.
        """
        if self.closed:
            return
        self.closed = True

        pending, self._pending = self._pending, b""
        if pending:
            self._wrapper.write(base64.b64encode(pending))

    def __enter__(self) -> "PartEncoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
