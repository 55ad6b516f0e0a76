# =============================================================================
# Line Wrapper
# =============================================================================
# Breaks a byte stream into lines of at most 76 characters, as required for
# base64 content in MIME bodies (RFC 2045, section 6.8).
#
# The wrapper keeps a single column counter and never looks ahead, so it can
# sit under a streaming encoder without buffering anything.
# =============================================================================

from typing import BinaryIO

# Maximum encoded line length for base64 MIME bodies
MAX_LINE_LENGTH = 76

CRLF = b"\r\n"


class LineWrapper:
    """
    Write-through stream that inserts CRLF after every ``width`` bytes.

    The inserted break does not count toward the next line. Writes may be
    of any length; a single write can span several breaks.

    Attributes:
        column: Bytes written to the current physical line so far.
                Always in ``[0, width)`` between calls.

    Example:
        >>> out = io.BytesIO()
        >>> w = LineWrapper(out)
        >>> w.write(b"A" * 80)
        80
        >>> out.getvalue().count(b"\\r\\n")
        1
    """

    def __init__(self, sink: BinaryIO, width: int = MAX_LINE_LENGTH) -> None:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        self._sink = sink
        self.width = width
        self.column = 0
        # Bytes of a line break already accepted by the sink
        self._break_sent = 0

    def write(self, data: bytes) -> int:
        """
        Write ``data`` through to the sink, breaking lines as needed.

        Short writes from the sink are retried with the remainder. If the
        sink raises, the exception propagates unchanged and ``column``
        reflects the bytes accepted before the failure.

        Returns:
            Number of input bytes written (always ``len(data)`` on success).
        """
        view = memoryview(data).cast("B")
        written = 0

        while written < len(view):
            if self.column == self.width:
                # Break left pending by a sink failure on the previous call
                self._break()

            room = self.width - self.column
            chunk = view[written:written + room]

            n = self._put(chunk)
            written += n
            self.column += n

            if self.column == self.width:
                self._break()

        return written

    def _put(self, data) -> int:
        n = self._sink.write(data)
        if n is None:
            # Buffered streams may not report a count
            return len(data)
        if n == 0:
            raise OSError("sink accepted no bytes")
        return n

    def _break(self) -> None:
        # Short writes are retried; a failed one resumes mid-break next time
        while self._break_sent < len(CRLF):
            self._break_sent += self._put(CRLF[self._break_sent:])
        self._break_sent = 0
        self.column = 0
