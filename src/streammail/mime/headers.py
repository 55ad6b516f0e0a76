# =============================================================================
# Header Encoding
# =============================================================================
# Helpers that turn arbitrary Unicode header values into well-formed ASCII
# header field bodies, using RFC 2047 encoded words (utf-8, B encoding).
#
# Values that are already plain printable ASCII pass through untouched, so
# "Subject: Test" stays readable on the wire.
# =============================================================================

import re
from email.charset import BASE64, Charset
from email.header import Header
from email.utils import formataddr, parseaddr

# utf-8 with B encoding for headers (the stdlib default picks the shorter of
# Q and B per value)
UTF8_B = Charset("utf-8")
UTF8_B.header_encoding = BASE64

# Fold target for header lines. Keeps each encoded word under the RFC 2047
# limit of 75 characters.
MAX_HEADER_LINE = 76

# RFC 2045 token: printable ASCII minus space and tspecials
_TOKEN_RE = re.compile(r"^[A-Za-z0-9!#$%&'*+\-.^_`{|}~]+$")


def is_plain(value: str) -> bool:
    """
    Check if a header value can be written without encoding.

    Plain means printable ASCII (tabs allowed), no CR/LF, and nothing that
    a decoder could mistake for an encoded word.
    """
    if "=?" in value:
        return False
    return all(c == "\t" or " " <= c <= "~" for c in value)


def encode_word(value: str, header_name: str | None = None) -> str:
    """
    Encode a header value as utf-8 encoded words if it needs it.

    Long values are folded with CRLF + space continuation lines.

    Args:
        value: Unicode header value.
        header_name: Field name, so the first line's length accounts for it.

    Returns:
        ASCII header field body.

    Example:
        >>> encode_word("Grüße")
        '=?utf-8?b?R3LDvMOfZQ==?='
    """
    if is_plain(value):
        if len(header_name or "") + len(value) + 2 <= MAX_HEADER_LINE:
            return value
        # Long ASCII: fold at whitespace, no encoding
        header = Header(value, header_name=header_name)
    else:
        header = Header(value, charset=UTF8_B, header_name=header_name)
    return header.encode(linesep="\r\n", maxlinelen=MAX_HEADER_LINE)


def encode_address(addr: str) -> str:
    """
    Encode one address for a From/To/Cc/Bcc header.

    The display name becomes an encoded word when it isn't ASCII; the
    address itself is left alone. Anything that doesn't parse as an
    address is encoded as a whole.
    """
    name, address = parseaddr(addr)
    if not address:
        return encode_word(addr)
    if not name:
        return address if is_plain(address) else encode_word(addr)
    try:
        return formataddr((name, address), charset=UTF8_B)
    except UnicodeEncodeError:
        # Non-ASCII in the address itself
        return encode_word(addr)


def encode_address_list(addrs: list[str]) -> str:
    """Encode a list of addresses as a comma separated header value."""
    return ", ".join(encode_address(a) for a in addrs)


def encode_filename(name: str) -> str:
    """
    Encode an attachment filename for a Content-Disposition parameter.

    Token-safe names are written bare, other ASCII names as a quoted string,
    and anything else as a quoted utf-8 encoded word.

    Example:
        >>> encode_filename("report.pdf")
        'report.pdf'
        >>> encode_filename("my report.pdf")
        '"my report.pdf"'
    """
    if _TOKEN_RE.match(name):
        return name
    if is_plain(name):
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return f'"{UTF8_B.header_encode(name)}"'


def canonical_key(key: str) -> str:
    """
    Canonical form of a MIME header name ("content-type" -> "Content-Type").
    """
    return "-".join(part.capitalize() for part in key.split("-"))
