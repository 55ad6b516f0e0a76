# =============================================================================
# MIME Module
# =============================================================================
# Streaming composition of multipart/mixed messages.
#
#   - LineWrapper: 76-column line breaking for base64 bodies
#   - PartEncoder: streaming base64 into a LineWrapper
#   - MessageBuilder: header block, parts and closing boundary
# =============================================================================

from streammail.mime.builder import BuilderState, MessageBuilder
from streammail.mime.encoder import PartEncoder
from streammail.mime.headers import encode_address, encode_filename, encode_word
from streammail.mime.wrap import MAX_LINE_LENGTH, LineWrapper

__all__ = [
    "MessageBuilder",
    "BuilderState",
    "PartEncoder",
    "LineWrapper",
    "MAX_LINE_LENGTH",
    "encode_word",
    "encode_address",
    "encode_filename",
]
