# =============================================================================
# streammail Core Module
# =============================================================================
# Plain dataclasses with no external dependencies:
#   - Account: a sending account (SMTP server and login)
#   - Envelope: addressing and subject of one message
# =============================================================================

from streammail.core.account import Account, AUTH_MECHANISMS, SECURITY_MODES
from streammail.core.envelope import Envelope

__all__ = [
    "Account",
    "Envelope",
    "AUTH_MECHANISMS",
    "SECURITY_MODES",
]
