# =============================================================================
# streammail Entry Point for `python -m streammail`
# =============================================================================
# Equivalent to running the 'streammail' command after installation.
# =============================================================================

import sys

from streammail.app import main

if __name__ == "__main__":
    sys.exit(main())
