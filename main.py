"""Development entrypoint for the Warsim command line."""

from __future__ import annotations

import sys

from warsim.cli import main

if __name__ == "__main__":
    sys.exit(main())
