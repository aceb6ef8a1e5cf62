"""Post-mortem collector: ``python -m debugctx script.py [args...]``."""

import sys

from debugctx.cli import main

if __name__ == "__main__":
    sys.exit(main())
