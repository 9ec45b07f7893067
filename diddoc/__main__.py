"""diddoc CLI entry point (python -m diddoc)"""

from __future__ import annotations

import sys

from diddoc.cli import main

if __name__ == "__main__":
    sys.exit(main())
