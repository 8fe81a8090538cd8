#!/usr/bin/env python3
"""Tree Timers — entry point.

Run with:
    python main.py list
    python -m treetimers list
"""

import sys

from treetimers.cli import main


if __name__ == "__main__":
    sys.exit(main())
