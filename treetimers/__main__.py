"""Allow running Tree Timers as a module: python -m treetimers."""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
