"""Allows running as: python -m mfdread"""

import sys

from mfdread.cli import main

if __name__ == "__main__":
    sys.exit(main())
