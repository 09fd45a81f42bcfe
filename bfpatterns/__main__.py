#!/usr/bin/env python3
"""Entry point for ``python -m bfpatterns`` and the ``bfpatterns`` script."""

import sys

from bfpatterns.main import main

if __name__ == "__main__":
    sys.exit(main())
