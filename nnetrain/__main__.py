"""
__main__ provides the `python -m nnetrain` entrypoint.
"""
from __future__ import annotations

import sys

from nnetrain.cli import main

if __name__ == "__main__":
    sys.exit(main())
