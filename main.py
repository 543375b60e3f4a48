"""
Live sliding-window polynomial tracker.

    python main.py [--config settings.yaml] [--log-level DEBUG]

Same as ``dynamic-fit [options] view``.
"""

from __future__ import annotations

import sys

from dynamic_fit.cli import main

if __name__ == "__main__":
    sys.exit(main([*sys.argv[1:], "view"]))
