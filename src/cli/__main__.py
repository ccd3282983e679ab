"""Run docshift with ``python -m cli`` when the console script is unavailable."""

from __future__ import annotations

import sys

from cli.main import main


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
