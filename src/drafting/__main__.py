"""Command line entry point for the drafting engines."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
