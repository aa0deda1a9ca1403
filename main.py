#!/usr/bin/env python3
"""
Main entry point for orgfeed.

    python main.py compile [FILES...] [--show-rules]
    python main.py tag ENTRIES_FILE [FILES...]
    python main.py export-opml [FILES...] [-o OUT]
    python main.py import-opml OPML_FILE [-o OUT]

See --help for available options.
"""

import sys

from orgfeed.cli import cli


def main() -> int:
    """Run the click CLI; click handles its own exit codes."""
    cli()
    return 0


if __name__ == "__main__":
    sys.exit(main())
