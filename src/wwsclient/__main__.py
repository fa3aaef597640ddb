"""
Entry Point - Module Execution

This module serves as the entry point when running the package as a module:
    python -m wwsclient

All command-line argument parsing and request handling lives in cli.py.
"""

import sys

from wwsclient.cli import main

if __name__ == "__main__":
    sys.exit(main())
