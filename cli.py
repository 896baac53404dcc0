"""CLI entry point - run ``python cli.py <command>`` from a source checkout

This file imports and runs the main CLI from the cli package.
"""

from cli.main import main

if __name__ == "__main__":
    main()
