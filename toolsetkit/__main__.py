"""
Entry point for running ToolsetKit CLI as a module.

Usage: python -m toolsetkit [command] [options]
"""

from toolsetkit.cli.parser import main

if __name__ == "__main__":
    main()
