"""
Entry point for running ToolsetKit CLI as a module.

Usage: python -m toolsetkit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
