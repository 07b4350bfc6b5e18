"""
Entry point for running packagerctl as a Python module.

This module enables the package to be executed directly via:
    python -m packagerctl <command>
"""

from .cli import main

if __name__ == "__main__":
    main()
