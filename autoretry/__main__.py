"""Main entry point when executing autoretry as a package.

This allows running the developer CLI using python -m autoretry.
"""

from autoretry.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
