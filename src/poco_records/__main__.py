"""Entry point for running poco_records as a module.

This allows the package to be executed as:
    python -m poco_records
"""

from poco_records.cli.main import cli

if __name__ == "__main__":
    cli()
