"""
Entry point for running cloudsync as a module.

Usage:
    python -m cloudsync --help
    python -m cloudsync upload
    python -m cloudsync download --output snapshot.json
"""

from cloudsync.cli import cli

if __name__ == "__main__":
    cli()
