"""
Convenience entry point for running openslots directly.

Usage: python -m openslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
