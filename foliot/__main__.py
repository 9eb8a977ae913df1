"""
Main entry point for Foliot when run as a module.

Allows running with: python -m foliot
"""

from foliot.cli.main import app

if __name__ == "__main__":
    app()
