"""
Entry point for running ccdiscord as a module: python -m ccdiscord
"""

from ccdiscord.cli.commands import app

if __name__ == "__main__":
    app()
