"""
ccdiscord - relay a Discord thread to a long-running Claude Code session.
"""

__version__ = "0.1.0"
__logo__ = "🤖"
