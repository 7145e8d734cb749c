"""CLI module for ccdiscord."""
