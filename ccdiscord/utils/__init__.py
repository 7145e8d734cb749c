"""Utility functions for ccdiscord."""

from ccdiscord.utils.helpers import split_lines_into_chunks, truncate

__all__ = ["split_lines_into_chunks", "truncate"]
