"""Text helpers shared by the relay and the agent adapter."""

from __future__ import annotations

import re
from pathlib import Path

DISCORD_MAX_MESSAGE_CHARS = 1900


def split_lines_into_chunks(text: str, max_chars: int = DISCORD_MAX_MESSAGE_CHARS) -> list[str]:
    """
    Pack whole lines into chunks of at most ``max_chars``.

    Lines are never split, so a single line longer than the limit becomes
    its own oversized chunk.
    """
    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        if current and len(current) + len(line) + 1 > max_chars:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line
    if current:
        chunks.append(current)
    return chunks


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def project_dir_name(cwd: str | Path) -> str:
    """Directory name Claude Code uses for a project's transcripts."""
    return re.sub(r"[^a-zA-Z0-9]", "-", str(cwd))


def get_claude_projects_path() -> Path:
    return Path.home() / ".claude" / "projects"
