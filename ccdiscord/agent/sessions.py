"""Resumable Claude Code sessions for the current project."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ccdiscord.utils.helpers import get_claude_projects_path, project_dir_name


@dataclass(frozen=True)
class SessionInfo:
    session_id: str
    modified: datetime
    path: Path


def get_project_sessions_dir(cwd: str | Path | None = None, root: Path | None = None) -> Path:
    base = root or get_claude_projects_path()
    return base / project_dir_name(cwd or Path.cwd())


def list_sessions(cwd: str | Path | None = None, root: Path | None = None) -> list[SessionInfo]:
    """
    List transcripts for ``cwd``, most recently modified first.

    Only file names and modification times are read; the session id is the
    transcript's file stem.
    """
    directory = get_project_sessions_dir(cwd, root)
    if not directory.is_dir():
        return []
    sessions = [
        SessionInfo(
            session_id=path.stem,
            modified=datetime.fromtimestamp(path.stat().st_mtime),
            path=path,
        )
        for path in directory.glob("*.jsonl")
        if path.is_file()
    ]
    sessions.sort(key=lambda s: s.modified, reverse=True)
    return sessions
