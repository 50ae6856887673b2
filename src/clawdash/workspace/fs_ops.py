"""Filesystem operations gated by the workspace path validator."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from clawdash.utils.time import iso_from_ts
from clawdash.workspace.paths import WorkspacePathValidator, sanitize_file_name

logger = logging.getLogger(__name__)

PREVIEW_MAX_BYTES = 1024 * 1024
PREVIEW_MAX_CHARS = 50_000
DOWNLOAD_MAX_BYTES = 50 * 1024 * 1024

EntryType = Literal["dir", "file"]


class WorkspaceAccessError(ValueError):
    status = 400


class WorkspaceNotFound(WorkspaceAccessError):
    status = 404


@dataclass(frozen=True)
class FileEntry:
    name: str
    type: EntryType
    size: int
    modified: str


@dataclass(frozen=True)
class FilePreview:
    name: str
    content: str
    size: int
    modified: str
    truncated: bool


@dataclass(frozen=True)
class FileDownload:
    file_name: str
    path: Path
    size: int

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


def resolve_path(
    validator: WorkspacePathValidator, agent_id: str, user_path: str
) -> Path:
    result = validator.validate(user_path, agent_id)
    if not result.valid or result.resolved_path is None:
        logger.warning(
            "Rejected workspace path for agent %r: %r (%s)",
            agent_id,
            user_path,
            result.error,
        )
        raise WorkspaceAccessError(result.error or "Invalid path")
    return Path(result.resolved_path)


def list_directory(
    validator: WorkspacePathValidator, agent_id: str, user_path: str = ""
) -> list[FileEntry]:
    path = resolve_path(validator, agent_id, user_path)
    info = _stat(path, "Path not found")
    if not stat.S_ISDIR(info.st_mode):
        raise WorkspaceAccessError("Path is not a directory")
    entries = [_entry(child) for child in path.iterdir()]
    return sorted(entries, key=lambda entry: entry.name.lower())


def read_preview(
    validator: WorkspacePathValidator,
    agent_id: str,
    user_path: str,
    max_bytes: int = PREVIEW_MAX_BYTES,
    max_chars: int = PREVIEW_MAX_CHARS,
) -> FilePreview:
    path = resolve_path(validator, agent_id, user_path)
    info = _stat(path, "File not found")
    if stat.S_ISDIR(info.st_mode):
        raise WorkspaceAccessError("Cannot preview directory")
    if info.st_size > max_bytes:
        raise WorkspaceAccessError(
            f"File too large to preview (max {_format_limit(max_bytes)})"
        )
    content = path.read_text(encoding="utf-8", errors="replace")
    return FilePreview(
        name=path.name,
        content=content[:max_chars],
        size=info.st_size,
        modified=iso_from_ts(info.st_mtime),
        truncated=len(content) > max_chars,
    )


def open_download(
    validator: WorkspacePathValidator,
    agent_id: str,
    user_path: str,
    max_bytes: int = DOWNLOAD_MAX_BYTES,
) -> FileDownload:
    path = resolve_path(validator, agent_id, user_path)
    info = _stat(path, "File not found")
    if not stat.S_ISREG(info.st_mode):
        raise WorkspaceAccessError("Path is not a file")
    if info.st_size > max_bytes:
        raise WorkspaceAccessError(f"File too large (max {_format_limit(max_bytes)})")
    return FileDownload(
        file_name=sanitize_file_name(path.name) or "file",
        path=path,
        size=info.st_size,
    )


def _stat(path: Path, missing_message: str) -> os.stat_result:
    try:
        return path.stat()
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise WorkspaceNotFound(missing_message) from exc
    except ValueError as exc:
        # e.g. embedded NUL byte
        raise WorkspaceAccessError("Invalid path") from exc


def _entry(child: Path) -> FileEntry:
    try:
        info = child.stat()
    except OSError:
        # dangling symlink
        info = child.lstat()
    is_dir = stat.S_ISDIR(info.st_mode)
    return FileEntry(
        name=child.name,
        type="dir" if is_dir else "file",
        size=0 if is_dir else info.st_size,
        modified=iso_from_ts(info.st_mtime),
    )


def _format_limit(size: int) -> str:
    mib = 1024 * 1024
    if size % mib == 0:
        return f"{size // mib}MB"
    return f"{size} bytes"
