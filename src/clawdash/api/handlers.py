"""Async handlers behind the dashboard's workspace file routes.

Each handler validates through :mod:`clawdash.workspace.fs_ops`, runs the
blocking filesystem work in a worker thread and answers with a
:class:`HandlerResponse` that a web framework can serialize as-is.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from clawdash.core.settings import Settings
from clawdash.workspace import fs_ops
from clawdash.workspace.paths import WorkspacePathValidator

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@dataclass(frozen=True)
class HandlerResponse:
    status: int
    body: dict[str, Any] | bytes
    headers: dict[str, str] = field(default_factory=dict)


class WorkspaceFileHandlers:
    def __init__(
        self,
        validator: WorkspacePathValidator,
        default_agent: str = "code",
        preview_max_bytes: int = fs_ops.PREVIEW_MAX_BYTES,
        preview_max_chars: int = fs_ops.PREVIEW_MAX_CHARS,
        download_max_bytes: int = fs_ops.DOWNLOAD_MAX_BYTES,
    ) -> None:
        self._validator = validator
        self._default_agent = default_agent
        self._preview_max_bytes = preview_max_bytes
        self._preview_max_chars = preview_max_chars
        self._download_max_bytes = download_max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkspaceFileHandlers:
        return cls(
            WorkspacePathValidator(settings.workspace_root),
            default_agent=settings.default_agent,
            preview_max_bytes=settings.preview_max_bytes,
            preview_max_chars=settings.preview_max_chars,
            download_max_bytes=settings.download_max_bytes,
        )

    async def list_files(
        self, agent: str | None = None, path: str | None = None
    ) -> HandlerResponse:
        agent_id = agent or self._default_agent
        try:
            entries = await asyncio.to_thread(
                fs_ops.list_directory, self._validator, agent_id, path or ""
            )
        except fs_ops.WorkspaceAccessError as exc:
            return _error(exc.status, str(exc))
        except OSError:
            logger.exception("Error fetching directory for agent %r", agent_id)
            return _error(500, "Failed to fetch directory")
        return HandlerResponse(
            status=200,
            body={"files": [asdict(entry) for entry in entries]},
            headers=dict(NO_CACHE_HEADERS),
        )

    async def preview_file(
        self, agent: str | None = None, path: str | None = None
    ) -> HandlerResponse:
        if not path:
            return _error(400, "File path is required")
        agent_id = agent or self._default_agent
        try:
            preview = await asyncio.to_thread(
                fs_ops.read_preview,
                self._validator,
                agent_id,
                path,
                self._preview_max_bytes,
                self._preview_max_chars,
            )
        except fs_ops.WorkspaceAccessError as exc:
            return _error(exc.status, str(exc))
        except OSError:
            logger.exception("Error reading file for agent %r", agent_id)
            return _error(500, "Failed to read file")
        return HandlerResponse(
            status=200, body=asdict(preview), headers=dict(NO_CACHE_HEADERS)
        )

    async def download_file(
        self,
        agent: str | None = None,
        path: str | None = None,
        action: str | None = "download",
    ) -> HandlerResponse:
        if action != "download":
            return _error(400, "Invalid action")
        if not path:
            return _error(400, "File path is required")
        agent_id = agent or self._default_agent
        try:
            download, data = await asyncio.to_thread(self._read_download, agent_id, path)
        except fs_ops.WorkspaceAccessError as exc:
            return _error(exc.status, str(exc))
        except OSError:
            logger.exception("Error downloading file for agent %r", agent_id)
            return _error(500, "Failed to download file")
        return HandlerResponse(
            status=200,
            body=data,
            headers={
                "Content-Disposition": f'attachment; filename="{download.file_name}"',
                "Content-Type": "application/octet-stream",
                "Content-Length": str(len(data)),
            },
        )

    def _read_download(
        self, agent_id: str, path: str
    ) -> tuple[fs_ops.FileDownload, bytes]:
        download = fs_ops.open_download(
            self._validator, agent_id, path, self._download_max_bytes
        )
        return download, download.read_bytes()


def _error(status: int, message: str) -> HandlerResponse:
    return HandlerResponse(status=status, body={"error": message})
