"""Tests for the async workspace file handlers."""

from __future__ import annotations

from pathlib import Path

import pytest

from clawdash.api.handlers import NO_CACHE_HEADERS, WorkspaceFileHandlers
from clawdash.core.settings import Settings
from clawdash.workspace.paths import WorkspacePathValidator


@pytest.fixture
def handlers(tmp_path) -> WorkspaceFileHandlers:
    agent = tmp_path / "code"
    (agent / "docs").mkdir(parents=True)
    (agent / "docs" / "plan.md").write_text("# Plan", encoding="utf-8")
    (agent / "data.bin").write_bytes(b"\x00\x01\x02")
    return WorkspaceFileHandlers(WorkspacePathValidator(tmp_path))


@pytest.mark.asyncio
async def test_list_files_defaults_to_agent_workspace(handlers) -> None:
    response = await handlers.list_files()
    assert response.status == 200
    assert response.headers == NO_CACHE_HEADERS
    names = [entry["name"] for entry in response.body["files"]]
    assert names == ["data.bin", "docs"]


@pytest.mark.asyncio
async def test_list_files_rejects_traversal(handlers) -> None:
    response = await handlers.list_files(agent="code", path="docs/../..")
    assert response.status == 400
    assert response.body == {"error": "traversal not allowed"}


@pytest.mark.asyncio
async def test_list_files_missing_directory(handlers) -> None:
    response = await handlers.list_files(path="nowhere")
    assert response.status == 404


@pytest.mark.asyncio
async def test_preview_file(handlers) -> None:
    response = await handlers.preview_file(path="/docs/plan.md")
    assert response.status == 200
    assert response.body["name"] == "plan.md"
    assert response.body["content"] == "# Plan"
    assert response.body["truncated"] is False


@pytest.mark.asyncio
async def test_preview_file_requires_path(handlers) -> None:
    response = await handlers.preview_file(path="")
    assert response.status == 400
    assert response.body == {"error": "File path is required"}


@pytest.mark.asyncio
async def test_preview_file_sibling_prefix_rejected(handlers, tmp_path) -> None:
    response = await handlers.preview_file(path=f"{tmp_path}/codesuffix/secret")
    assert response.status == 400
    assert response.body == {"error": "access outside workspace not permitted"}
    assert str(tmp_path) not in response.body["error"]


@pytest.mark.asyncio
async def test_preview_file_unreadable_is_server_error(handlers, monkeypatch) -> None:
    def _boom(self, *args, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(Path, "read_text", _boom)
    response = await handlers.preview_file(path="docs/plan.md")
    assert response.status == 500
    assert response.body == {"error": "Failed to read file"}


@pytest.mark.asyncio
async def test_download_file(handlers) -> None:
    response = await handlers.download_file(path="data.bin")
    assert response.status == 200
    assert response.body == b"\x00\x01\x02"
    assert response.headers["Content-Disposition"] == 'attachment; filename="data.bin"'
    assert response.headers["Content-Type"] == "application/octet-stream"
    assert response.headers["Content-Length"] == "3"


@pytest.mark.asyncio
async def test_download_file_invalid_action(handlers) -> None:
    response = await handlers.download_file(path="data.bin", action="delete")
    assert response.status == 400
    assert response.body == {"error": "Invalid action"}


@pytest.mark.asyncio
async def test_download_file_rejects_dot_segment(handlers) -> None:
    response = await handlers.download_file(path="./data.bin")
    assert response.status == 400
    assert response.body == {"error": "traversal not allowed"}


@pytest.mark.asyncio
async def test_handlers_from_settings(tmp_path) -> None:
    (tmp_path / "ops").mkdir()
    (tmp_path / "ops" / "big.txt").write_text("abcdef", encoding="utf-8")
    settings = Settings(
        workspace_root=tmp_path,
        default_agent="ops",
        preview_max_bytes=4,
        preview_max_chars=2,
        download_max_bytes=4,
        log_level="WARNING",
    )
    handlers = WorkspaceFileHandlers.from_settings(settings)

    preview = await handlers.preview_file(path="big.txt")
    assert preview.status == 400
    assert preview.body == {"error": "File too large to preview (max 4 bytes)"}

    download = await handlers.download_file(path="big.txt")
    assert download.status == 400
    assert download.body == {"error": "File too large (max 4 bytes)"}
