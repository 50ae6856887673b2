"""Typer CLI for ClawDash."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from clawdash.core.settings import Settings, load_settings
from clawdash.utils.log import configure_logging
from clawdash.workspace import fs_ops
from clawdash.workspace.paths import WorkspacePathValidator

app = typer.Typer(help="ClawDash workspace CLI")
console = Console()
err_console = Console(stderr=True)


files_app = typer.Typer(help="Workspace file operations")
config_app = typer.Typer(help="Configuration")

AGENT_OPTION = typer.Option(None, "--agent", "-a", help="Agent workspace to use")


@app.callback()
def main() -> None:
    configure_logging(load_settings().log_level)


@files_app.command("resolve")
def files_resolve(path: str, agent: str | None = AGENT_OPTION) -> None:
    """Print the sandboxed path a user path resolves to."""
    settings, validator = _validator()
    result = validator.validate(path, agent or settings.default_agent)
    if not result.valid:
        _fail(result.error or "Invalid path")
    _echo(result.resolved_path or "")


@files_app.command("ls")
def files_ls(
    path: str = typer.Argument("", help="Directory inside the workspace"),
    agent: str | None = AGENT_OPTION,
) -> None:
    settings, validator = _validator()
    try:
        entries = fs_ops.list_directory(
            validator, agent or settings.default_agent, path
        )
    except fs_ops.WorkspaceAccessError as exc:
        _fail(str(exc))
    for entry in entries:
        suffix = "/" if entry.type == "dir" else ""
        _echo(f"{entry.size:>10} {entry.modified} {entry.name}{suffix}")


@files_app.command("preview")
def files_preview(path: str, agent: str | None = AGENT_OPTION) -> None:
    settings, validator = _validator()
    try:
        preview = fs_ops.read_preview(
            validator,
            agent or settings.default_agent,
            path,
            settings.preview_max_bytes,
            settings.preview_max_chars,
        )
    except fs_ops.WorkspaceAccessError as exc:
        _fail(str(exc))
    _echo(preview.content)
    if preview.truncated:
        err_console.print(
            f"[yellow]preview truncated to {settings.preview_max_chars} characters"
        )


@files_app.command("download")
def files_download(
    path: str,
    out: Path | None = typer.Option(None, "--out", "-o", help="Destination file"),
    agent: str | None = AGENT_OPTION,
) -> None:
    settings, validator = _validator()
    try:
        download = fs_ops.open_download(
            validator, agent or settings.default_agent, path, settings.download_max_bytes
        )
    except fs_ops.WorkspaceAccessError as exc:
        _fail(str(exc))
    out_path = out or Path.cwd() / download.file_name
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(download.read_bytes())
    console.print(f"saved {download.size} bytes to {out_path}", markup=False)


@config_app.command("show")
def config_show() -> None:
    settings = load_settings()
    console.print(f"workspace_root={settings.workspace_root}", markup=False)
    console.print(f"default_agent={settings.default_agent}", markup=False)
    console.print(f"preview_max_bytes={settings.preview_max_bytes}")
    console.print(f"preview_max_chars={settings.preview_max_chars}")
    console.print(f"download_max_bytes={settings.download_max_bytes}")
    console.print(f"log_level={settings.log_level}")


app.add_typer(files_app, name="files")
app.add_typer(config_app, name="config")


def _validator() -> tuple[Settings, WorkspacePathValidator]:
    settings = load_settings()
    return settings, WorkspacePathValidator(settings.workspace_root)


def _echo(text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _fail(message: str) -> NoReturn:
    err_console.print(f"error: {message}", markup=False, highlight=False)
    raise typer.Exit(code=1)
