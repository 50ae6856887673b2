"""Settings loader for ClawDash."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


@dataclass(frozen=True)
class Settings:
    workspace_root: Path
    default_agent: str
    preview_max_bytes: int
    preview_max_chars: int
    download_max_bytes: int
    log_level: str


def load_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    workspace_root = Path(
        os.environ.get("CLAWDASH_WORKSPACE_ROOT", "~/.openclaw/workspaces")
    ).expanduser()
    default_agent = os.environ.get("CLAWDASH_DEFAULT_AGENT", "code")
    preview_max_bytes = _parse_int(
        os.environ.get("CLAWDASH_PREVIEW_MAX_BYTES", str(1024 * 1024)),
        "CLAWDASH_PREVIEW_MAX_BYTES",
    )
    preview_max_chars = _parse_int(
        os.environ.get("CLAWDASH_PREVIEW_MAX_CHARS", "50000"),
        "CLAWDASH_PREVIEW_MAX_CHARS",
    )
    download_max_bytes = _parse_int(
        os.environ.get("CLAWDASH_DOWNLOAD_MAX_BYTES", str(50 * 1024 * 1024)),
        "CLAWDASH_DOWNLOAD_MAX_BYTES",
    )
    log_level = _parse_log_level(
        os.environ.get("CLAWDASH_LOG_LEVEL", "WARNING"), "CLAWDASH_LOG_LEVEL"
    )

    return Settings(
        workspace_root=workspace_root,
        default_agent=default_agent,
        preview_max_bytes=preview_max_bytes,
        preview_max_chars=preview_max_chars,
        download_max_bytes=download_max_bytes,
        log_level=log_level,
    )


def _parse_int(value: str, name: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {name}: {value}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive: {value}")
    return parsed


def _parse_log_level(value: str, name: str) -> str:
    normalized = value.strip().upper()
    if normalized not in logging.getLevelNamesMapping():
        raise ValueError(f"Invalid log level for {name}: {value}")
    return normalized
