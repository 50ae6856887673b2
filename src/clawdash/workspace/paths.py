"""Workspace path validation for per-agent sandboxes.

Every file operation exposed by the dashboard goes through
:class:`WorkspacePathValidator` before touching the filesystem. The check is
purely syntactic: nothing here performs I/O or follows symlinks.
"""

from __future__ import annotations

import os
import posixpath
import re
from dataclasses import dataclass
from enum import Enum

_AGENT_ID_STRIP_RE = re.compile(r"[^A-Za-z0-9_-]")
_FILE_NAME_STRIP_RE = re.compile(r"[^A-Za-z0-9._-]")
_FILE_NAME_SPLIT_RE = re.compile(r"[/\\]")
_SEPARATORS_RE = re.compile(r"/+")
_TRAVERSAL_SEGMENTS = frozenset({".", ".."})


class Rejection(str, Enum):
    TRAVERSAL = "traversal"
    OUT_OF_SANDBOX = "out_of_sandbox"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    Rejection.TRAVERSAL: "traversal not allowed",
    Rejection.OUT_OF_SANDBOX: "access outside workspace not permitted",
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    resolved_path: str | None = None
    error: str | None = None
    rejection: Rejection | None = None

    def __post_init__(self) -> None:
        if self.valid:
            if self.resolved_path is None or self.error or self.rejection:
                raise ValueError("A valid result carries only a resolved path")
        elif self.rejection is None or self.error is None:
            raise ValueError("A rejected result needs a rejection and an error")
        elif self.resolved_path is not None:
            raise ValueError("A rejected result must not carry a path")

    @classmethod
    def ok(cls, resolved_path: str) -> ValidationResult:
        return cls(valid=True, resolved_path=resolved_path)

    @classmethod
    def reject(cls, rejection: Rejection) -> ValidationResult:
        return cls(valid=False, error=rejection.message, rejection=rejection)


def sanitize_agent_id(agent_id: str | None) -> str:
    """Drop every character outside ``[A-Za-z0-9_-]``."""
    return _AGENT_ID_STRIP_RE.sub("", agent_id or "")


def sanitize_file_name(name: str) -> str:
    """Keep the last path component, restricted to ``[A-Za-z0-9._-]``."""
    last = _FILE_NAME_SPLIT_RE.split(name)[-1]
    return _FILE_NAME_STRIP_RE.sub("", last)


def is_within(path: str, base: str) -> bool:
    """Separator-aware prefix check: ``/ws/code`` does not contain ``/ws/codex``."""
    if base == "/":
        return path.startswith("/")
    return path == base or path.startswith(base + "/")


def _normalize(user_path: str) -> str:
    # Collapse separators only; "." and ".." stay visible to the segment check.
    path = _SEPARATORS_RE.sub("/", user_path)
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def _has_traversal(relative: str) -> bool:
    return any(segment in _TRAVERSAL_SEGMENTS for segment in relative.split("/"))


class WorkspacePathValidator:
    """Confine caller-supplied paths to ``<workspace_root>/<agent id>``."""

    def __init__(self, workspace_root: str | os.PathLike[str]) -> None:
        root = os.path.expanduser(os.fspath(workspace_root))
        if not root:
            raise ValueError("Workspace root must not be empty")
        root = posixpath.normpath(os.path.abspath(root))
        # POSIX keeps a leading "//" as implementation-defined; fold it.
        if root.startswith("//"):
            root = "/" + root.lstrip("/")
        self._root = root

    @property
    def workspace_root(self) -> str:
        return self._root

    def expected_base(self, agent_id: str) -> str:
        return posixpath.normpath(
            posixpath.join(self._root, sanitize_agent_id(agent_id))
        )

    def validate(self, user_path: str, agent_id: str) -> ValidationResult:
        """Resolve ``user_path`` inside the agent's workspace.

        Leading-slash paths are taken relative to the workspace, and a path
        that already names the workspace base has that prefix stripped. Any
        ``.`` or ``..`` segment is rejected, even when the net location would
        stay inside the sandbox.
        """
        if not isinstance(user_path, str) or not isinstance(agent_id, str):
            raise TypeError("user_path and agent_id must be strings")

        base = self.expected_base(agent_id)
        path = _normalize(user_path)

        if path.startswith("/"):
            if is_within(path, base):
                relative = path[len(base) :]
            elif path.startswith(base):
                # Textual prefix only, e.g. a sibling "/ws/codesuffix".
                return ValidationResult.reject(Rejection.OUT_OF_SANDBOX)
            else:
                relative = path
            relative = relative.lstrip("/")
        else:
            relative = path

        if relative and _has_traversal(relative):
            return ValidationResult.reject(Rejection.TRAVERSAL)

        resolved = posixpath.join(base, relative) if relative else base
        if not is_within(resolved, base):
            return ValidationResult.reject(Rejection.OUT_OF_SANDBOX)
        return ValidationResult.ok(resolved)


def validate_workspace_path(
    user_path: str, agent_id: str, workspace_root: str | os.PathLike[str]
) -> ValidationResult:
    return WorkspacePathValidator(workspace_root).validate(user_path, agent_id)
