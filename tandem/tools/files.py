"""Workspace-confined read and write tools."""

import logging
from pathlib import Path

from .definitions import ToolResult

logger = logging.getLogger(__name__)


def _resolve_inside(root: Path, relative: str) -> Path | None:
    """Resolve a path against the workspace root, or None if it escapes it."""
    root = root.resolve()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    return candidate


def read_file(root: Path, path: str, max_file_size: int) -> ToolResult:
    """
    Read a file (or list a directory) inside the workspace.

    Args:
        root: Workspace root the tool is confined to
        path: Path relative to the root
        max_file_size: Largest file, in bytes, that will be returned

    Returns:
        ToolResult with the file content or an error description
    """
    target = _resolve_inside(root, path)
    if target is None:
        logger.warning(f"Rejected read outside workspace: {path}")
        return ToolResult(content="Error: Path traversal detected. Access denied.", is_error=True)

    if not target.exists():
        return ToolResult(content=f"Error: File not found: {path}", is_error=True)

    try:
        if target.is_dir():
            entries = sorted(p.name for p in target.iterdir())
            listing = "\n".join(f"- {name}" for name in entries)
            return ToolResult(content=f"Directory contents of {path}:\n{listing}")

        size = target.stat().st_size
        if size > max_file_size:
            return ToolResult(
                content=f"Error: File too large ({size} bytes). Max allowed: {max_file_size} bytes",
                is_error=True,
            )

        return ToolResult(content=f"File: {path}\n\n{target.read_text(encoding='utf-8')}")
    except (OSError, UnicodeDecodeError) as e:
        return ToolResult(content=f"Error reading file: {e}", is_error=True)


def write_file(root: Path, path: str, content: str) -> ToolResult:
    """
    Write a file inside the workspace, creating parent directories.

    Args:
        root: Workspace root the tool is confined to
        path: Path relative to the root
        content: Text to write

    Returns:
        ToolResult describing what was written or why it failed
    """
    target = _resolve_inside(root, path)
    if target is None:
        logger.warning(f"Rejected write outside workspace: {path}")
        return ToolResult(
            content="Error: Path traversal detected. Can only write within project directory.",
            is_error=True,
        )

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        return ToolResult(content=f"Error writing file: {e}", is_error=True)

    logger.info(f"Wrote {len(content)} characters to {path}")
    return ToolResult(content=f"Successfully wrote {len(content)} characters to {path}")
