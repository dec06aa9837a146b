"""Validation of caller-supplied paths relative to the root directory."""

from pathlib import Path


class UnsafePathError(ValueError):
    """Requested path would escape the root directory."""


def has_unsafe_segments(relative: str) -> bool:
    """Check a request path for traversal or doubled separators.

    Args:
        relative: Path as requested, relative to the root directory

    Returns:
        True if the path contains a ``..`` segment or an empty segment
    """
    normalized = relative.replace("\\", "/")
    if "//" in normalized:
        return True
    return ".." in normalized.split("/")


def resolve_under_root(root_dir: Path, relative: str) -> Path:
    """Resolve a request path to a file inside the root directory.

    The check on the textual path happens before anything touches the
    filesystem.

    Args:
        root_dir: Resolved root directory
        relative: Path as requested, relative to root_dir

    Returns:
        Resolved absolute path

    Raises:
        UnsafePathError: If the path is unsafe or resolves outside root_dir
    """
    if has_unsafe_segments(relative) or relative.startswith(("/", "\\")):
        raise UnsafePathError(f"Invalid path: {relative}")

    candidate = (root_dir / relative).resolve()
    if not candidate.is_relative_to(root_dir):
        raise UnsafePathError(f"Path escapes root directory: {relative}")
    return candidate
