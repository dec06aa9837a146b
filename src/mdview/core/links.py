"""Link resolution for rendered documents.

Relative link and image targets in Markdown are rewritten to server routes:
Markdown documents to ``/md/...`` and everything else to ``/files/...``.
"""

import posixpath
import re
from pathlib import Path, PurePosixPath

MARKDOWN_EXTENSIONS = (".md", ".markdown")

MARKDOWN_ROUTE = "/md/"
FILES_ROUTE = "/files/"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def is_markdown_path(path: str | Path) -> bool:
    """Check whether a path has a Markdown extension."""
    return str(path).lower().endswith(MARKDOWN_EXTENSIONS)


def is_external(target: str) -> bool:
    """Check whether a link target must be left as written.

    Covers scheme-qualified URLs, protocol-relative URLs, server-rooted paths
    and in-page anchors.
    """
    if target.startswith(("/", "#")):
        return True
    return _SCHEME_RE.match(target) is not None


def rewrite_link(target: str, source_path: Path, root_dir: Path | None = None) -> str:
    """Map a link target found in a document to a server route.

    Args:
        target: Link or image target as written in the Markdown source
        source_path: Path of the document containing the link
        root_dir: Directory routes are resolved against (default: the
                  document's own directory)

    Returns:
        Route for relative targets, the unchanged target otherwise
    """
    if not target or is_external(target):
        return target

    route = _route_target(target, source_path, root_dir)
    prefix = MARKDOWN_ROUTE if is_markdown_path(_path_part(target)) else FILES_ROUTE
    return prefix + route


def _route_target(target: str, source_path: Path, root_dir: Path | None) -> str:
    """Express a relative target relative to the root directory.

    For documents directly in the root directory the target is kept verbatim.
    """
    if root_dir is None:
        return target

    try:
        subdir = source_path.parent.relative_to(root_dir)
    except ValueError:
        return target

    if subdir == Path("."):
        return target

    path, suffix = _split_suffix(target)
    joined = posixpath.normpath(posixpath.join(PurePosixPath(subdir).as_posix(), path))
    return joined + suffix


def _path_part(target: str) -> str:
    return _split_suffix(target)[0]


def _split_suffix(target: str) -> tuple[str, str]:
    """Split a target into its path and its ``?query``/``#fragment`` suffix."""
    for index, char in enumerate(target):
        if char in "?#":
            return target[:index], target[index:]
    return target, ""
