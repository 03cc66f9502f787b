"""
Path guard for agent file access.

Decides whether a path an agent wants to read or write stays inside the
project root. The check is pure string reasoning over the declared root:
nothing is looked up on disk and symlinks are not followed. That keeps it
cheap and deterministic, and means it is an advisory gate rather than a
sandbox.

Rejection rules (any one rejects):
    1. Absolute path outside the project root, unless under /tmp
    2. A path with ".." segments that resolves outside the project root
    3. A path containing a sensitive fragment (see SENSITIVE_PATH_PATTERNS),
       checked even when 1 and 2 pass

Containment is decided per path segment, so "/srv/app2" is not inside
"/srv/app".
"""

import logging

logger = logging.getLogger(__name__)

SCRATCH_ROOT = "/tmp"

SENSITIVE_PATH_PATTERNS: tuple[str, ...] = (
    "/etc/",
    "/var/log/",
    ".ssh/",
    ".aws/",
    ".env",
    "credentials",
    "secrets",
    ".git/config",
)


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def _segments(path: str) -> list[str]:
    return [part for part in path.split("/") if part and part != "."]


def _is_within(path_parts: list[str], root_parts: list[str]) -> bool:
    return path_parts[: len(root_parts)] == root_parts


def resolve_path(base: str, relative: str) -> str:
    """
    Resolve a path against a base directory without touching the disk.

    ".." pops a segment (never above "/"), "." is ignored. An absolute
    path is resolved from "/" instead of base.

    Examples:
        resolve_path("/home/user/project", "src/../lib/a.py")
            -> "/home/user/project/lib/a.py"
        resolve_path("/home/user/project", "../../etc/passwd")
            -> "/home/etc/passwd"
    """
    base = _normalize(base)
    relative = _normalize(relative)

    parts = [] if relative.startswith("/") else _segments(base)
    for part in relative.split("/"):
        if part == "..":
            if parts:
                parts.pop()
        elif part and part != ".":
            parts.append(part)

    return "/" + "/".join(parts)


def is_path_safe(path: str, project_root: str) -> bool:
    """
    Check whether an agent may access path.

    Args:
        path: Path as given by the agent, relative to project_root or absolute
        project_root: Directory the agent is confined to

    Returns:
        True only if no rejection rule fires
    """
    normalized_path = _normalize(path)
    root_parts = _segments(_normalize(project_root))
    scratch_parts = _segments(SCRATCH_ROOT)
    is_absolute = normalized_path.startswith("/")

    if is_absolute:
        path_parts = _segments(normalized_path)
        if not _is_within(path_parts, root_parts) and not _is_within(path_parts, scratch_parts):
            logger.debug("absolute path outside project root: %s", path)
            return False

    if ".." in normalized_path.split("/"):
        resolved_parts = _segments(resolve_path(project_root, normalized_path))
        contained = _is_within(resolved_parts, root_parts) or (
            is_absolute and _is_within(resolved_parts, scratch_parts)
        )
        if not contained:
            logger.debug("path traversal out of project root: %s", path)
            return False

    for pattern in SENSITIVE_PATH_PATTERNS:
        if pattern in normalized_path:
            logger.debug("sensitive path fragment %r in %s", pattern, path)
            return False

    return True
