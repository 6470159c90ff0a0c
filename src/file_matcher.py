# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Resolve comma separated file glob specifications against a workspace."""

import logging
import typing
from pathlib import Path, PurePath

from exceptions import InvalidGlobSpecError

logger = logging.getLogger(__name__)

# Version control metadata is never deployed, like the Ant default excludes of Jenkins file sets.
EXCLUDED_NAMES = frozenset((".git", ".svn", ".hg"))


def split_glob_spec(glob_spec: str) -> list[str]:
    """Split a glob specification into its patterns.

    Args:
        glob_spec: Comma separated glob patterns, e.g. "*.js,*.json".

    Raises:
        InvalidGlobSpecError: if no pattern is given or a pattern escapes the root directory.

    Returns:
        The stripped, non empty patterns in the given order.
    """
    patterns = [segment.strip() for segment in (glob_spec or "").split(",")]
    patterns = [pattern for pattern in patterns if pattern]
    if not patterns:
        raise InvalidGlobSpecError(f"No file pattern given in {glob_spec!r}.")
    for pattern in patterns:
        pure = PurePath(pattern)
        if pure.is_absolute() or pattern.startswith(("/", "\\")):
            raise InvalidGlobSpecError(f"File pattern {pattern!r} must be relative.")
        if ".." in pure.parts:
            raise InvalidGlobSpecError(f"File pattern {pattern!r} must not leave the workspace.")
    return patterns


def _is_excluded(root: Path, real_root: Path, path: Path) -> bool:
    """Check whether the path is version control metadata or leaves the root.

    Args:
        root: The directory the pattern was matched in.
        real_root: The root with its symbolic links resolved.
        path: The matched path.

    Returns:
        True if the path or any directory between root and path is excluded, or if the path
        is a symbolic link to a file outside of root.
    """
    if any(part in EXCLUDED_NAMES for part in path.relative_to(root).parts):
        return True
    if not path.resolve().is_relative_to(real_root):
        logger.warning("Skipping %s, it links to a file outside of %s", path, root)
        return True
    return False


def resolve(workspace_root: Path, glob_spec: str) -> list[Path]:
    """Resolve the glob specification to the files to deploy.

    Every pattern is matched independently from the workspace root. Patterns which match nothing
    are not an error. A file matched by several patterns is reported once, at the position of
    the first pattern that matched it.

    Args:
        workspace_root: The directory the patterns are relative to.
        glob_spec: Comma separated glob patterns, e.g. "*.py,*.config,requirements.txt".

    Returns:
        The matched files, ordered by pattern and then by path.
    """
    patterns = split_glob_spec(glob_spec)
    root = Path(workspace_root)
    real_root = root.resolve()
    matched: dict[Path, None] = {}
    for pattern in patterns:
        pattern_matches = sorted(
            path
            for path in root.glob(pattern)
            if path.is_file() and not _is_excluded(root, real_root, path)
        )
        logger.debug("Pattern %s matched %d file(s) in %s", pattern, len(pattern_matches), root)
        for path in pattern_matches:
            matched.setdefault(path, None)
    return list(matched)


def relative_paths(workspace_root: Path, files: typing.Iterable[Path]) -> list[str]:
    """Get the POSIX style names of the files relative to the workspace root.

    Args:
        workspace_root: The directory the files were resolved against.
        files: Files under the workspace root.

    Returns:
        The relative names, in the given order.
    """
    return [path.relative_to(workspace_root).as_posix() for path in files]
