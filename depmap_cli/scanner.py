"""Directory scanner: discovers JavaScript/TypeScript sources under a root."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Union

from .config import IGNORED_DIRECTORIES, SUPPORTED_EXTENSIONS
from .errors import FolderNotFoundError, ScanError
from .models import ScannedFile

logger = logging.getLogger(__name__)

_SUPPORTED_LOWER = {ext.lower() for ext in SUPPORTED_EXTENSIONS}


def is_supported_file(file_name: Union[str, Path]) -> bool:
    """Return True when *file_name* has a supported extension (any case)."""
    return os.path.splitext(str(file_name))[1].lower() in _SUPPORTED_LOWER


def scan_directory(root_dir: Union[str, Path]) -> List[ScannedFile]:
    """Recursively collect supported source files below *root_dir*.

    Ignored directories are pruned with their whole subtree, symlinks are
    skipped, and the result is sorted by relative path.

    Raises:
        FolderNotFoundError: *root_dir* is missing or not a directory.
        ScanError: a directory could not be listed.
    """
    root = os.path.abspath(os.fspath(root_dir))
    if not os.path.isdir(root):
        reason = "is not a directory" if os.path.exists(root) else "does not exist"
        raise FolderNotFoundError(root, reason)

    files: List[ScannedFile] = []
    _walk(root, root, files)
    files.sort(key=lambda f: f.relative_path)
    logger.debug("Scanned %s: %d source file(s)", root, len(files))
    return files


def _walk(root: str, current: str, files: List[ScannedFile]) -> None:
    try:
        with os.scandir(current) as it:
            entries = list(it)
    except OSError as exc:
        raise ScanError(current, str(exc)) from exc

    for entry in entries:
        if entry.is_symlink():
            continue
        if entry.is_dir(follow_symlinks=False):
            if entry.name in IGNORED_DIRECTORIES:
                continue
            _walk(root, entry.path, files)
        elif entry.is_file(follow_symlinks=False):
            extension = os.path.splitext(entry.name)[1]
            if extension not in SUPPORTED_EXTENSIONS:
                continue
            rel = os.path.relpath(entry.path, root).replace(os.sep, "/")
            files.append(ScannedFile(
                root_dir=root,
                relative_path=f"./{rel}",
                extension=extension.lower(),
                name=entry.name,
            ))
