"""Specifier resolution against the project root, plus extension guessing.

Everything here is pure string manipulation on ``/``-separated node ids;
nothing touches the file system. Whether a resolved path exists is decided by
the graph builder against the set of scanned nodes.
"""

from __future__ import annotations

import os
import posixpath
from typing import Dict, List, Tuple

from .errors import ImporterPathError, RootEscapeError

# Script extension -> (itself, its typed sibling)
EXTENSION_SIBLINGS: Dict[str, Tuple[str, str]] = {
    ".js": (".js", ".ts"),
    ".jsx": (".jsx", ".tsx"),
    ".mjs": (".mjs", ".mts"),
    ".cjs": (".cjs", ".cts"),
}

INDEX_FILES: Tuple[str, ...] = ("index.ts", "index.js")
FILE_SUFFIXES: Tuple[str, ...] = (".ts", ".js")


def _separators() -> Tuple[str, ...]:
    return ("/", os.sep) if os.sep != "/" else ("/",)


def is_relative_specifier(specifier: str) -> bool:
    """True for ``./x``, ``../x`` and root-relative ``/x`` specifiers."""
    return specifier.startswith(".") or specifier.startswith(_separators())


def is_directory_specifier(specifier: str) -> bool:
    """True when the specifier can only name a directory (``./lib/``, ``..``)."""
    if specifier.endswith(_separators()):
        return True
    last = specifier.replace(os.sep, "/").rsplit("/", 1)[-1]
    return last in (".", "..")


def to_node_id(path: str) -> str:
    """Normalize a root-relative path into ``./``-prefixed node-id form."""
    normalized = posixpath.normpath(path.replace(os.sep, "/"))
    return "./" if normalized == "." else f"./{normalized}"


def check_importer_path(importer: str) -> None:
    """Validate an importing file's path; raise ImporterPathError if invalid."""
    if posixpath.isabs(importer) or os.path.isabs(importer):
        raise ImporterPathError(
            f'The file path "{importer}" is absolute. '
            "All paths must be normalized and start with ./"
        )
    if not importer.startswith("./") or to_node_id(importer) != importer:
        raise ImporterPathError(
            f'The file path "{importer}" is not normalized. '
            "All paths must be normalized and start with ./"
        )
    if ".." in importer.split("/"):
        raise ImporterPathError(
            f'The file path "{importer}" is not fully specified. '
            "The file path cannot contain .. segments."
        )


def resolve_import_path(specifier: str, importer: str, root_dir: str = "") -> str:
    """Resolve *specifier* written in *importer* to a root-relative node id.

    External package specifiers (``react``, ``@scope/pkg``) are returned
    unchanged. A leading ``/`` means relative to the project root.

    Raises:
        ImporterPathError: *importer* is absolute, not normalized, or has ``..``.
        RootEscapeError: the specifier resolves outside the project root.
    """
    check_importer_path(importer)

    if not is_relative_specifier(specifier):
        return specifier

    spec = specifier.replace(os.sep, "/")
    if spec.startswith("/"):
        joined = spec.lstrip("/") or "."
    else:
        joined = posixpath.join(posixpath.dirname(importer), spec)

    normalized = posixpath.normpath(joined)
    if normalized == ".." or normalized.startswith("../"):
        raise RootEscapeError(specifier, importer, root_dir)
    return to_node_id(normalized)


def guess_possible_extensions(import_path: str) -> List[str]:
    """Candidate node ids to probe for *import_path*, most likely first.

    ``./a.js`` -> ``./a.js``, ``./a.ts``; ``./dir/`` -> ``./dir/index.ts``,
    ``./dir/index.js``; ``./a`` -> ``./a.ts``, ``./a.js``, ``./a/index.ts``,
    ``./a/index.js``.
    """
    path = import_path.replace(os.sep, "/")

    if path.endswith("/"):
        return [path + index for index in INDEX_FILES]

    stem, ext = posixpath.splitext(path)
    siblings = EXTENSION_SIBLINGS.get(ext)
    if siblings is not None:
        return [stem + sibling for sibling in siblings]

    return [path + suffix for suffix in FILE_SUFFIXES] + [
        f"{path}/{index}" for index in INDEX_FILES
    ]
