"""Exception hierarchy for the dependency-mapping pipeline.

Every error carries a stable ``code`` so outer layers (CLI, HTTP endpoint)
can report it without string matching.
"""

from __future__ import annotations

from typing import Tuple


class DepmapError(Exception):
    """Base class for all depmap errors."""

    code = "DEPMAP_ERROR"


# ===================================================================
# Scanning
# ===================================================================

class ScanError(DepmapError):
    """The scan root (or a directory below it) could not be read."""

    code = "SCAN_FAILED"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to scan directory '{path}': {reason}")


class FolderNotFoundError(ScanError):
    """The scan root does not exist or is not a directory."""

    code = "FOLDER_NOT_FOUND"


# ===================================================================
# Resolution
# ===================================================================

class ResolutionError(DepmapError):
    code = "RESOLUTION_FAILED"


class ImporterPathError(ResolutionError):
    """The importing file's path violates the normalized-path contract."""

    code = "INVALID_IMPORTER_PATH"


class RootEscapeError(ResolutionError):
    """A relative import points outside the project root."""

    code = "ROOT_ESCAPE"

    def __init__(self, specifier: str, importer: str, root_dir: str = "") -> None:
        self.specifier = specifier
        self.importer = importer
        self.root_dir = root_dir
        message = (
            f'Relative import "{specifier}" in file "{importer}" '
            "resolves outside the project root"
        )
        if root_dir:
            message += f" '{root_dir}'"
        super().__init__(message + ".")


# ===================================================================
# Extraction
# ===================================================================

class ExtractionError(DepmapError):
    """A source file could not be read or has no grammar."""

    code = "EXTRACTION_FAILED"


# ===================================================================
# Options
# ===================================================================

class InvalidMatchModeError(DepmapError, ValueError):
    """An extension-guessing mode other than the supported ones."""

    code = "INVALID_MATCH_MODE"

    def __init__(self, match_mode: str, allowed: Tuple[str, ...]) -> None:
        self.match_mode = match_mode
        super().__init__(f"match_mode must be one of {', '.join(allowed)}, got '{match_mode}'")
