"""Pipeline facade: scan a project root and build its dependency graph."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from . import config
from .graph_builder import analyze_files
from .models import AnalysisResult, DependencyGraph, ScannedFile
from .scanner import scan_directory


class DependencyMapper:
    """Runs scanner -> extractor -> resolver -> graph builder with fixed options."""

    def __init__(
        self,
        include_error_files: bool = config.INCLUDE_ERROR_FILES,
        match_mode: str = config.MATCH_MODE,
        max_workers: Optional[int] = config.MAX_WORKERS,
    ):
        self.include_error_files = include_error_files
        self.match_mode = match_mode
        self.max_workers = max_workers

    def scan(self, root_dir: Union[str, Path]) -> List[ScannedFile]:
        return scan_directory(root_dir)

    def analyze(self, root_dir: Union[str, Path]) -> AnalysisResult:
        return analyze_files(
            self.scan(root_dir),
            include_error_files=self.include_error_files,
            match_mode=self.match_mode,
            max_workers=self.max_workers,
        )

    def graph(self, root_dir: Union[str, Path]) -> DependencyGraph:
        return self.analyze(root_dir).graph


def get_dependency_graph(root_dir: Union[str, Path]) -> Dict[str, DependencyGraph]:
    """Build the graph for *root_dir* and wrap it as ``{"dependencyGraph": ...}``.

    Raises FolderNotFoundError when *root_dir* does not exist.
    """
    return {"dependencyGraph": DependencyMapper().graph(os.fspath(root_dir))}
