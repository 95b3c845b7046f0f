"""Assemble a file-level dependency graph from scanned sources.

Each file is read, parsed and resolved independently on a bounded thread
pool. Per-file results are buffered and merged in scan order, so node and
link order never depend on completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set

from .config import MATCH_MODES
from .errors import InvalidMatchModeError
from .models import (
    AnalysisResult,
    DependencyGraph,
    FileError,
    GraphLink,
    GraphNode,
    ImportRecord,
    ScannedFile,
)
from .parser import ImportExtractor
from .resolver import (
    guess_possible_extensions,
    is_directory_specifier,
    is_relative_specifier,
    resolve_import_path,
)

logger = logging.getLogger(__name__)


@dataclass
class _FileResult:
    """Outcome of processing one file; merged after all files finish."""

    links: List[GraphLink] = field(default_factory=list)
    records: Optional[List[ImportRecord]] = None
    errors: List[FileError] = field(default_factory=list)


def build_graph(
    scanned_files: Sequence[ScannedFile],
    *,
    include_error_files: bool = False,
    match_mode: str = "first",
    max_workers: Optional[int] = None,
) -> DependencyGraph:
    """Return the dependency graph for *scanned_files*."""
    return analyze_files(
        scanned_files,
        include_error_files=include_error_files,
        match_mode=match_mode,
        max_workers=max_workers,
    ).graph


def analyze_files(
    scanned_files: Sequence[ScannedFile],
    *,
    include_error_files: bool = False,
    match_mode: str = "first",
    max_workers: Optional[int] = None,
) -> AnalysisResult:
    """Build the graph and collect per-file errors and import records.

    Unreadable files and (by default) files with syntax errors keep their
    node but contribute no links; each is reported once in ``errors``.
    Specifiers that match no scanned file are dropped.

    Raises:
        InvalidMatchModeError: unknown *match_mode*.
        RootEscapeError: a relative import points outside the project root.
    """
    if match_mode not in MATCH_MODES:
        raise InvalidMatchModeError(match_mode, MATCH_MODES)

    nodes = [GraphNode(id=f.relative_path) for f in scanned_files]
    node_ids: Set[str] = {n.id for n in nodes}
    extractor = ImportExtractor(include_error_files=include_error_files)

    def process(scanned: ScannedFile) -> _FileResult:
        return _process_file(scanned, node_ids, extractor, match_mode)

    if not scanned_files:
        results: List[_FileResult] = []
    elif max_workers == 1 or len(scanned_files) == 1:
        results = [process(f) for f in scanned_files]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            # map() yields in submission order and re-raises the first failure
            results = list(executor.map(process, scanned_files))

    analysis = AnalysisResult(graph=DependencyGraph(nodes=nodes))
    for scanned, result in zip(scanned_files, results):
        analysis.graph.links.extend(result.links)
        analysis.errors.extend(result.errors)
        if result.records is not None:
            analysis.imports[scanned.relative_path] = result.records

    logger.debug(
        "Built graph: %d node(s), %d link(s), %d file error(s)",
        len(analysis.graph.nodes), len(analysis.graph.links), len(analysis.errors),
    )
    return analysis


def _process_file(
    scanned: ScannedFile,
    node_ids: Set[str],
    extractor: ImportExtractor,
    match_mode: str,
) -> _FileResult:
    result = _FileResult()
    source_id = scanned.relative_path
    path = scanned.absolute_path

    try:
        contents = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Could not read file %s: %s", path, exc)
        result.errors.append(FileError(path=source_id, kind="read", message=str(exc)))
        return result

    parsed = extractor.parse(contents, scanned.extension)
    if parsed is None:
        logger.warning("Skipping %s: file contains syntax errors", source_id)
        result.errors.append(FileError(
            path=source_id, kind="syntax", message="File contains syntax errors",
        ))
        return result

    if parsed.diagnostics:
        first = parsed.diagnostics[0]
        result.errors.append(FileError(
            path=source_id,
            kind="syntax",
            message=f"{len(parsed.diagnostics)} syntax error(s); first at "
                    f"{first.line}:{first.column}: {first.message}",
        ))

    result.records = parsed.records
    for specifier in parsed.specifiers:
        if not is_relative_specifier(specifier):
            continue
        for target in _match_targets(specifier, source_id, scanned.root_dir, node_ids, match_mode):
            result.links.append(GraphLink(source=source_id, target=target))
    return result


def _match_targets(
    specifier: str,
    importer: str,
    root_dir: str,
    node_ids: Set[str],
    match_mode: str,
) -> Iterable[str]:
    resolved = resolve_import_path(specifier, importer, root_dir)
    if resolved in node_ids:
        return [resolved]

    if is_directory_specifier(specifier) and not resolved.endswith("/"):
        resolved += "/"
    found = [c for c in guess_possible_extensions(resolved) if c in node_ids]
    if match_mode == "first":
        return found[:1]
    return found
