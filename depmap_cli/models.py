"""Core data models shared by the scanner, extractor, and graph builder."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple


@dataclass(frozen=True)
class ScannedFile:
    root_dir: str
    relative_path: str
    extension: str
    name: str

    def __post_init__(self) -> None:
        rel = self.relative_path
        if not rel.startswith("./"):
            raise ValueError(f"Relative path '{rel}' must start with './'")
        if ".." in rel.split("/"):
            raise ValueError(f"Relative path '{rel}' must not contain '..' segments")
        if "./" + posixpath.normpath(rel) != rel:
            raise ValueError(f"Relative path '{rel}' is not normalized")

    @property
    def absolute_path(self) -> Path:
        return Path(self.root_dir) / self.relative_path[2:]


class ImportKind(str, Enum):
    IMPORT = "import"
    EXPORT = "export"
    DYNAMIC_IMPORT = "dynamic-import"
    REQUIRE = "require"
    IMPORT_EQUALS = "import-equals"


@dataclass(frozen=True)
class ImportRecord:
    """One module reference found in a source file."""

    specifier: str
    kind: ImportKind
    line: int
    column: int
    default_import: Optional[str] = None
    named_imports: Tuple[str, ...] = ()
    namespace_import: Optional[str] = None
    type_only: bool = False


@dataclass(frozen=True)
class Diagnostic:
    line: int
    column: int
    message: str


@dataclass
class ParsedFile:
    records: List[ImportRecord] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def specifiers(self) -> List[str]:
        return [r.specifier for r in self.records]

    @property
    def has_errors(self) -> bool:
        return bool(self.diagnostics)


@dataclass(frozen=True)
class GraphNode:
    id: str


@dataclass(frozen=True)
class GraphLink:
    source: str
    target: str


@dataclass
class DependencyGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    links: List[GraphLink] = field(default_factory=list)

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {
            "nodes": [{"id": n.id} for n in self.nodes],
            "links": [{"source": l.source, "target": l.target} for l in self.links],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyGraph":
        return cls(
            nodes=[GraphNode(id=n["id"]) for n in data.get("nodes", [])],
            links=[
                GraphLink(source=l["source"], target=l["target"])
                for l in data.get("links", [])
            ],
        )


@dataclass(frozen=True)
class FileError:
    path: str
    kind: str
    message: str


@dataclass
class AnalysisResult:
    graph: DependencyGraph
    errors: List[FileError] = field(default_factory=list)
    imports: Dict[str, List[ImportRecord]] = field(default_factory=dict)
