"""depmap: static module-dependency graphs for JavaScript / TypeScript projects."""

__version__ = "1.0.0"

from .models import DependencyGraph, ImportRecord, ScannedFile  # noqa: E402
from .orchestrator import DependencyMapper, get_dependency_graph  # noqa: E402

__all__ = [
    "DependencyGraph",
    "DependencyMapper",
    "ImportRecord",
    "ScannedFile",
    "get_dependency_graph",
]
