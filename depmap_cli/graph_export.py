"""Graph export helpers for JSON and Graphviz DOT outputs."""

from __future__ import annotations

import json
from pathlib import Path

from .models import DependencyGraph


def graph_to_json(graph: DependencyGraph) -> str:
    return json.dumps(graph.to_dict(), indent=2)


def export_json(graph: DependencyGraph, output_file: Path) -> None:
    output_file.write_text(graph_to_json(graph) + "\n", encoding="utf-8")


def graph_to_dot(graph: DependencyGraph) -> str:
    lines = ["digraph Dependencies {"]
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box];")

    for node in graph.nodes:
        lines.append(f'  "{_esc(node.id)}";')

    for link in graph.links:
        lines.append(f'  "{_esc(link.source)}" -> "{_esc(link.target)}";')

    lines.append("}")
    return "\n".join(lines)


def export_dot(graph: DependencyGraph, output_file: Path) -> None:
    output_file.write_text(graph_to_dot(graph) + "\n", encoding="utf-8")


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
