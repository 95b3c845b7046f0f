"""Watch mode: rebuild the dependency graph whenever sources change."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Optional, Set

import typer
from rich.console import Console
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from . import config
from .errors import DepmapError
from .graph_export import export_json
from .orchestrator import DependencyMapper
from .scanner import is_supported_file

console = Console()


class SourceChangeHandler(FileSystemEventHandler):
    """Collect source-file events and fire *rebuild_callback*, debounced."""

    def __init__(
        self,
        root: Path,
        rebuild_callback: Callable[[Set[str]], None],
        debounce_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.root = root
        self.rebuild_callback = rebuild_callback
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._last_event = 0.0
        self._pending: Set[str] = set()
        # observer thread records, the main loop flushes
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        for raw in (event.src_path, getattr(event, "dest_path", "")):
            if raw:
                self._record(Path(str(raw)))

    def _record(self, file_path: Path) -> None:
        if not is_supported_file(file_path.name):
            return
        try:
            rel_parts = file_path.resolve().relative_to(self.root).parts
        except ValueError:
            return
        if any(part in config.IGNORED_DIRECTORIES for part in rel_parts):
            return
        with self._lock:
            self._pending.add("./" + "/".join(rel_parts))
            self._last_event = self._clock()

    def flush(self) -> bool:
        """Fire the callback once events have been quiet for the debounce window."""
        with self._lock:
            if not self._pending:
                return False
            if self._clock() - self._last_event < self.debounce_seconds:
                return False
            changed = self._pending
            self._pending = set()
        self.rebuild_callback(changed)
        return True


def watch(
    path: Path = typer.Argument(Path("."), help="Project root to watch."),
    output: Path = typer.Option(Path("depmap.json"), "--output", "-o", help="Graph JSON file to keep updated."),
    interval: float = typer.Option(1.0, "--interval", "-i", help="Debounce interval in seconds."),
    match_mode: Optional[str] = typer.Option(None, "--match", help="Extension guessing: first or all."),
):
    """👀 Rebuild the graph JSON whenever a source file changes.

    Example:
      depmap watch ./my-app
      depmap watch . --output graph.json --interval 3
    """
    watch_path = path.resolve()
    if not watch_path.is_dir():
        console.print(f"[red]✗[/red] Path not found: {path}")
        raise typer.Exit(1)

    mapper = DependencyMapper(match_mode=match_mode or config.MATCH_MODE)
    rebuild_count = 0

    def rebuild(changed: Set[str]) -> None:
        nonlocal rebuild_count
        try:
            result = mapper.analyze(watch_path)
        except DepmapError as exc:
            console.print(f"  [red]✗[/red] Rebuild failed: {exc}")
            return
        export_json(result.graph, output)
        rebuild_count += 1
        label = ", ".join(sorted(changed)[:3]) + (" ..." if len(changed) > 3 else "")
        console.print(
            f"  [green]✓[/green] {len(result.graph.nodes)} nodes, "
            f"{len(result.graph.links)} links ({label or 'initial build'})"
        )

    rebuild(set())

    console.print(f"\n[bold green]👀 Watching[/bold green] [cyan]{watch_path}[/cyan] for changes...")
    console.print(f"[dim]  Debounce:  {interval}s")
    console.print(f"  Output:    {output}")
    console.print("  Press Ctrl+C to stop[/dim]\n")

    handler = SourceChangeHandler(watch_path, rebuild, debounce_seconds=interval)
    observer = Observer()
    observer.schedule(handler, str(watch_path), recursive=True)
    observer.start()

    try:
        while True:
            time.sleep(0.25)
            handler.flush()
    except KeyboardInterrupt:
        observer.stop()
        console.print(f"\n[yellow]Stopped watching.[/yellow] Rebuilt {rebuild_count} time(s).")

    observer.join()
