"""Typer-based CLI for depmap."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__, config
from .cli_watch import watch
from .errors import DepmapError, ResolutionError
from .graph_export import export_dot, export_json, graph_to_dot, graph_to_json
from .orchestrator import DependencyMapper
from .parser import ImportExtractor
from .resolver import resolve_import_path

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="🕸️  depmap: map the import graph of a JavaScript / TypeScript project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("watch")(watch)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"depmap v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging."),
):
    """depmap: static module-dependency graphs for JS/TS source trees."""
    _configure_logging(verbose)


def _fail(exc: Exception) -> None:
    err_console.print(f"[red]✗[/red] {escape(str(exc))}", highlight=False, soft_wrap=True)
    raise typer.Exit(code=1)


@app.command("scan")
def scan(
    project_path: Path = typer.Argument(..., help="Project root to scan."),
):
    """List the source files that would become graph nodes."""
    try:
        files = DependencyMapper().scan(project_path)
    except DepmapError as exc:
        _fail(exc)
        return

    if not files:
        typer.echo("No source files found.")
        raise typer.Exit(code=0)

    table = Table(title=f"Source files in {files[0].root_dir}")
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("Ext")
    for f in files:
        table.add_row(escape(f.relative_path), f.extension)
    console.print(table)
    typer.echo(f"Files: {len(files)}")


@app.command("imports")
def imports(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file to inspect."),
    include_errors: bool = typer.Option(
        False, "--include-errors", help="Report best-effort imports even if the file has syntax errors.",
    ),
):
    """Show every import / require / re-export found in one file."""
    extractor = ImportExtractor(include_error_files=include_errors)
    try:
        parsed = extractor.parse_file(file_path)
    except DepmapError as exc:
        _fail(exc)
        return

    if parsed is None:
        err_console.print(
            f"[red]✗[/red] {file_path} has syntax errors. Use --include-errors to see partial results.",
            highlight=False,
            soft_wrap=True,
        )
        raise typer.Exit(code=1)

    if not parsed.records:
        typer.echo("No imports found.")
    else:
        table = Table()
        table.add_column("Line", justify="right")
        table.add_column("Kind")
        table.add_column("Specifier", style="cyan", no_wrap=True)
        table.add_column("Bindings")
        for rec in parsed.records:
            bindings = []
            if rec.default_import:
                bindings.append(rec.default_import)
            if rec.namespace_import:
                bindings.append(f"* as {rec.namespace_import}" if rec.namespace_import != "*" else "*")
            bindings.extend(rec.named_imports)
            kind = rec.kind.value + (" (type)" if rec.type_only else "")
            table.add_row(str(rec.line), kind, escape(rec.specifier), escape(", ".join(bindings)))
        console.print(table)
        typer.echo(f"Imports: {len(parsed.records)}")

    for diag in parsed.diagnostics:
        err_console.print(
            f"[yellow]⚠[/yellow] {diag.line}:{diag.column} {escape(diag.message)}", highlight=False, soft_wrap=True,
        )


@app.command("resolve")
def resolve(
    specifier: str = typer.Argument(..., help="Import specifier as written in source."),
    importer: str = typer.Option(..., "--from", help="Importing file, e.g. ./src/index.ts"),
    root: Path = typer.Option(Path("."), "--root", help="Project root."),
):
    """Resolve one specifier the way the graph builder does."""
    try:
        resolved = resolve_import_path(specifier, importer, str(root.resolve()))
    except ResolutionError as exc:
        _fail(exc)
        return
    typer.echo(resolved)


@app.command("graph")
def graph(
    project_path: Path = typer.Argument(..., help="Project root to analyze."),
    fmt: str = typer.Option("json", "--format", "-f", help="Output format: json or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout."),
    match_mode: str = typer.Option(
        config.MATCH_MODE, "--match", help="Extension guessing: 'first' candidate or 'all' candidates.",
    ),
    include_errors: bool = typer.Option(
        config.INCLUDE_ERROR_FILES,
        "--include-errors/--exclude-errors",
        help="Link imports from files that contain syntax errors.",
    ),
    workers: Optional[int] = typer.Option(config.MAX_WORKERS, "--workers", "-w", min=1, help="Worker threads."),
):
    """Build the dependency graph of a project."""
    fmt = fmt.lower()
    if fmt not in {"json", "dot"}:
        raise typer.BadParameter("Format must be one of: json, dot")
    if match_mode not in config.MATCH_MODES:
        raise typer.BadParameter(f"Match mode must be one of: {', '.join(config.MATCH_MODES)}")

    mapper = DependencyMapper(include_error_files=include_errors, match_mode=match_mode, max_workers=workers)
    try:
        result = mapper.analyze(project_path)
    except DepmapError as exc:
        _fail(exc)
        return

    summary = f"Nodes: {len(result.graph.nodes)} | Links: {len(result.graph.links)} | Errors: {len(result.errors)}"
    if output is None:
        typer.echo(graph_to_json(result.graph) if fmt == "json" else graph_to_dot(result.graph))
        err_console.print(summary, highlight=False, soft_wrap=True)
    else:
        if fmt == "json":
            export_json(result.graph, output)
        else:
            export_dot(result.graph, output)
        typer.echo(f"Exported graph to {output}")
        typer.echo(summary)

    for error in result.errors:
        err_console.print(
            f"[yellow]⚠[/yellow] {error.path} ({error.kind}): {escape(error.message)}", highlight=False, soft_wrap=True,
        )


@app.command("serve")
def serve(
    host: str = typer.Option(config.SERVER_HOST, "--host", help="Interface to bind."),
    port: int = typer.Option(config.SERVER_PORT, "--port", "-p", help="Port to listen on."),
):
    """Run the HTTP API (POST /dependency-map, GET /health)."""
    from .server import run_server

    settings = config.ServerSettings(host=host, port=port)
    url = f"http://{host}:{port}"
    console.print("\n[bold green]🕸️  depmap API[/bold green]")
    console.print(f"   URL:     [link={url}]{url}[/link]")
    console.print(f"   CORS:    {', '.join(settings.cors_origins) or 'disabled'}")
    console.print("\n   [dim]Press Ctrl+C to stop the server[/dim]\n")

    try:
        run_server(settings, log_level=config.LOG_LEVEL.lower())
    except KeyboardInterrupt:
        pass
    finally:
        console.print("\n[dim]Server stopped.[/dim]")


@app.command("show-config")
def show_config():
    """Print the effective configuration."""
    table = Table(title=f"Configuration ({config.CONFIG_FILE})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("server.host", config.SERVER_HOST)
    table.add_row("server.port", str(config.SERVER_PORT))
    table.add_row("server.cors_origins", ", ".join(config.CORS_ORIGINS))
    table.add_row("analysis.match_mode", config.MATCH_MODE)
    table.add_row("analysis.max_workers", str(config.MAX_WORKERS or "auto"))
    table.add_row("analysis.include_error_files", str(config.INCLUDE_ERROR_FILES).lower())
    table.add_row("logging.level", config.LOG_LEVEL)
    console.print(table)


if __name__ == "__main__":
    app()
