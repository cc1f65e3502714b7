"""
Command line interface for gitsift.

Chunks are written to stdout as JSON lines; progress and logs go to stderr.
"""

from __future__ import annotations

import json
import queue
import threading
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

from .errors import ConfigurationError
from .filters import PathFilter
from .logger import configure_logging, redirect_logging_to_file
from .models import Chunk, ScanOptions
from .services import BasicAuth, GitConnection, GitSource, ProgressSnapshot, Unauthenticated
from .services import Progress as ScanProgress
from .settings import settings
from .version import get_version

app = typer.Typer(name="gitsift", help="Extract scannable content from git history.")
console = Console(stderr=True)

_DONE = object()


def chunk_to_json(chunk: Chunk) -> str:
    return json.dumps(
        {
            "source_name": chunk.source_name,
            "source_id": chunk.source_id,
            "source_type": chunk.source_type.value,
            "verify": chunk.verify,
            "metadata": chunk.metadata.to_dict(),
            "data": chunk.data.decode("utf-8", errors="replace"),
        },
        ensure_ascii=False,
    )


@app.command()
def scan(
    repo: List[str] = typer.Option([], "--repo", "-r", help="Remote repository URL to clone (repeatable)."),
    directory: List[str] = typer.Option(
        [], "--directory", "-d", help="Local repository path or file:// / https:// URI (repeatable)."
    ),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Basic auth username for --repo."),
    token: Optional[str] = typer.Option(
        None, "--token", "-t", envvar="GITSIFT_TOKEN", help="Basic auth password or token for --repo."
    ),
    branch: Optional[str] = typer.Option(None, "--branch", help="Revision to start walking from (default HEAD)."),
    since_commit: Optional[str] = typer.Option(
        None, "--since-commit", help="Stop before this commit, branch or tag."
    ),
    max_depth: int = typer.Option(settings.max_depth, "--max-depth", min=0, help="Commits to walk; 0 = all."),
    include: List[str] = typer.Option([], "--include", "-I", help="Glob of paths to scan (repeatable)."),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Glob of paths to skip (repeatable)."),
    concurrency: int = typer.Option(settings.concurrency, "--concurrency", "-c", min=1),
    name: str = typer.Option("git", "--name", help="Source name recorded on every chunk."),
    log_file: Optional[Path] = typer.Option(None, "--log", help="Write detailed logs to this file."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide the progress bar."),
) -> None:
    """Scan repositories and print one JSON chunk per line."""
    if log_file:
        redirect_logging_to_file(log_file, settings.log_level)
    else:
        configure_logging(settings.log_level)

    if not repo and not directory:
        typer.echo("[ERROR] Provide at least one --repo or --directory.", err=True)
        raise typer.Exit(code=2)
    if token and not username:
        typer.echo("[ERROR] --token requires --username.", err=True)
        raise typer.Exit(code=2)

    credential = BasicAuth(username=username, password=token or "") if username else Unauthenticated()
    connection = GitConnection(repositories=list(repo), directories=list(directory), credential=credential)
    options = ScanOptions(
        start_revision=branch,
        base_revision=since_commit,
        max_depth=max_depth,
        path_filter=PathFilter(include=include, exclude=exclude),
    )

    sink: "queue.Queue[object]" = queue.Queue(maxsize=settings.queue_size)
    cancel = threading.Event()

    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
        disable=quiet,
    ) as bar:
        task = bar.add_task("Scanning repositories", total=100)

        def on_update(snapshot: ProgressSnapshot) -> None:
            bar.update(task, completed=snapshot.percent_complete, description=snapshot.message)

        try:
            source = GitSource(
                name,
                connection,
                concurrency=concurrency,
                progress=ScanProgress(on_update=on_update),
            )
        except ConfigurationError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=2)

        outcome: dict = {}

        def produce() -> None:
            try:
                outcome["report"] = source.chunks(sink, options=options, cancel=cancel)
            except Exception as exc:  # surfaced after the consumer loop
                outcome["error"] = exc
            finally:
                sink.put(_DONE)

        producer = threading.Thread(target=produce, name="gitsift-producer", daemon=True)
        producer.start()
        try:
            while True:
                item = sink.get()
                if item is _DONE:
                    break
                typer.echo(chunk_to_json(item))
        except KeyboardInterrupt:
            cancel.set()
            typer.echo("Cancelling scan...", err=True)
            while sink.get() is not _DONE:
                pass
            producer.join()
            raise typer.Exit(code=130)
        producer.join()

    if "error" in outcome:
        typer.echo(f"[ERROR] {outcome['error']}", err=True)
        raise typer.Exit(code=1)
    report = outcome["report"]
    for failure in report.failures:
        typer.echo(f"[ERROR] {failure.label}: {failure.error}", err=True)
    typer.echo(
        f"Scanned {report.scanned}/{report.total} repositories, chunks={report.chunks}, "
        f"failed={len(report.failures)}",
        err=True,
    )
    if report.failures:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print the installed gitsift version."""
    typer.echo(get_version())


if __name__ == "__main__":  # pragma: no cover
    app()
