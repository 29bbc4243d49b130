"""CLI interface for anthocheck."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from anthocheck import __version__
from anthocheck.builder.report import (
    ExitStatus,
    exit_status,
    render_json,
    render_manifest,
    render_text,
    write_manifest,
)
from anthocheck.ingest.error_handling import ConfigError, MalformedManifest
from anthocheck.model.options import CheckOptions
from anthocheck.parser.manifest import load_manifest
from anthocheck.pipeline import DEFAULT_MANIFEST, run_check
from anthocheck.ui.progress import ProgressReporter

app = typer.Typer(
    name="anthocheck",
    help="Check the table of contents, links and author index of a Markdown anthology.",
    no_args_is_help=True,
)


def setup_logging(verbose: int) -> None:
    """Log to stderr through rich; -v for INFO, -vv for DEBUG."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


@app.command()
def check(
    src: Annotated[
        Path | None,
        typer.Argument(
            help="Directory holding the anthology's Markdown sources (default: [book] src)",
            exists=True,
            file_okay=False,
            dir_okay=True,
            readable=True,
        ),
    ] = None,
    manifest: Annotated[
        list[Path] | None,
        typer.Option(
            "--manifest",
            "-m",
            help="Table-of-contents file (repeatable). Default: <SRC>/SUMMARY.md",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="mdbook book.toml; reads [book] src and [output.anthocheck]",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    orphans: Annotated[
        str | None,
        typer.Option(
            "--orphans",
            help="Documents missing from the manifest: 'warn' (default), 'error' or 'ignore'",
        ),
    ] = None,
    require_sections: Annotated[
        bool,
        typer.Option(
            "--require-sections",
            help="Reject chapters that are not under a heading section (default: allow flat lists)",
        ),
    ] = False,
    authors_index: Annotated[
        str | None,
        typer.Option("--authors-index", help="Document id of the authors index (default: authors)"),
    ] = None,
    unlisted: Annotated[
        list[str] | None,
        typer.Option("--unlisted", help="Document id exempt from orphan checks (repeatable)"),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", help="Worker threads for loading documents (default: 4)"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", help="Report format: 'text' or 'json'"),
    ] = "text",
    write_manifest_to: Annotated[
        Path | None,
        typer.Option(
            "--write-manifest",
            help="Also write the normalized manifest to this path",
            dir_okay=False,
        ),
    ] = None,
    progress: Annotated[
        bool,
        typer.Option(
            "--progress/--no-progress",
            help="Show a progress display on stderr (default: no)",
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase log verbosity"),
    ] = 0,
) -> None:
    """
    Check an anthology for broken cross-references.

    Verifies that every manifest entry resolves to a document, every document
    is listed, internal links and author links resolve, and no chapter is
    listed twice. Source files are never modified.

    Exit status: 0 when clean (warnings allowed), 1 when blocking issues were
    found, 2 when a front-matter block or manifest could not be parsed.

    Examples:

        # Check src/ against src/SUMMARY.md
        anthocheck check src

        # Use book.toml settings and fail on unlisted chapters
        anthocheck check src --config book.toml --orphans error
    """
    setup_logging(verbose)

    if output_format not in ("text", "json"):
        typer.echo(f"Error: --format must be 'text' or 'json', got '{output_format}'", err=True)
        raise typer.Exit(ExitStatus.MALFORMED)

    try:
        base = CheckOptions.from_book_toml(config) if config is not None else None
        options = CheckOptions.from_cli(
            orphans=orphans,
            require_sections=True if require_sections else None,
            authors_index=authors_index,
            unlisted=unlisted or [],
            workers=workers,
            base=base,
        )
    except (ConfigError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(ExitStatus.MALFORMED) from exc

    root = src or options.source_dir
    if root is None or not root.is_dir():
        typer.echo("Error: SRC must be a directory (or set [book] src via --config)", err=True)
        raise typer.Exit(ExitStatus.MALFORMED)

    manifests = list(manifest or [])
    if not manifests:
        manifests = [root / DEFAULT_MANIFEST]

    with ProgressReporter(enabled=progress) as reporter:
        report = run_check(root, manifests, options, on_progress=reporter.emit)

    if output_format == "json":
        typer.echo(render_json(report), nl=False)
    else:
        typer.echo(render_text(report), nl=False)

    if write_manifest_to is not None and report.manifest is not None:
        write_manifest(report.manifest, write_manifest_to)
        typer.echo(f"Wrote normalized manifest to {write_manifest_to}", err=True)

    raise typer.Exit(exit_status(report))


@app.command()
def toc(
    manifest: Annotated[
        Path,
        typer.Argument(help="Table-of-contents file to normalize", exists=True, dir_okay=False),
    ],
    require_sections: Annotated[
        bool,
        typer.Option("--require-sections/--allow-flat", help="Reject chapters outside sections"),
    ] = False,
) -> None:
    """Print the normalized form of a manifest (SUMMARY.md)."""
    try:
        parsed = load_manifest(manifest, manifest.parent, require_sections=require_sections)
    except MalformedManifest as exc:
        typer.echo(f"MalformedManifest: {manifest} — {exc}", err=True)
        raise typer.Exit(ExitStatus.MALFORMED) from exc
    typer.echo(render_manifest(parsed), nl=False)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"anthocheck version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"anthocheck version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    anthocheck - consistency checker for Markdown anthologies.

    Treats a book of collected essays as a graph: the table of contents
    (SUMMARY.md), the chapter documents, the links between them and the
    authors index. Reports entries that point nowhere, chapters nobody
    lists, links to missing pages or anchors, misspelled author links and
    chapters listed twice.

    For detailed usage, run: anthocheck check --help
    """
    pass


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
