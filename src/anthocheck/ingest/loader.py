"""Document loading for an anthology source tree.

Each file is read, split into front-matter and body, and scanned for links,
reference definitions and anchors. Files are independent, so loading runs on
a thread pool; the caller gets results only after every file has finished.
A file that fails to parse is recorded as a ``LoadFailure`` and does not stop
the rest of the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from anthocheck.ids import document_id
from anthocheck.ingest.error_handling import (
    AnthologyError,
    ErrorContext,
    ErrorManager,
    SourceParseError,
)
from anthocheck.ingest.front_matter import parse_tags, split_front_matter
from anthocheck.ingest.run_logger import log_error_policy
from anthocheck.model.corpus import Document
from anthocheck.model.options import CheckOptions
from anthocheck.parser.links import (
    LinkExtractor,
    collect_anchors,
    collect_definitions,
    collect_heading_titles,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, int | str]], None] | None


def _safe_emit(on_progress: ProgressCallback, event: str, payload: dict[str, int | str]) -> None:
    if on_progress is None:
        return
    from contextlib import suppress

    with suppress(Exception):
        on_progress(event, payload)


@dataclass(frozen=True)
class LoadFailure:
    path: Path
    message: str
    line: int | None = None
    kind: str = "MalformedFrontMatter"


@dataclass
class Corpus:
    documents: list[Document] = field(default_factory=list)
    failures: list[LoadFailure] = field(default_factory=list)
    root: Path | None = None


def discover_sources(
    root: Path, extensions: Iterable[str] = (".md", ".markdown"), exclude: Iterable[Path] = ()
) -> list[Path]:
    """List source files under ``root`` in sorted order, skipping ``exclude``."""
    wanted = {e.lower() for e in extensions}
    skipped = {p.resolve() for p in exclude}
    files = [
        p
        for p in root.rglob("*")
        if p.is_file()
        and p.suffix.lower() in wanted
        and p.resolve() not in skipped
        and not any(part.startswith(".") for part in p.relative_to(root).parts)
    ]
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


def load_document(path: Path, root: Path) -> Document:
    """Load one source file into a Document.

    Raises:
        MalformedFrontMatter: If the front-matter block is malformed
        OSError, UnicodeDecodeError: If the file cannot be read as UTF-8
    """
    text = path.read_text(encoding="utf-8")
    split = split_front_matter(text, path)
    doc_id = document_id(path, root)

    definitions = collect_definitions(split.body)
    links = tuple(
        LinkExtractor(doc_id, split.body, first_line=split.body_line, definitions=definitions)
    )

    title = split.metadata.get("title", "").strip()
    if not title:
        headings = collect_heading_titles(split.body)
        title = headings[0][1] if headings else doc_id

    return Document(
        doc_id=doc_id,
        path=path,
        title=title,
        body=split.body,
        body_line=split.body_line,
        author=split.metadata.get("author") or None,
        tags=parse_tags(split.metadata.get("tags", "")),
        front_matter=MappingProxyType(dict(split.metadata)),
        links=links,
        anchors=frozenset(collect_anchors(split.body)),
        definitions=MappingProxyType(definitions),
    )


def _failure_from(path: Path, exc: Exception) -> LoadFailure:
    if isinstance(exc, SourceParseError):
        return LoadFailure(path=path, message=str(exc), line=exc.line, kind=type(exc).__name__)
    if isinstance(exc, UnicodeDecodeError):
        return LoadFailure(
            path=path, message=f"Cannot decode {path} as UTF-8: {exc.reason}", kind="UnreadableSource"
        )
    return LoadFailure(path=path, message=f"Cannot read {path}: {exc}", kind="UnreadableSource")


def load_corpus(
    root: Path,
    options: CheckOptions | None = None,
    *,
    exclude: Iterable[Path] = (),
    on_progress: ProgressCallback = None,
) -> Corpus:
    """Load every source document under ``root``.

    Documents are returned sorted by id (then path) regardless of the order in
    which worker threads finish.
    """
    opts = options or CheckOptions()
    paths = discover_sources(root, opts.extensions, exclude)
    _safe_emit(on_progress, "load:start", {"files": len(paths)})
    logger.info("Loading %d source files from %s with %d worker(s)", len(paths), root, opts.workers)

    def _load(path: Path) -> Document | LoadFailure:
        try:
            doc = load_document(path, root)
        except (AnthologyError, OSError, UnicodeDecodeError) as exc:
            manager = ErrorManager(
                ErrorContext(
                    source_path=path,
                    doc_id=document_id(path, root),
                    source_module="loader",
                    line=getattr(exc, "line", None),
                    object_kind="document",
                    object_id=path.name,
                    flags={"workers": opts.workers},
                )
            )
            manager.error("LOAD-001", "Failed to load source document", exception=exc)
            log_error_policy("load", type(exc).__name__, "skip file", str(path))
            result: Document | LoadFailure = _failure_from(path, exc)
        else:
            result = doc
        _safe_emit(on_progress, "document:loaded", {"path": str(path)})
        return result

    if opts.workers <= 1 or len(paths) <= 1:
        results = [_load(p) for p in paths]
    else:
        with ThreadPoolExecutor(max_workers=opts.workers) as executor:
            results = list(executor.map(_load, paths))

    corpus = Corpus(root=root)
    for item in results:
        if isinstance(item, LoadFailure):
            corpus.failures.append(item)
        else:
            corpus.documents.append(item)

    corpus.documents.sort(key=lambda d: (d.doc_id, d.path.as_posix()))
    corpus.failures.sort(key=lambda f: f.path.as_posix())
    _safe_emit(
        on_progress,
        "load:finalized",
        {"documents": len(corpus.documents), "failures": len(corpus.failures)},
    )
    return corpus


__all__ = ["Corpus", "LoadFailure", "discover_sources", "load_corpus", "load_document"]
