"""End-to-end checker run: load, parse, build the registry, validate.

Loading is parallel; the registry and validator run only after every
document has been loaded. Malformed inputs are collected as failures so one
broken file never hides issues elsewhere in the anthology.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from anthocheck.builder.authors import build_author_registry
from anthocheck.builder.report import CheckReport
from anthocheck.builder.validator import validate
from anthocheck.ingest.error_handling import ErrorContext, ErrorManager, MalformedManifest
from anthocheck.ingest.loader import LoadFailure, ProgressCallback, _safe_emit, load_corpus
from anthocheck.ingest.run_logger import log_check_configuration, log_error_policy
from anthocheck.model.manifest import Manifest, combine_manifests
from anthocheck.model.options import CheckOptions
from anthocheck.parser.manifest import load_manifest

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "SUMMARY.md"


def load_manifests(
    paths: Sequence[Path],
    root: Path,
    options: CheckOptions,
    on_progress: ProgressCallback = None,
) -> tuple[Manifest, list[LoadFailure]]:
    """Parse every manifest; a malformed one is skipped and recorded."""
    manifests: list[Manifest] = []
    failures: list[LoadFailure] = []
    for path in paths:
        _safe_emit(on_progress, "manifest:start", {"path": str(path)})
        try:
            manifest = load_manifest(
                path,
                root,
                require_sections=options.require_sections,
                authors_index=options.authors_index,
            )
        except MalformedManifest as exc:
            ErrorManager(ErrorContext(source_path=path, source_module="manifest", line=exc.line)).error(
                "MANIFEST-001", "Failed to parse manifest", exception=exc
            )
            log_error_policy("manifest", "MalformedManifest", "skip manifest", str(path))
            failures.append(LoadFailure(path=path, message=str(exc), line=exc.line, kind="MalformedManifest"))
            continue
        except (OSError, UnicodeDecodeError) as exc:
            context = ErrorContext(source_path=path, source_module="manifest", object_kind="manifest")
            ErrorManager(context).error(
                "MANIFEST-002", "Cannot read manifest", exception=exc
            )
            log_error_policy("manifest", type(exc).__name__, "skip manifest", str(path))
            failures.append(
                LoadFailure(path=path, message=f"Cannot read {path}: {exc}", kind="UnreadableSource")
            )
            continue
        if not manifest.chapters():
            context = ErrorContext(
                source_path=path, source_module="manifest", object_kind="manifest", object_id=path.name
            )
            ErrorManager(context).warn("MANIFEST-003", "Manifest lists no chapters")
        manifests.append(manifest)
        _safe_emit(on_progress, "manifest:parsed", {"entries": len(manifest.entries) - 1})

    combined = combine_manifests(manifests) if manifests else Manifest()
    return combined, failures


def run_check(
    root: Path,
    manifests: Sequence[Path] = (),
    options: CheckOptions | None = None,
    *,
    on_progress: ProgressCallback = None,
) -> CheckReport:
    """Check an anthology source tree against its manifest(s).

    Args:
        root: Directory holding the chapter sources
        manifests: Manifest files; defaults to ``root/SUMMARY.md``
        options: Check options (defaults apply when omitted)
        on_progress: Optional progress callback ``(event, payload)``
    """
    opts = options or CheckOptions()
    log_check_configuration(opts)
    manifest_paths = list(manifests) or [root / DEFAULT_MANIFEST]

    manifest, manifest_failures = load_manifests(manifest_paths, root, opts, on_progress)
    corpus = load_corpus(root, opts, exclude=manifest_paths, on_progress=on_progress)

    registry = build_author_registry(
        corpus.documents, authors_index=opts.authors_index, similarity=opts.similarity
    )
    _safe_emit(on_progress, "registry:built", {"authors": len(registry)})

    _safe_emit(on_progress, "validate:start", {"documents": len(corpus.documents)})
    issues = validate(corpus.documents, manifest, registry, opts)
    _safe_emit(on_progress, "validate:finalized", {"issues": len(issues)})

    failures = sorted(
        [*manifest_failures, *corpus.failures], key=lambda f: (f.path.as_posix(), f.line or 0)
    )
    return CheckReport(
        issues=issues,
        failures=failures,
        documents=len(corpus.documents),
        manifest=manifest,
    )


__all__ = ["DEFAULT_MANIFEST", "load_manifests", "run_check"]
