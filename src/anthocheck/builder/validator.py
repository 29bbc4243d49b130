"""Cross-reference consistency checks over a loaded anthology.

``validate`` is a pure function of its inputs. Checks run in a fixed order,
which defines how the report is grouped:

1. manifest chapters resolve to documents (MissingTarget)
2. every document is reachable from the manifest (OrphanDocument)
3. internal links resolve to documents and anchors (MissingTarget,
   BrokenAnchor for reference labels without a definition)
4. author links resolve to known authors (UnknownAuthor)
5. no document is listed twice or loaded from two files (DuplicateSlug)

Inputs are sorted by id first, so the result never depends on filesystem
iteration order.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Iterable
from urllib.parse import unquote

from anthocheck.builder.authors import AuthorCitation, AuthorRegistry
from anthocheck.ids import DOCUMENT_SUFFIXES, normalize_author_name
from anthocheck.ingest.error_handling import ErrorContext, ErrorManager
from anthocheck.model.corpus import Document, Link, LinkStyle
from anthocheck.model.issues import IssueKind, Severity, ValidationIssue
from anthocheck.model.manifest import EntryKind, Manifest, ManifestEntry
from anthocheck.model.options import CheckOptions, OrphanPolicy
from anthocheck.parser.links import resolve_reference, shared_definitions
from anthocheck.transform.targets import TargetKind, TargetRef, classify_target

logger = logging.getLogger(__name__)

_ASSET_SUFFIX_RE = re.compile(r"\.[A-Za-z0-9]{1,5}$")


def _has_anchor(doc: Document, fragment: str) -> bool:
    return fragment in doc.anchors or unquote(fragment) in doc.anchors


def _is_asset(path: str) -> bool:
    """Links to images, source files and the like are not document links."""
    name = posixpath.basename(path.split("#", 1)[0].split("?", 1)[0])
    m = _ASSET_SUFFIX_RE.search(name)
    return bool(m) and m.group(0).lower() not in DOCUMENT_SUFFIXES


class _Checker:
    def __init__(
        self,
        documents: Iterable[Document],
        manifest: Manifest,
        registry: AuthorRegistry,
        options: CheckOptions,
    ) -> None:
        self.documents = sorted(documents, key=lambda d: (d.doc_id, d.path.as_posix()))
        self.manifest = manifest
        self.registry = registry
        self.options = options
        self.by_id: dict[str, Document] = {}
        for doc in self.documents:
            self.by_id.setdefault(doc.doc_id, doc)
        self.shared = shared_definitions(self.documents)
        self.issues: list[ValidationIssue] = []
        self.author_links: list[tuple[Document, Link, TargetRef]] = []

    def _emit(self, issue: ValidationIssue) -> None:
        logger.debug("%s: %s - %s", issue.kind.value, issue.entity, issue.message)
        self.issues.append(issue)

    def check_manifest_targets(self) -> None:
        for entry in self.manifest.chapters():
            if entry.external or entry.is_draft:
                continue
            if entry.doc_id is not None and entry.doc_id in self.by_id:
                continue
            self._emit(
                ValidationIssue(
                    kind=IssueKind.MISSING_TARGET,
                    entity_ids=(entry.target or "",),
                    message=f"manifest entry '{entry.title}' does not resolve to a document",
                    source=entry.source,
                    line=entry.line,
                )
            )

    def check_orphans(self) -> None:
        policy = self.options.orphans
        if policy is OrphanPolicy.IGNORE:
            return
        reachable = self.manifest.reachable_documents()
        severity = Severity.ERROR if policy is OrphanPolicy.ERROR else Severity.WARNING
        for doc_id, doc in self.by_id.items():
            if doc_id in reachable:
                continue
            if doc_id in self.options.unlisted:
                context = ErrorContext(
                    source_path=doc.path,
                    doc_id=doc_id,
                    source_module="validator",
                    object_kind="document",
                    object_id=doc_id,
                    flags={"orphans": policy.value},
                )
                ErrorManager(context).decision("ORPHAN-001", "orphan.unlisted", doc_id)
                continue
            self._emit(
                ValidationIssue(
                    kind=IssueKind.ORPHAN_DOCUMENT,
                    entity_ids=(doc_id,),
                    message="document is not listed in any manifest",
                    source=doc.path,
                    severity=severity,
                )
            )

    def _resolve_reference(self, doc: Document, link: Link) -> str | None:
        """Target for a reference usage with no local definition, or None."""
        resolved = resolve_reference(link, self.shared)
        if resolved is not None:
            return resolved
        targets = self.shared.get(link.reference or "", set())
        if link.style is LinkStyle.SHORTCUT and not targets:
            # CommonMark treats an undefined [label] as plain text
            return None
        reason = (
            f"reference [{link.reference}] has conflicting definitions in the corpus"
            if targets
            else f"reference [{link.reference}] has no definition"
        )
        self._emit(
            ValidationIssue(
                kind=IssueKind.BROKEN_ANCHOR,
                entity_ids=(doc.doc_id,),
                message=reason,
                source=doc.path,
                line=link.line,
            )
        )
        return None

    def _missing(self, doc: Document, link: Link, target: str, why: str) -> None:
        self._emit(
            ValidationIssue(
                kind=IssueKind.MISSING_TARGET,
                entity_ids=(target,),
                message=f"link [{link.label}] in '{doc.doc_id}' {why}",
                source=doc.path,
                line=link.line,
            )
        )

    def check_links(self) -> None:
        for doc in self.documents:
            if self.by_id[doc.doc_id] is not doc:
                continue  # duplicate id, reported by check_duplicates
            source_dir = posixpath.dirname(doc.doc_id)
            for link in doc.links:
                target = link.target
                if not target:
                    if not link.is_reference:
                        self._missing(doc, link, "", "has an empty target")
                        continue
                    resolved = self._resolve_reference(doc, link)
                    if resolved is None:
                        continue
                    target = resolved

                ref = classify_target(target, source_dir, authors_index=self.options.authors_index)
                if ref.kind in (TargetKind.EXTERNAL, TargetKind.EMPTY):
                    continue
                if ref.kind is TargetKind.AUTHOR:
                    self.author_links.append((doc, link, ref))
                    continue
                if ref.kind is TargetKind.ANCHOR:
                    if ref.fragment and not _has_anchor(doc, ref.fragment):
                        self._missing(doc, link, target, f"points at unknown anchor '#{ref.fragment}'")
                    continue

                target_doc = self.by_id.get(ref.doc_id) if ref.doc_id is not None else None
                if target_doc is None:
                    if _is_asset(target):
                        continue
                    self._missing(doc, link, target, "does not resolve to a document")
                elif ref.fragment and not _has_anchor(target_doc, ref.fragment):
                    self._missing(
                        doc,
                        link,
                        target,
                        f"points at unknown anchor '#{ref.fragment}' in '{target_doc.doc_id}'",
                    )

    def check_authors(self) -> None:
        for doc, link, ref in self.author_links:
            fragment = ref.fragment or ""
            if self.registry.resolve(fragment) is not None:
                continue
            name = normalize_author_name(fragment)
            message = f"author '{name}' is not in the authors index"
            suggestions = self.registry.suggest(name)
            if suggestions:
                message += f"; did you mean '{suggestions[0]}'?"
            self._emit(
                ValidationIssue(
                    kind=IssueKind.UNKNOWN_AUTHOR,
                    entity_ids=(fragment,),
                    message=message,
                    source=doc.path,
                    line=link.line,
                )
            )

        first_citation: dict[str, AuthorCitation] = {}
        for citation in self.registry.citations:
            first_citation.setdefault(citation.slug, citation)
        for a, b in self.registry.ambiguities:
            name_a = self.registry.authors[a].name
            name_b = self.registry.authors[b].name
            cite = first_citation.get(b) or first_citation.get(a)
            source = self.by_id[cite.link.source].path if cite and cite.link.source in self.by_id else None
            self._emit(
                ValidationIssue(
                    kind=IssueKind.UNKNOWN_AUTHOR,
                    entity_ids=(a, b),
                    message=f"ambiguous author spellings '{name_a}' and '{name_b}' look like one author",
                    source=source,
                    line=cite.link.line if cite else None,
                )
            )

    def check_duplicates(self) -> None:
        listed: dict[str, list[str]] = {}
        first_entry: dict[str, ManifestEntry] = {}
        for entry in self.manifest.walk():
            if entry.kind is not EntryKind.CHAPTER or entry.doc_id is None:
                continue
            where = entry.location()
            label = f"'{entry.title}'" + (f" ({where})" if where else "")
            listed.setdefault(entry.doc_id, []).append(label)
            first_entry.setdefault(entry.doc_id, entry)
        for doc_id, labels in listed.items():
            if len(labels) < 2:
                continue
            entry = first_entry[doc_id]
            self._emit(
                ValidationIssue(
                    kind=IssueKind.DUPLICATE_SLUG,
                    entity_ids=(doc_id,),
                    message=f"listed {len(labels)} times in the manifest: {', '.join(labels)}",
                    source=entry.source,
                    line=entry.line,
                )
            )

        paths: dict[str, list[Document]] = {}
        for doc in self.documents:
            paths.setdefault(doc.doc_id, []).append(doc)
        for doc_id, docs in paths.items():
            if len(docs) < 2:
                continue
            names = ", ".join(d.path.as_posix() for d in docs)
            self._emit(
                ValidationIssue(
                    kind=IssueKind.DUPLICATE_SLUG,
                    entity_ids=(doc_id,),
                    message=f"{len(docs)} source files share this id: {names}",
                    source=docs[1].path,
                )
            )

    def run(self) -> list[ValidationIssue]:
        self.check_manifest_targets()
        self.check_orphans()
        self.check_links()
        self.check_authors()
        self.check_duplicates()
        return self.issues


def validate(
    documents: Iterable[Document],
    manifest: Manifest,
    registry: AuthorRegistry,
    options: CheckOptions | None = None,
) -> list[ValidationIssue]:
    """Cross-check documents, links, authors and the manifest tree."""
    issues = _Checker(documents, manifest, registry, options or CheckOptions()).run()
    logger.info("Validation produced %d issue(s)", len(issues))
    return issues


__all__ = ["validate"]
