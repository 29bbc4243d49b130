"""Author registry: canonical author slugs for ``authors.html#Name`` links.

The registry is built once per run from the full corpus and is read-only
afterwards. Names are the same author only when their percent-decoded,
whitespace-normalized forms are byte-equal. Spellings that are merely close
(``Manish%20Goregaokar`` vs ``Manish%20aGoregaokar``) stay distinct and are
reported as ambiguities instead of being merged.
"""

from __future__ import annotations

import difflib
import logging
import posixpath
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from anthocheck.ids import author_slug, normalize_author_name
from anthocheck.model.corpus import Document, Link
from anthocheck.parser.links import (
    collect_heading_titles,
    collect_html_anchors,
    resolve_reference,
    shared_definitions,
)
from anthocheck.transform.targets import TargetKind, classify_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Author:
    slug: str
    name: str
    variants: tuple[str, ...] = ()
    documents: tuple[str, ...] = ()  # ids attributed via front-matter
    cited_by: tuple[str, ...] = ()  # ids linking to authors.html#<slug>
    declared: bool = False


@dataclass(frozen=True)
class AuthorCitation:
    link: Link
    slug: str
    name: str


@dataclass(frozen=True)
class AuthorRegistry:
    authors: Mapping[str, Author] = field(default_factory=lambda: MappingProxyType({}))
    citations: tuple[AuthorCitation, ...] = ()
    ambiguities: tuple[tuple[str, str], ...] = ()
    has_declarations: bool = False
    similarity: float = 0.9

    def __len__(self) -> int:
        return len(self.authors)

    def __contains__(self, slug: object) -> bool:
        return slug in self.authors

    def is_known(self, slug: str) -> bool:
        """A slug is known when declared, or when nothing is declared at all."""
        author = self.authors.get(slug)
        if author is None:
            return False
        return author.declared or not self.has_declarations

    def resolve(self, fragment: str) -> Author | None:
        slug = author_slug(fragment)
        return self.authors[slug] if self.is_known(slug) else None

    def known_names(self) -> list[str]:
        return sorted(a.name for a in self.authors.values() if self.is_known(a.slug))

    def suggest(self, name: str, limit: int = 1) -> list[str]:
        candidates = [n for n in self.known_names() if n != name]
        return difflib.get_close_matches(name, candidates, n=limit, cutoff=self.similarity)


class _Builder:
    def __init__(self) -> None:
        self.names: dict[str, str] = {}
        self.variants: dict[str, set[str]] = {}
        self.documents: dict[str, set[str]] = {}
        self.cited_by: dict[str, set[str]] = {}
        self.declared: set[str] = set()

    def add(
        self, raw: str, *, declared: bool = False, doc_id: str | None = None, cited: bool = False
    ) -> str | None:
        name = normalize_author_name(raw)
        if not name:
            return None
        slug = author_slug(name)
        self.names.setdefault(slug, name)
        self.variants.setdefault(slug, set()).add(raw)
        if declared:
            self.declared.add(slug)
            if doc_id is not None:
                self.documents.setdefault(slug, set()).add(doc_id)
        if cited and doc_id is not None:
            self.cited_by.setdefault(slug, set()).add(doc_id)
        return slug

    def freeze(self) -> dict[str, Author]:
        return {
            slug: Author(
                slug=slug,
                name=self.names[slug],
                variants=tuple(sorted(self.variants.get(slug, ()))),
                documents=tuple(sorted(self.documents.get(slug, ()))),
                cited_by=tuple(sorted(self.cited_by.get(slug, ()))),
                declared=slug in self.declared,
            )
            for slug in sorted(self.names)
        }


def declared_index_names(index_doc: Document) -> list[str]:
    """Author names declared by the authors index page.

    Level 2+ headings and HTML ``id``/``name`` anchors each declare one name;
    the level 1 heading is the page title.
    """
    names = [text for level, text, _ in collect_heading_titles(index_doc.body) if text and level >= 2]
    names.extend(sorted(collect_html_anchors(index_doc.body)))
    return names


def find_ambiguities(names: Mapping[str, str], similarity: float) -> list[tuple[str, str]]:
    """Pairs of distinct slugs whose names are near-duplicates."""
    slugs = sorted(names)
    pairs: list[tuple[str, str]] = []
    for i, a in enumerate(slugs):
        for b in slugs[i + 1 :]:
            ratio = difflib.SequenceMatcher(None, names[a], names[b]).ratio()
            if ratio >= similarity:
                pairs.append((a, b))
    return pairs


def build_author_registry(
    documents: Iterable[Document],
    *,
    authors_index: str = "authors",
    similarity: float = 0.9,
) -> AuthorRegistry:
    """Build the canonical author map from the whole corpus.

    Declared authors come from front-matter ``author`` fields and from the
    authors index document. Cited authors come from links into the index,
    including reference usages defined in another document (shared footers).
    Must run after every document has been loaded.
    """
    docs = sorted(documents, key=lambda d: (d.doc_id, d.path.as_posix()))
    builder = _Builder()
    citations: list[AuthorCitation] = []

    for doc in docs:
        for name in doc.authors():
            builder.add(name, declared=True, doc_id=doc.doc_id)
        if doc.doc_id == authors_index:
            for name in declared_index_names(doc):
                builder.add(name, declared=True)

    shared = shared_definitions(docs)
    for doc in docs:
        source_dir = posixpath.dirname(doc.doc_id)
        for link in doc.links:
            target = resolve_reference(link, shared)
            if target is None:
                continue
            ref = classify_target(target, source_dir, authors_index=authors_index)
            if ref.kind is not TargetKind.AUTHOR or ref.fragment is None:
                continue
            slug = builder.add(ref.fragment, doc_id=doc.doc_id, cited=True)
            if slug is not None:
                citations.append(AuthorCitation(link=link, slug=slug, name=builder.names[slug]))

    authors = builder.freeze()
    has_declarations = bool(builder.declared)
    known = {
        slug: a.name for slug, a in authors.items() if a.declared or not has_declarations
    }
    ambiguities = find_ambiguities(known, similarity)
    logger.info(
        "Author registry: %d authors (%d declared), %d citations, %d ambiguities",
        len(authors),
        len(builder.declared),
        len(citations),
        len(ambiguities),
    )
    return AuthorRegistry(
        authors=MappingProxyType(authors),
        citations=tuple(citations),
        ambiguities=tuple(ambiguities),
        has_declarations=has_declarations,
        similarity=similarity,
    )


__all__ = [
    "Author",
    "AuthorCitation",
    "AuthorRegistry",
    "build_author_registry",
    "declared_index_names",
    "find_ambiguities",
]
