from __future__ import annotations

import re
import unicodedata
from pathlib import Path, PurePosixPath
from urllib.parse import quote, unquote

DOCUMENT_SUFFIXES = (".md", ".markdown", ".html", ".htm")


def document_id(path: Path, root: Path) -> str:
    """Derive the document id from a source path.

    The id is the root-relative POSIX path with its extension removed, so
    ``src/part/finding-closure-in-rust.md`` under ``src`` becomes
    ``part/finding-closure-in-rust``.
    """

    rel = PurePosixPath(path.relative_to(root).as_posix())
    return str(rel.with_suffix("")) if rel.suffix else str(rel)


def strip_document_suffix(target: str) -> str:
    lowered = target.lower()
    for suffix in DOCUMENT_SUFFIXES:
        if lowered.endswith(suffix):
            return target[: -len(suffix)]
    return target


def heading_slug(text: str) -> str:
    """Anchor id a book renderer assigns to a heading.

    Mirrors the GitHub/mdbook rule: lowercase, drop punctuation except ``-``
    and ``_``, spaces become hyphens. Non-ASCII letters are kept.
    """

    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    lowered = unicodedata.normalize("NFC", text.strip().lower())
    kept = "".join(ch for ch in lowered if ch.isalnum() or ch in " -_")
    return kept.replace(" ", "-")


def normalize_author_name(raw: str) -> str:
    """Percent-decode and whitespace-normalize an author name or fragment."""

    return " ".join(unquote(raw).split())


def author_slug(name: str) -> str:
    """Stable slug for an author: the percent-encoded normalized name."""

    return quote(normalize_author_name(name), safe="")
