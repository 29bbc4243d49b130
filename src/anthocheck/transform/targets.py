from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote

from anthocheck.ids import strip_document_suffix

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


class TargetKind(Enum):
    EXTERNAL = "external"  # http(s)://, mailto:, //host/...
    AUTHOR = "author"  # authors.html#Encoded%20Name
    ANCHOR = "anchor"  # #fragment within the same document
    INTERNAL = "internal"  # another document, optionally with a fragment
    EMPTY = "empty"


@dataclass(frozen=True)
class TargetRef:
    kind: TargetKind
    raw: str
    doc_id: str | None = None
    fragment: str | None = None


def is_external(target: str) -> bool:
    return target.startswith("//") or bool(_SCHEME_RE.match(target))


def resolve_doc_path(path: str, source_dir: str = "") -> str | None:
    """Resolve a relative link path to a document id.

    ``../part/ch.html`` from ``essays`` resolves to ``part/ch``. Paths that
    climb above the source root resolve to None.
    """
    path = unquote(path)
    if path.startswith("/"):
        joined = path.lstrip("/")
    else:
        joined = posixpath.join(source_dir, path) if source_dir else path
    normalized = posixpath.normpath(joined)
    if normalized in ("", ".") or normalized == ".." or normalized.startswith("../"):
        return None
    return strip_document_suffix(normalized)


def classify_target(target: str, source_dir: str = "", *, authors_index: str = "authors") -> TargetRef:
    """Classify a link target and resolve internal paths to document ids.

    Args:
        target: Link target as written
        source_dir: Directory of the linking document, relative to the root
        authors_index: Document id of the authors index page
    """
    target = target.strip()
    if not target:
        return TargetRef(TargetKind.EMPTY, target)
    if is_external(target):
        return TargetRef(TargetKind.EXTERNAL, target)

    path, sep, fragment = target.partition("#")
    frag = fragment if sep else None
    if not path:
        return TargetRef(TargetKind.ANCHOR, target, fragment=frag)

    # Query strings never name a different document
    path = path.split("?", 1)[0]
    doc_id = resolve_doc_path(path, source_dir)
    if doc_id is not None and doc_id == authors_index and frag:
        return TargetRef(TargetKind.AUTHOR, target, doc_id=doc_id, fragment=frag)
    return TargetRef(TargetKind.INTERNAL, target, doc_id=doc_id, fragment=frag)


__all__ = ["TargetKind", "TargetRef", "classify_target", "is_external", "resolve_doc_path"]
