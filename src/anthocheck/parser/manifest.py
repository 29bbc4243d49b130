"""Table-of-contents (``SUMMARY.md``) parsing.

The grammar is line oriented:

- ``#``..``######`` headings open a section; deeper headings nest inside the
  nearest shallower open section.
- ``[Title](target)``, ``[Title]: target`` and ``[Title] target`` lines,
  optionally written as list items, are chapter entries of the enclosing
  section. List items indented below a chapter become its sub-chapters.
- ``[Title]()`` is a draft chapter (no document yet).
- ``---`` separators, blank lines and prose lines are ignored.

Entries are kept in source order; the order is what readers see.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from anthocheck.ingest.error_handling import MalformedManifest
from anthocheck.model.manifest import ROOT_INDEX, EntryKind, Manifest, ManifestEntry
from anthocheck.transform.targets import TargetKind, classify_target

logger = logging.getLogger(__name__)

_TITLE = r"(?P<title>(?:[^\[\]\\]|\\.|\[[^\[\]]*\])*)"
_HEADING_RE = re.compile(r"^ {0,3}(?P<marks>#{1,6})\s+(?P<text>.*?)\s*#*\s*$")
_SEPARATOR_RE = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")
_ITEM_RE = re.compile(r"^(?P<indent>[ \t]*)(?:(?P<marker>[-*+]|\d+[.)])\s+)?(?P<rest>\[.*)$")
_INLINE_RE = re.compile(r"^\[" + _TITLE + r"\]\(\s*(?P<target><[^>]*>|[^()\s]*)\s*\)\s*$")
_DEFINITION_RE = re.compile(r"^\[" + _TITLE + r"\]:\s*(?P<target>\S*)\s*$")
_BARE_RE = re.compile(r"^\[" + _TITLE + r"\]\s+(?P<target>\S+)\s*$")


def _indent_width(indent: str) -> int:
    return len(indent.expandtabs(4))


def _parse_item(rest: str) -> tuple[str, str] | None:
    for pattern in (_INLINE_RE, _DEFINITION_RE, _BARE_RE):
        m = pattern.match(rest)
        if m:
            target = m.group("target").strip()
            if target.startswith("<") and target.endswith(">"):
                target = target[1:-1].strip()
            return m.group("title").strip(), target
    return None


def parse_manifest(
    text: str,
    *,
    source: Path | None = None,
    base_dir: str = "",
    require_sections: bool = False,
    authors_index: str = "authors",
) -> Manifest:
    """Parse manifest text into an arena-backed ManifestEntry tree.

    Args:
        text: Manifest contents
        source: Manifest path, used in error messages and entry locations
        base_dir: Directory of the manifest relative to the source root;
            targets are resolved against it
        require_sections: Reject chapters that have no enclosing heading

    Raises:
        MalformedManifest: On a dangling bracket, a link line without a
            target, or a section-less chapter when sections are required
    """
    manifest = Manifest()
    if source is not None:
        manifest.sources.append(source)

    sections: list[tuple[int, int]] = []  # (heading level, entry index)
    chapters: list[tuple[int, int]] = []  # (indent width, entry index)

    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or _SEPARATOR_RE.match(line):
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            level = len(heading.group("marks"))
            while sections and sections[-1][0] >= level:
                sections.pop()
            parent = sections[-1][1] if sections else ROOT_INDEX
            entry = manifest.add(
                parent,
                ManifestEntry(
                    index=0,
                    title=heading.group("text").strip(),
                    kind=EntryKind.SECTION,
                    depth=level,
                    source=source,
                    line=line_no,
                ),
            )
            sections.append((level, entry.index))
            chapters = []
            continue

        item = _ITEM_RE.match(line)
        if not item:
            logger.debug("Ignoring manifest prose line %d: %r", line_no, line)
            continue

        parsed = _parse_item(item.group("rest").rstrip())
        if parsed is None:
            rest = item.group("rest")
            reason = (
                "dangling bracket in link line"
                if rest.count("[") != rest.count("]") or ("](" in rest and rest.count("(") != rest.count(")"))
                else "link line has no target"
            )
            raise MalformedManifest(source, line_no, f"{reason}: {line.strip()!r}")
        title, target = parsed

        width = _indent_width(item.group("indent")) if item.group("marker") else 0
        while chapters and chapters[-1][0] >= width:
            chapters.pop()
        if chapters:
            parent = chapters[-1][1]
        elif sections:
            parent = sections[-1][1]
        else:
            if require_sections:
                raise MalformedManifest(source, line_no, f"chapter '{title}' has no enclosing section")
            parent = ROOT_INDEX

        ref = classify_target(target, base_dir, authors_index=authors_index)
        entry = manifest.add(
            parent,
            ManifestEntry(
                index=0,
                title=title,
                kind=EntryKind.CHAPTER,
                target=target,
                doc_id=ref.doc_id if ref.kind in (TargetKind.INTERNAL, TargetKind.AUTHOR) else None,
                external=ref.kind is TargetKind.EXTERNAL,
                depth=manifest.entries[parent].depth + 1,
                source=source,
                line=line_no,
            ),
        )
        if item.group("marker"):
            chapters.append((width, entry.index))

    manifest.check_acyclic()
    logger.debug("Parsed manifest %s: %d entries", source, len(manifest.entries) - 1)
    return manifest


def load_manifest(
    path: Path,
    root: Path,
    *,
    require_sections: bool = False,
    authors_index: str = "authors",
) -> Manifest:
    """Read and parse a manifest file; targets resolve relative to its directory."""
    text = path.read_text(encoding="utf-8")
    try:
        base_dir = Path(os.path.relpath(path.parent.resolve(), root.resolve())).as_posix()
    except ValueError:  # different drive on Windows
        base_dir = ""
    if base_dir == "." or base_dir.startswith(".."):
        base_dir = ""
    return parse_manifest(
        text,
        source=path,
        base_dir=base_dir,
        require_sections=require_sections,
        authors_index=authors_index,
    )


__all__ = ["load_manifest", "parse_manifest"]
