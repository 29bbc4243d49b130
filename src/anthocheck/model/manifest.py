"""Arena-backed table-of-contents tree.

Entries live in a flat list and refer to each other by index. Index 0 is a
synthetic root that owns every top-level section or chapter.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from anthocheck.ingest.error_handling import MalformedManifest

ROOT_INDEX = 0


class EntryKind(Enum):
    ROOT = "root"
    SECTION = "section"
    CHAPTER = "chapter"


@dataclass
class ManifestEntry:
    index: int
    title: str
    kind: EntryKind
    target: str | None = None  # raw target as written, "" for drafts
    doc_id: str | None = None  # resolved document id for internal targets
    external: bool = False
    parent: int | None = None
    depth: int = 0
    source: Path | None = None
    line: int | None = None
    children: list[int] = field(default_factory=list)

    @property
    def is_draft(self) -> bool:
        return self.kind is EntryKind.CHAPTER and not self.target

    def location(self) -> str | None:
        if self.source is None:
            return None
        return f"{self.source}:{self.line}" if self.line else str(self.source)


@dataclass
class Manifest:
    entries: list[ManifestEntry] = field(default_factory=list)
    sources: list[Path] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.entries:
            self.entries.append(ManifestEntry(index=ROOT_INDEX, title="", kind=EntryKind.ROOT))

    @property
    def root(self) -> ManifestEntry:
        return self.entries[ROOT_INDEX]

    def add(self, parent: int, entry: ManifestEntry) -> ManifestEntry:
        entry.index = len(self.entries)
        entry.parent = parent
        self.entries.append(entry)
        self.entries[parent].children.append(entry.index)
        return entry

    def children(self, index: int) -> list[ManifestEntry]:
        return [self.entries[i] for i in self.entries[index].children]

    def walk(self, start: int = ROOT_INDEX) -> Iterator[ManifestEntry]:
        """Yield entries below ``start`` in document order (pre-order)."""
        stack = list(reversed(self.entries[start].children))
        while stack:
            idx = stack.pop()
            entry = self.entries[idx]
            yield entry
            stack.extend(reversed(entry.children))

    def chapters(self) -> list[ManifestEntry]:
        return [e for e in self.walk() if e.kind is EntryKind.CHAPTER]

    def reachable_documents(self) -> set[str]:
        return {e.doc_id for e in self.walk() if e.doc_id is not None}

    def check_acyclic(self) -> None:
        """Verify the arena forms a single finite tree rooted at index 0.

        Every non-root entry must have exactly one parent listing it, and
        parents must precede their children in the arena. Both properties
        together rule out cycles without chasing references.
        """
        source = self.sources[0] if self.sources else None
        claimed = [0] * len(self.entries)
        for entry in self.entries:
            for child in entry.children:
                if not 0 < child < len(self.entries):
                    raise MalformedManifest(
                        source, entry.line, f"entry {entry.index} has invalid child {child}"
                    )
                if child <= entry.index:
                    raise MalformedManifest(
                        source, entry.line, f"entry {entry.index} links back to entry {child}"
                    )
                claimed[child] += 1
        for entry in self.entries[1:]:
            if claimed[entry.index] != 1 or entry.parent is None:
                raise MalformedManifest(
                    source,
                    entry.line,
                    f"entry {entry.index} ('{entry.title}') is not owned by exactly one parent",
                )


def combine_manifests(manifests: list[Manifest]) -> Manifest:
    """Merge several manifests under one root, preserving their order."""

    if len(manifests) == 1:
        return manifests[0]

    combined = Manifest()
    for manifest in manifests:
        combined.sources.extend(manifest.sources)
        remap: dict[int, int] = {ROOT_INDEX: ROOT_INDEX}
        # Arena order already places parents before children
        for entry in manifest.entries[1:]:
            assert entry.parent is not None
            copy = ManifestEntry(
                index=0,
                title=entry.title,
                kind=entry.kind,
                target=entry.target,
                doc_id=entry.doc_id,
                external=entry.external,
                depth=entry.depth,
                source=entry.source,
                line=entry.line,
            )
            combined.add(remap[entry.parent], copy)
            remap[entry.index] = copy.index
    return combined


__all__ = ["EntryKind", "Manifest", "ManifestEntry", "ROOT_INDEX", "combine_manifests"]
