"""Corpus data structures: source documents and the links they carry."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


class LinkStyle(Enum):
    """Markdown link syntax a link was written in."""

    INLINE = "inline"  # [text](target)
    FULL = "full"  # [text][label]
    COLLAPSED = "collapsed"  # [text][]
    SHORTCUT = "shortcut"  # [label]


@dataclass(frozen=True)
class Link:
    source: str
    label: str
    target: str
    line: int  # 1-based, relative to the whole file
    column: int  # 1-based
    style: LinkStyle = LinkStyle.INLINE
    reference: str | None = None  # normalized label for reference-style usages

    @property
    def is_reference(self) -> bool:
        return self.style is not LinkStyle.INLINE

    @property
    def unresolved(self) -> bool:
        return not self.target


@dataclass(frozen=True)
class Document:
    """A single anthology source file.

    - doc_id: root-relative path without extension; unique per corpus
    - body_line: 1-based line number on which the body starts (after
      front-matter), used to report link positions against the file
    """

    doc_id: str
    path: Path
    title: str
    body: str
    body_line: int = 1
    author: str | None = None
    tags: tuple[str, ...] = ()
    front_matter: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    links: tuple[Link, ...] = ()
    anchors: frozenset[str] = frozenset()
    definitions: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def authors(self) -> list[str]:
        """Split the front-matter author field into individual names."""
        if not self.author:
            return []
        parts = re.split(r",|\s+and\s+|&", self.author)
        return [p.strip() for p in parts if p.strip()]


__all__ = ["Document", "Link", "LinkStyle"]
