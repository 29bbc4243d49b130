"""Markdown link, reference-definition and anchor extraction.

Only the link-bearing subset of Markdown is recognized: inline links,
reference-style links and their definitions, ATX/setext headings and HTML
``id``/``name`` anchors. Fenced code blocks and inline code spans are skipped
so that code samples such as ``arr[i]`` never produce links.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping

from bs4 import BeautifulSoup

from anthocheck.ids import heading_slug
from anthocheck.model.corpus import Document, Link, LinkStyle

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})")
_CODE_SPAN_RE = re.compile(r"(?P<ticks>`+)(?:.+?)(?P=ticks)")
_DEFINITION_RE = re.compile(
    r"^ {0,3}\[(?P<label>(?:[^\[\]\\]|\\.)+)\]:\s*"
    r"(?P<target><[^>]*>|\S+)"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*$"
)
_LINK_RE = re.compile(
    r"(?<!\\)(?P<bang>!?)\[(?P<text>(?:[^\[\]\\]|\\.)*)\]"
    r"(?:"
    r"\(\s*(?P<inline><[^>]*>|[^()\s]*(?:\([^()\s]*\)[^()\s]*)*)"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
    r"|\[(?P<ref>(?:[^\[\]\\]|\\.)*)\]"
    r")?"
)
_ATX_RE = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:\s+(?P<text>.*?))?\s*$")
_SETEXT_RE = re.compile(r"^ {0,3}(?:=+|-+)\s*$")
_CUSTOM_ID_RE = re.compile(r"\s*\{#(?P<id>[^}\s]+)[^}]*\}\s*$")


def normalize_label(label: str) -> str:
    """Reference labels match case-insensitively with whitespace collapsed."""
    return " ".join(label.split()).casefold()


def _unwrap_target(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("<") and raw.endswith(">"):
        return raw[1:-1].strip()
    return raw


def iter_prose_lines(body: str) -> Iterator[tuple[int, str]]:
    """Yield ``(offset, line)`` for body lines outside fenced code blocks.

    ``offset`` is the 0-based line index within ``body``.
    """
    fence: str | None = None
    for offset, line in enumerate(body.splitlines()):
        m = _FENCE_RE.match(line)
        if fence is None:
            if m:
                fence = m.group("fence")
                continue
            yield offset, line
        elif m and m.group("fence")[0] == fence[0] and len(m.group("fence")) >= len(fence):
            if not line.strip().strip(fence[0]):
                fence = None


def mask_code_spans(line: str) -> str:
    """Blank out inline code spans, keeping column positions intact."""
    return _CODE_SPAN_RE.sub(lambda m: " " * len(m.group(0)), line)


def collect_definitions(body: str) -> dict[str, str]:
    """Map normalized reference labels to their targets.

    The first definition of a label wins, as in CommonMark.
    """
    definitions: dict[str, str] = {}
    for _, line in iter_prose_lines(body):
        m = _DEFINITION_RE.match(line)
        if not m:
            continue
        label = normalize_label(m.group("label"))
        if label.startswith("^"):
            continue  # footnote definition
        definitions.setdefault(label, _unwrap_target(m.group("target")))
    return definitions


class LinkExtractor:
    """Lazy, restartable sequence of the links in one document body.

    Each call to ``iter()`` rescans the body, so the extractor can be
    iterated any number of times and always yields the same links in source
    order. Reference usages whose label has no definition in this body are
    yielded with an empty target; resolution against other documents happens
    during validation.
    """

    def __init__(
        self,
        doc_id: str,
        body: str,
        *,
        first_line: int = 1,
        definitions: dict[str, str] | None = None,
    ) -> None:
        self.doc_id = doc_id
        self.body = body
        self.first_line = first_line
        self.definitions = definitions if definitions is not None else collect_definitions(body)

    def __iter__(self) -> Iterator[Link]:
        for offset, raw_line in iter_prose_lines(self.body):
            if _DEFINITION_RE.match(raw_line):
                continue
            line = mask_code_spans(raw_line)
            for m in _LINK_RE.finditer(line):
                if m.group("bang"):
                    continue
                link = self._to_link(m, self.first_line + offset)
                if link is not None:
                    yield link

    def _to_link(self, m: re.Match[str], line_no: int) -> Link | None:
        text = m.group("text")
        column = m.start("bang") + 1
        if m.group("inline") is not None:
            return Link(
                source=self.doc_id,
                label=text.strip(),
                target=_unwrap_target(m.group("inline")),
                line=line_no,
                column=column,
                style=LinkStyle.INLINE,
            )

        ref = m.group("ref")
        if ref is None:
            style = LinkStyle.SHORTCUT
            label = normalize_label(text)
        elif not ref.strip():
            style = LinkStyle.COLLAPSED
            label = normalize_label(text)
        else:
            style = LinkStyle.FULL
            label = normalize_label(ref)

        # Footnotes and task-list boxes are not links
        if not label or label.startswith("^") or (style is LinkStyle.SHORTCUT and label == "x"):
            return None

        return Link(
            source=self.doc_id,
            label=text.strip(),
            target=self.definitions.get(label, ""),
            line=line_no,
            column=column,
            style=style,
            reference=label,
        )


def extract_links(doc_id: str, body: str, *, first_line: int = 1) -> list[Link]:
    return list(LinkExtractor(doc_id, body, first_line=first_line))


def shared_definitions(documents: Iterable[Document]) -> dict[str, set[str]]:
    """Corpus-wide reference definitions: label -> distinct targets."""
    shared: dict[str, set[str]] = {}
    for doc in documents:
        for label, target in doc.definitions.items():
            shared.setdefault(label, set()).add(target)
    return shared


def resolve_reference(link: Link, shared: Mapping[str, set[str]]) -> str | None:
    """Effective target of a link, or None when it cannot be resolved.

    A reference usage with no local definition takes the corpus-wide
    definition of its label when exactly one distinct target exists.
    """
    if link.target:
        return link.target
    if not link.is_reference:
        return None
    targets = shared.get(link.reference or "", set())
    return next(iter(targets)) if len(targets) == 1 else None


def collect_heading_titles(body: str) -> list[tuple[int, str, str | None]]:
    """Return ``(level, text, custom_id)`` for every ATX and setext heading."""
    headings: list[tuple[int, str, str | None]] = []
    prev: str | None = None
    for _, line in iter_prose_lines(body):
        atx = _ATX_RE.match(line)
        if atx:
            text = re.sub(r"\s+#+$", "", atx.group("text") or "").strip()
            headings.append((len(atx.group("marks")), *_split_custom_id(text)))
            prev = None
            continue
        if prev and prev.strip() and _SETEXT_RE.match(line) and not prev.startswith("    "):
            level = 1 if line.strip().startswith("=") else 2
            headings.append((level, *_split_custom_id(prev.strip())))
            prev = None
            continue
        prev = line
    return headings


def _split_custom_id(text: str) -> tuple[str, str | None]:
    m = _CUSTOM_ID_RE.search(text)
    if m:
        return text[: m.start()].strip(), m.group("id")
    return text, None


def collect_html_anchors(body: str) -> set[str]:
    """Return ``id`` and ``name`` attribute values from inline HTML."""
    html_lines = [line for _, line in iter_prose_lines(body) if "<" in line]
    if not html_lines:
        return set()
    soup = BeautifulSoup("\n".join(html_lines), "html.parser")
    anchors: set[str] = set()
    for tag in soup.find_all(attrs={"id": True}):
        anchors.add(str(tag["id"]).strip())
    for tag in soup.find_all("a", attrs={"name": True}):
        anchors.add(str(tag["name"]).strip())
    anchors.discard("")
    return anchors


def collect_anchors(body: str) -> set[str]:
    """All fragment ids a renderer would expose for this body.

    Heading slugs get ``-1``, ``-2``... suffixes on repeats.
    """
    anchors: set[str] = set()
    counts: dict[str, int] = {}
    for _level, text, custom_id in collect_heading_titles(body):
        if custom_id:
            anchors.add(custom_id)
            continue
        base = heading_slug(text)
        if not base:
            continue
        seen = counts.get(base, 0)
        counts[base] = seen + 1
        anchors.add(base if seen == 0 else f"{base}-{seen}")
    anchors |= collect_html_anchors(body)
    logger.debug("Collected %d anchors", len(anchors))
    return anchors


__all__ = [
    "LinkExtractor",
    "collect_anchors",
    "collect_definitions",
    "collect_heading_titles",
    "collect_html_anchors",
    "extract_links",
    "iter_prose_lines",
    "mask_code_spans",
    "normalize_label",
    "resolve_reference",
    "shared_definitions",
]
