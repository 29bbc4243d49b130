from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from anthocheck.ingest.error_handling import MalformedFrontMatter

FRONT_MATTER_OPEN = "---"
FRONT_MATTER_CLOSE = ("---", "...")


@dataclass(frozen=True)
class SplitSource:
    """A source file split into metadata and body.

    - body_line: 1-based line of the file on which ``body`` starts
    """

    metadata: dict[str, str] = field(default_factory=dict)
    body: str = ""
    body_line: int = 1


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_tags(value: str) -> tuple[str, ...]:
    """Parse ``a, b`` or ``[a, b]`` into a tuple of tags."""
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]
    return tuple(t for t in (_unquote(part) for part in value.split(",")) if t)


def split_front_matter(text: str, path: Path | None = None) -> SplitSource:
    """Separate an optional leading ``---`` front-matter block from the body.

    Absent front-matter is not an error. A block that opens but never closes,
    or that holds a line which is not ``key: value``, raises
    ``MalformedFrontMatter``. Keys are lowercased. A key with an empty value
    followed by ``- item`` lines holds the items joined with ``, ``.
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n").rstrip() != FRONT_MATTER_OPEN:
        return SplitSource(metadata={}, body=text, body_line=1)

    metadata: dict[str, str] = {}
    list_key: str | None = None
    items: list[str] = []
    for idx in range(1, len(lines)):
        raw = lines[idx].rstrip("\r\n")
        stripped = raw.strip()
        if stripped in FRONT_MATTER_CLOSE and raw == raw.lstrip():
            return SplitSource(
                metadata=metadata,
                body="".join(lines[idx + 1 :]),
                body_line=idx + 2,
            )
        if not stripped or stripped.startswith("#"):
            continue
        if list_key is not None and (stripped == "-" or stripped.startswith("- ")):
            item = _unquote(stripped[1:])
            if item:
                items.append(item)
                metadata[list_key] = ", ".join(items)
            continue
        key, sep, value = raw.partition(":")
        if not sep or not key.strip():
            raise MalformedFrontMatter(path, idx + 1, f"expected 'key: value', got {stripped!r}")
        name = key.strip().lower()
        metadata[name] = _unquote(value)
        # An empty value may open a block list of "- item" lines
        list_key = name if not value.strip() else None
        items = []

    raise MalformedFrontMatter(path, 1, "front-matter block is never closed")


__all__ = ["SplitSource", "parse_tags", "split_front_matter"]
