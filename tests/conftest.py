import logging
import sys
from collections.abc import Callable
from pathlib import Path
from types import MappingProxyType

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from anthocheck.model.corpus import Document  # noqa: E402
from anthocheck.parser.links import LinkExtractor, collect_anchors, collect_definitions  # noqa: E402

CLEAN_BOOK: dict[str, str] = {
    "SUMMARY.md": (
        "# Summary\n"
        "\n"
        "[Introduction](introduction.md)\n"
        "\n"
        "# Essays\n"
        "\n"
        "- [Finding Closure in Rust](finding-closure-in-rust.md)\n"
        "- [Fearless Concurrency](fearless-concurrency.md)\n"
        "\n"
        "# Appendix\n"
        "\n"
        "- [Authors](authors.md)\n"
    ),
    "introduction.md": (
        "# Introduction\n"
        "\n"
        "Start with [closures](finding-closure-in-rust.html#the-closure-traits)\n"
        "by [Huon Wilson](authors.html#Huon%20Wilson).\n"
    ),
    "finding-closure-in-rust.md": (
        "---\n"
        "title: Finding Closure in Rust\n"
        "author: Huon Wilson\n"
        "tags: [closures, traits]\n"
        "---\n"
        "# Finding Closure in Rust\n"
        "\n"
        "## The closure traits\n"
        "\n"
        "```rust\n"
        "let v = arr[i];\n"
        "```\n"
    ),
    "fearless-concurrency.md": (
        "---\n"
        "title: Fearless Concurrency\n"
        "author: Aaron Turon\n"
        "---\n"
        "Back to the [introduction][intro], or read [the book](https://doc.rust-lang.org/book/).\n"
        "\n"
        "[intro]: introduction.md\n"
    ),
    "authors.md": "# Authors\n\n## Huon Wilson\n\n## Aaron Turon\n",
}


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``files`` (relative path -> text) below ``root`` and return it."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def clean_book(tmp_path: Path) -> Path:
    """A small anthology with no consistency issues."""
    return write_tree(tmp_path / "src", CLEAN_BOOK)


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Factory building in-memory Documents the way the loader does."""

    def _make(
        doc_id: str,
        body: str = "",
        *,
        author: str | None = None,
        title: str | None = None,
        path: Path | None = None,
    ) -> Document:
        definitions = collect_definitions(body)
        return Document(
            doc_id=doc_id,
            path=path or Path(f"{doc_id}.md"),
            title=title or doc_id,
            body=body,
            author=author,
            links=tuple(LinkExtractor(doc_id, body, definitions=definitions)),
            anchors=frozenset(collect_anchors(body)),
            definitions=MappingProxyType(definitions),
        )

    return _make


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests.

    The CLI installs a RichHandler with ``force=True``; restore the root
    logger afterwards so later tests see the default configuration.
    """
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    logging.root.handlers.clear()
    logging.root.addHandler(logging.NullHandler())

    yield

    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)
