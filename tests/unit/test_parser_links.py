from anthocheck.model.corpus import LinkStyle
from anthocheck.parser.links import (
    LinkExtractor,
    collect_anchors,
    collect_definitions,
    collect_heading_titles,
    collect_html_anchors,
    extract_links,
    mask_code_spans,
    normalize_label,
    resolve_reference,
    shared_definitions,
)


def test_inline_links_in_source_order() -> None:
    body = "See [intro](introduction.md) and [the book](https://doc.rust-lang.org/book/).\n"
    links = extract_links("essay", body)
    assert [(l.label, l.target) for l in links] == [
        ("intro", "introduction.md"),
        ("the book", "https://doc.rust-lang.org/book/"),
    ]
    assert links[0].style is LinkStyle.INLINE
    assert links[0].line == 1
    assert links[0].column == 5
    assert links[0].source == "essay"


def test_images_are_not_links() -> None:
    links = extract_links("essay", "![logo](img/logo.png) then [next](next.md)\n")
    assert [l.target for l in links] == ["next.md"]


def test_code_is_never_scanned() -> None:
    body = (
        "```rust\n"
        "let v = a[i](b);\n"
        "[x](in-fence.md)\n"
        "```\n"
        "`[y](in-span.md)` but [z](out.md)\n"
    )
    links = extract_links("essay", body)
    assert [(l.target, l.line) for l in links] == [("out.md", 5)]


def test_mask_code_spans_keeps_columns() -> None:
    line = "a `[b](c)` d"
    masked = mask_code_spans(line)
    assert len(masked) == len(line)
    assert "[" not in masked


def test_reference_links_resolve_against_local_definitions() -> None:
    body = (
        "[Closures][c], [Rust][] and [The Book].\n"
        "\n"
        "[c]: closures.html\n"
        "[rust]: <https://www.rust-lang.org> \"Rust\"\n"
        "[the   book]: https://doc.rust-lang.org/book/\n"
    )
    links = extract_links("essay", body)
    assert [(l.style, l.reference, l.target) for l in links] == [
        (LinkStyle.FULL, "c", "closures.html"),
        (LinkStyle.COLLAPSED, "rust", "https://www.rust-lang.org"),
        (LinkStyle.SHORTCUT, "the book", "https://doc.rust-lang.org/book/"),
    ]


def test_undefined_reference_has_empty_target() -> None:
    links = extract_links("essay", "Read [this][missing].\n")
    assert len(links) == 1
    assert links[0].unresolved
    assert links[0].is_reference
    assert links[0].reference == "missing"


def test_footnotes_and_task_boxes_are_skipped() -> None:
    body = "- [x] done\n- [ ] todo\nClaim.[^1]\n\n[^1]: Source.\n"
    assert extract_links("essay", body) == []
    assert collect_definitions(body) == {}


def test_first_definition_wins() -> None:
    body = "[a]: first.md\n[A]: second.md\n"
    assert collect_definitions(body) == {"a": "first.md"}
    assert normalize_label("  The\tBook ") == "the book"


def test_extractor_is_restartable() -> None:
    extractor = LinkExtractor("essay", "[a](a.md)\n[b](b.md)\n")
    first = list(extractor)
    second = list(extractor)
    assert first == second
    assert [l.target for l in first] == ["a.md", "b.md"]


def test_first_line_offsets_link_positions() -> None:
    links = list(LinkExtractor("essay", "text\n[a](b.md)\n", first_line=5))
    assert links[0].line == 6


def test_heading_titles_cover_atx_setext_and_custom_ids() -> None:
    body = "# Title #\n\nSub\n---\n\n## Custom {#my-id}\n\n#hashtag is prose\n"
    assert collect_heading_titles(body) == [
        (1, "Title", None),
        (2, "Sub", None),
        (2, "Custom", "my-id"),
    ]


def test_html_anchors_from_id_and_name() -> None:
    body = '<a name="Huon Wilson"></a>\n<span id="note-1">x</span>\n<a href="x">no</a>\n'
    assert collect_html_anchors(body) == {"Huon Wilson", "note-1"}


def test_collect_anchors_deduplicates_repeated_headings() -> None:
    body = (
        "# Hello, World!\n"
        "\n"
        "## Hello, World!\n"
        "\n"
        "## Hello, World!\n"
        "\n"
        "## Custom {#my-id}\n"
        "\n"
        '<a name="Huon Wilson"></a>\n'
    )
    anchors = collect_anchors(body)
    assert {"hello-world", "hello-world-1", "hello-world-2", "my-id", "Huon Wilson"} <= anchors
    assert "custom" not in anchors


def test_resolve_reference_against_shared_definitions(make_document) -> None:
    footer = make_document("footer", "[home]: https://www.rust-lang.org\n[dup]: a.md\n")
    other = make_document("other", "[dup]: b.md\n")
    shared = shared_definitions([footer, other])
    assert shared["dup"] == {"a.md", "b.md"}

    usage, conflict, shortcut, inline = extract_links(
        "essay", "[Rust][home] [x][dup] [nothing] [inline](c.md)\n"
    )
    assert resolve_reference(usage, shared) == "https://www.rust-lang.org"
    assert resolve_reference(conflict, shared) is None
    assert resolve_reference(shortcut, shared) is None
    assert resolve_reference(inline, shared) == "c.md"
