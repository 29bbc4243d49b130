from anthocheck.transform.targets import TargetKind, classify_target, is_external, resolve_doc_path


def test_external_targets() -> None:
    for target in ("https://blog.rust-lang.org", "mailto:editor@example.org", "//cdn.example.org/x"):
        assert is_external(target)
        assert classify_target(target).kind is TargetKind.EXTERNAL


def test_same_document_anchor() -> None:
    ref = classify_target("#the-closure-traits")
    assert ref.kind is TargetKind.ANCHOR
    assert ref.fragment == "the-closure-traits"
    assert ref.doc_id is None


def test_author_links_point_into_the_index() -> None:
    ref = classify_target("authors.html#Huon%20Wilson")
    assert ref.kind is TargetKind.AUTHOR
    assert ref.doc_id == "authors"
    assert ref.fragment == "Huon%20Wilson"

    # From a sub-directory, and with a custom index id
    assert classify_target("../authors.html#X", "essays").kind is TargetKind.AUTHOR
    assert classify_target("people.html#X", authors_index="people").kind is TargetKind.AUTHOR
    # Without a fragment it is a plain document link
    assert classify_target("authors.html").kind is TargetKind.INTERNAL


def test_internal_targets_resolve_relative_to_source() -> None:
    ref = classify_target("../part/ch.html#intro", "essays")
    assert ref.kind is TargetKind.INTERNAL
    assert ref.doc_id == "part/ch"
    assert ref.fragment == "intro"
    assert classify_target("ch.md?plain=1").doc_id == "ch"


def test_empty_target() -> None:
    assert classify_target("  ").kind is TargetKind.EMPTY


def test_resolve_doc_path_edges() -> None:
    assert resolve_doc_path("My%20Essay.md") == "My Essay"
    assert resolve_doc_path("/abs/page.html", "essays") == "abs/page"
    assert resolve_doc_path("../../escape.md", "essays") is None
    assert resolve_doc_path(".") is None
