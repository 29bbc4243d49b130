from pathlib import Path

import pytest

from anthocheck.ingest.error_handling import MalformedFrontMatter
from anthocheck.ingest.front_matter import parse_tags, split_front_matter


def test_split_without_front_matter_keeps_body() -> None:
    text = "# Title\n\nBody\n"
    split = split_front_matter(text)
    assert split.metadata == {}
    assert split.body == text
    assert split.body_line == 1


def test_split_reads_key_value_pairs() -> None:
    text = "---\nTitle: 'Quoted'\nauthor: \"Huon Wilson\"\n# a comment\n\n---\nbody\n"
    split = split_front_matter(text)
    assert split.metadata == {"title": "Quoted", "author": "Huon Wilson"}
    assert split.body == "body\n"
    assert split.body_line == 7


def test_split_accepts_dots_terminator_and_bom() -> None:
    split = split_front_matter("\ufeff---\nauthor: A\n...\nx\n")
    assert split.metadata == {"author": "A"}
    assert split.body == "x\n"
    assert split.body_line == 4


def test_unclosed_block_is_malformed() -> None:
    with pytest.raises(MalformedFrontMatter) as exc:
        split_front_matter("---\ntitle: X\n\nbody\n", Path("essay.md"))
    assert exc.value.line == 1
    assert "never closed" in str(exc.value)
    assert "essay.md" in str(exc.value)


def test_line_without_colon_is_malformed() -> None:
    with pytest.raises(MalformedFrontMatter) as exc:
        split_front_matter("---\ntitle: X\nnot a pair\n---\n")
    assert exc.value.line == 3


def test_parse_tags_accepts_list_and_bare_forms() -> None:
    assert parse_tags("[closures, 'traits and types']") == ("closures", "traits and types")
    assert parse_tags("a, b,") == ("a", "b")
    assert parse_tags("") == ()


def test_block_list_values_are_joined() -> None:
    text = (
        "---\ntitle: X\ntags:\n  - rust\n  - 'closures'\n"
        "author:\n- Aaron Turon\n- Niko Matsakis\n---\n# X\n"
    )
    split = split_front_matter(text, Path("x.md"))
    assert split.metadata == {
        "title": "X",
        "tags": "rust, closures",
        "author": "Aaron Turon, Niko Matsakis",
    }
    assert parse_tags(split.metadata["tags"]) == ("rust", "closures")
    assert split.body_line == 10


def test_list_item_without_open_key_is_malformed() -> None:
    with pytest.raises(MalformedFrontMatter) as exc:
        split_front_matter("---\ntitle: X\n  - stray\n---\n")
    assert exc.value.line == 3
