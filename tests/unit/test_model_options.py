from pathlib import Path

import pytest

from anthocheck.ingest.error_handling import ConfigError
from anthocheck.model.options import CheckOptions, OrphanPolicy


def test_defaults() -> None:
    opts = CheckOptions()
    assert opts.orphans is OrphanPolicy.WARN
    assert not opts.require_sections
    assert opts.authors_index == "authors"
    assert opts.workers == 4


def test_from_cli_validates_values() -> None:
    with pytest.raises(ValueError, match="Invalid orphans policy 'loud'"):
        CheckOptions.from_cli(orphans="loud")
    with pytest.raises(ValueError, match="Invalid workers"):
        CheckOptions.from_cli(workers=0)
    with pytest.raises(ValueError, match="Invalid similarity"):
        CheckOptions.from_cli(similarity=1.5)


def test_from_cli_overrides_only_given_values() -> None:
    base = CheckOptions(orphans=OrphanPolicy.ERROR, require_sections=True, unlisted=("b",))
    opts = CheckOptions.from_cli(orphans="ignore", unlisted=["a"], base=base)
    assert opts.orphans is OrphanPolicy.IGNORE
    assert opts.require_sections
    assert opts.unlisted == ("a", "b")


def test_from_book_toml(tmp_path: Path) -> None:
    path = tmp_path / "book.toml"
    path.write_text(
        "[book]\n"
        'title = "Rust Essays"\n'
        'src = "essays"\n'
        "\n"
        "[output.anthocheck]\n"
        'orphans = "error"\n'
        "require-sections = true\n"
        'authors-index = "people"\n'
        'unlisted = ["drafts/wip"]\n'
        'extensions = ["md"]\n'
        "workers = 2\n",
        encoding="utf-8",
    )
    opts = CheckOptions.from_book_toml(path)
    assert opts.orphans is OrphanPolicy.ERROR
    assert opts.require_sections
    assert opts.authors_index == "people"
    assert opts.unlisted == ("drafts/wip",)
    assert opts.extensions == (".md",)
    assert opts.workers == 2
    assert opts.source_dir == tmp_path / "essays"

    # CLI flags win over the file, the rest is kept
    merged = CheckOptions.from_cli(orphans="warn", base=opts)
    assert merged.orphans is OrphanPolicy.WARN
    assert merged.authors_index == "people"
    assert merged.source_dir == tmp_path / "essays"


def test_book_toml_without_table_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "book.toml"
    path.write_text('[book]\ntitle = "x"\n', encoding="utf-8")
    opts = CheckOptions.from_book_toml(path)
    assert opts == CheckOptions()
    assert opts.source_dir == tmp_path / "src"


@pytest.mark.parametrize(
    "content",
    [
        "[book\n",
        '[output.anthocheck]\norphans = "loud"\n',
        "[output.anthocheck]\nextensions = 3\n",
        "[book]\nsrc = 1\n",
    ],
)
def test_invalid_book_toml_is_config_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "book.toml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid configuration in"):
        CheckOptions.from_book_toml(path)


def test_to_dict() -> None:
    data = CheckOptions(unlisted=("x",)).to_dict()
    assert data["orphans"] == "warn"
    assert data["unlisted"] == ["x"]
    assert data["extensions"] == [".md", ".markdown"]
