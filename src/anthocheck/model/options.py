"""Check options for anthocheck runs.

Options come from CLI flags and, optionally, from the ``[output.anthocheck]``
table of an mdbook ``book.toml``. Defaults give the lint contract: orphans are
warnings and flat manifests without sections are legal.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

from anthocheck.ingest.error_handling import ConfigError


class OrphanPolicy(Enum):
    """How documents missing from every manifest are reported."""

    WARN = "warn"  # Report, do not fail (default)
    ERROR = "error"  # Report as a blocking issue
    IGNORE = "ignore"  # Do not report


@dataclass
class CheckOptions:
    """Configuration for a single checker run."""

    orphans: OrphanPolicy = OrphanPolicy.WARN

    # Leaf links outside any heading section are an error when set
    require_sections: bool = False

    # Document id of the authors index (authors.md -> authors.html#Name)
    authors_index: str = "authors"

    # Document ids exempt from orphan detection
    unlisted: tuple[str, ...] = ()

    # Thread pool size for loading; 1 loads sequentially
    workers: int = 4

    extensions: tuple[str, ...] = (".md", ".markdown")

    # difflib ratio at or above which two author names are near-duplicates
    similarity: float = 0.9

    # Source directory as configured in book.toml ([book] src)
    source_dir: Path | None = field(default=None, compare=False)

    @classmethod
    def from_cli(
        cls,
        *,
        orphans: str | None = None,
        require_sections: bool | None = None,
        authors_index: str | None = None,
        unlisted: list[str] | tuple[str, ...] = (),
        workers: int | None = None,
        similarity: float | None = None,
        base: CheckOptions | None = None,
    ) -> CheckOptions:
        """Build CheckOptions from CLI argument values.

        Arguments left as None keep the value from ``base`` (or the default),
        so flags given on the command line override ``book.toml``.

        Raises:
            ValueError: If any argument has an invalid value
        """
        start = base or cls()

        orphan_policy = start.orphans
        if orphans is not None:
            try:
                orphan_policy = OrphanPolicy(orphans)
            except ValueError as exc:
                valid_values = [p.value for p in OrphanPolicy]
                raise ValueError(
                    f"Invalid orphans policy '{orphans}'. Valid values: {valid_values}"
                ) from exc

        workers = start.workers if workers is None else workers
        if workers < 1:
            raise ValueError(f"Invalid workers '{workers}'. Must be at least 1")

        similarity = start.similarity if similarity is None else similarity
        if not 0.0 < similarity <= 1.0:
            raise ValueError(f"Invalid similarity '{similarity}'. Must be in (0, 1]")

        return replace(
            start,
            orphans=orphan_policy,
            require_sections=start.require_sections if require_sections is None else require_sections,
            authors_index=authors_index or start.authors_index,
            unlisted=tuple(sorted({*start.unlisted, *unlisted})),
            workers=workers,
            similarity=similarity,
        )

    @classmethod
    def from_book_toml(cls, path: Path) -> CheckOptions:
        """Read options from an mdbook ``book.toml``.

        Recognized keys: ``[book] src`` and, under ``[output.anthocheck]``,
        ``orphans``, ``require-sections``, ``authors-index``, ``unlisted``,
        ``workers``, ``extensions`` and ``similarity``.
        """
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(path, str(exc)) from exc

        book = data.get("book", {})
        table: dict[str, Any] = data.get("output", {}).get("anthocheck", {})
        if not isinstance(book, dict) or not isinstance(table, dict):
            raise ConfigError(path, "[book] and [output.anthocheck] must be tables")

        src = book.get("src", "src")
        if not isinstance(src, str):
            raise ConfigError(path, "[book] src must be a string")

        try:
            opts = cls.from_cli(
                orphans=str(table.get("orphans", OrphanPolicy.WARN.value)),
                require_sections=bool(table.get("require-sections", False)),
                authors_index=str(table.get("authors-index", "authors")),
                unlisted=[str(u) for u in table.get("unlisted", [])],
                workers=int(table.get("workers", cls.workers)),
                similarity=float(table.get("similarity", cls.similarity)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(path, str(exc)) from exc

        extensions = table.get("extensions")
        if extensions is not None:
            if not isinstance(extensions, list) or not all(isinstance(e, str) for e in extensions):
                raise ConfigError(path, "extensions must be a list of strings")
            opts.extensions = tuple(e if e.startswith(".") else f".{e}" for e in extensions)

        opts.source_dir = path.parent / src
        return opts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization/logging."""
        return {
            "orphans": self.orphans.value,
            "require_sections": self.require_sections,
            "authors_index": self.authors_index,
            "unlisted": list(self.unlisted),
            "workers": self.workers,
            "extensions": list(self.extensions),
            "similarity": self.similarity,
        }


__all__ = ["CheckOptions", "OrphanPolicy"]
