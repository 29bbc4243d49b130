from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class IssueKind(Enum):
    MISSING_TARGET = "MissingTarget"
    ORPHAN_DOCUMENT = "OrphanDocument"
    DUPLICATE_SLUG = "DuplicateSlug"
    UNKNOWN_AUTHOR = "UnknownAuthor"
    BROKEN_ANCHOR = "BrokenAnchor"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    entity_ids: tuple[str, ...]
    message: str
    source: Path | None = None
    line: int | None = None
    severity: Severity = Severity.ERROR

    @property
    def blocking(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def entity(self) -> str:
        return ", ".join(self.entity_ids)

    def location(self) -> str | None:
        if self.source is None:
            return None
        return f"{self.source}:{self.line}" if self.line else str(self.source)

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "entity_ids": list(self.entity_ids),
            "message": self.message,
            "source": str(self.source) if self.source is not None else None,
            "line": self.line,
            "severity": self.severity.value,
        }


__all__ = ["IssueKind", "Severity", "ValidationIssue"]
