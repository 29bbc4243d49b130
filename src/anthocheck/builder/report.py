"""Report rendering and exit status for a checker run.

The text report is deterministic: the same inputs always give a
byte-identical report. Issues are grouped by kind in the order the validator
first produced them, followed by files that failed to parse.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

from anthocheck.builder.templating import Templates, create_environment
from anthocheck.ingest.loader import LoadFailure
from anthocheck.model.issues import IssueKind, Severity, ValidationIssue
from anthocheck.model.manifest import EntryKind, Manifest, ManifestEntry


class ExitStatus(IntEnum):
    OK = 0  # no blocking issues (warnings allowed)
    ISSUES = 1  # at least one blocking issue
    MALFORMED = 2  # a front-matter or manifest parse failure


@dataclass
class CheckReport:
    issues: list[ValidationIssue] = field(default_factory=list)
    failures: list[LoadFailure] = field(default_factory=list)
    documents: int = 0
    manifest: Manifest | None = None

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    def grouped(self) -> list[tuple[IssueKind, list[ValidationIssue]]]:
        groups: dict[IssueKind, list[ValidationIssue]] = {}
        for issue in self.issues:
            groups.setdefault(issue.kind, []).append(issue)
        return list(groups.items())


def exit_status(report: CheckReport) -> ExitStatus:
    if report.failures:
        return ExitStatus.MALFORMED
    if any(issue.blocking for issue in report.issues):
        return ExitStatus.ISSUES
    return ExitStatus.OK


def format_issue(issue: ValidationIssue) -> str:
    line = f"{issue.kind.value}: {issue.entity} — {issue.message}"
    where = issue.location()
    if where:
        line += f" ({where})"
    if issue.severity is Severity.WARNING:
        line += " [warning]"
    return line


def format_failure(failure: LoadFailure) -> str:
    return f"{failure.kind}: {failure.path} — {failure.message}"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def summary_line(report: CheckReport) -> str:
    if not report.issues and not report.failures:
        return f"No issues found in {_plural(report.documents, 'document')}."
    parts = [_plural(len(report.errors), "error"), _plural(len(report.warnings), "warning")]
    if report.failures:
        parts.append(f"{_plural(len(report.failures), 'file')} failed to parse")
    return f"{', '.join(parts)} in {_plural(report.documents, 'document')}."


def render_text(report: CheckReport) -> str:
    lines: list[str] = []
    for _kind, issues in report.grouped():
        lines.extend(format_issue(i) for i in issues)
    lines.extend(format_failure(f) for f in report.failures)
    lines.append(summary_line(report))
    return "\n".join(lines) + "\n"


REPORT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["documents", "exit_status", "issues", "failures"],
    "properties": {
        "documents": {"type": "integer", "minimum": 0},
        "exit_status": {"enum": [s.value for s in ExitStatus]},
        "issues": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["kind", "entity_ids", "message", "source", "line", "severity"],
                "properties": {
                    "kind": {"enum": [k.value for k in IssueKind]},
                    "entity_ids": {"type": "array", "items": {"type": "string"}},
                    "message": {"type": "string"},
                    "source": {"type": ["string", "null"]},
                    "line": {"type": ["integer", "null"]},
                    "severity": {"enum": [s.value for s in Severity]},
                },
            },
        },
        "failures": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["kind", "path", "message", "line"],
                "properties": {
                    "kind": {"type": "string"},
                    "path": {"type": "string"},
                    "message": {"type": "string"},
                    "line": {"type": ["integer", "null"]},
                },
            },
        },
    },
}


def report_to_dict(report: CheckReport) -> dict[str, Any]:
    return {
        "documents": report.documents,
        "exit_status": int(exit_status(report)),
        "issues": [i.to_dict() for _kind, issues in report.grouped() for i in issues],
        "failures": [
            {"kind": f.kind, "path": str(f.path), "message": f.message, "line": f.line}
            for f in report.failures
        ],
    }


def render_json(report: CheckReport) -> str:
    return json.dumps(report_to_dict(report), ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def _chapter_target(entry: ManifestEntry) -> str:
    if entry.doc_id is not None and not entry.external:
        return f"{entry.doc_id}.md"
    return entry.target or ""


def manifest_rows(manifest: Manifest) -> list[dict[str, Any]]:
    """Flatten the manifest tree into rows for the SUMMARY.md template."""
    rows: list[dict[str, Any]] = []
    indent: dict[int, int] = {}
    for entry in manifest.walk():
        parent = manifest.entries[entry.parent] if entry.parent is not None else None
        if entry.kind is EntryKind.SECTION:
            rows.append({"section": True, "level": entry.depth, "title": entry.title})
            continue
        level = indent[parent.index] + 1 if parent is not None and parent.index in indent else 0
        indent[entry.index] = level
        rows.append(
            {
                "section": False,
                "indent": level,
                "title": entry.title,
                "target": _chapter_target(entry),
            }
        )
    return rows


def render_manifest(manifest: Manifest, templates: Templates | None = None) -> str:
    """Render the manifest as a normalized ``SUMMARY.md``.

    Chapter targets become ``<doc-id>.md``; drafts keep an empty target and
    external links are left untouched.
    """
    tpl = templates or create_environment()
    return tpl.render_summary({"rows": manifest_rows(manifest)})


def write_manifest(manifest: Manifest, path: Path) -> None:
    from anthocheck.ingest.files import atomic_write_text

    atomic_write_text(path, render_manifest(manifest))


__all__ = [
    "REPORT_SCHEMA",
    "CheckReport",
    "ExitStatus",
    "exit_status",
    "format_issue",
    "manifest_rows",
    "render_json",
    "render_manifest",
    "render_text",
    "report_to_dict",
    "summary_line",
    "write_manifest",
]
