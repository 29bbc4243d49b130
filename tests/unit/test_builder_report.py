import json
from pathlib import Path

from jsonschema import Draft202012Validator

from anthocheck.builder.report import (
    REPORT_SCHEMA,
    CheckReport,
    ExitStatus,
    exit_status,
    format_issue,
    render_json,
    render_manifest,
    render_text,
    summary_line,
    write_manifest,
)
from anthocheck.builder.templating import create_environment
from anthocheck.ingest.loader import LoadFailure
from anthocheck.model.issues import IssueKind, Severity, ValidationIssue
from anthocheck.parser.manifest import parse_manifest


def _ghost() -> ValidationIssue:
    return ValidationIssue(
        kind=IssueKind.MISSING_TARGET,
        entity_ids=("missing-chapter.html",),
        message="manifest entry 'Ghost Chapter' does not resolve to a document",
        source=Path("SUMMARY.md"),
        line=3,
    )


def _orphan() -> ValidationIssue:
    return ValidationIssue(
        kind=IssueKind.ORPHAN_DOCUMENT,
        entity_ids=("stray",),
        message="document is not listed in any manifest",
        source=Path("stray.md"),
        severity=Severity.WARNING,
    )


def test_format_issue_names_kind_entity_and_location() -> None:
    assert format_issue(_ghost()) == (
        "MissingTarget: missing-chapter.html — manifest entry 'Ghost Chapter' "
        "does not resolve to a document (SUMMARY.md:3)"
    )
    assert format_issue(_orphan()).endswith("(stray.md) [warning]")


def test_exit_status() -> None:
    assert exit_status(CheckReport()) is ExitStatus.OK
    assert exit_status(CheckReport(issues=[_orphan()])) is ExitStatus.OK
    assert exit_status(CheckReport(issues=[_orphan(), _ghost()])) is ExitStatus.ISSUES
    failure = LoadFailure(path=Path("bad.md"), message="Malformed front-matter in bad.md at line 1", line=1)
    assert exit_status(CheckReport(issues=[_ghost()], failures=[failure])) is ExitStatus.MALFORMED


def test_text_report_groups_by_kind_in_first_seen_order() -> None:
    second_ghost = ValidationIssue(
        kind=IssueKind.MISSING_TARGET, entity_ids=("other.md",), message="m", source=Path("a.md"), line=1
    )
    report = CheckReport(issues=[_ghost(), _orphan(), second_ghost], documents=2)
    lines = render_text(report).splitlines()
    assert lines[0].startswith("MissingTarget: missing-chapter.html")
    assert lines[1].startswith("MissingTarget: other.md")
    assert lines[2].startswith("OrphanDocument: stray")
    assert lines[3] == "2 errors, 1 warning in 2 documents."


def test_summary_line() -> None:
    assert summary_line(CheckReport(documents=1)) == "No issues found in 1 document."
    failure = LoadFailure(path=Path("bad.md"), message="x")
    assert summary_line(CheckReport(failures=[failure], documents=3)) == (
        "0 errors, 0 warnings, 1 file failed to parse in 3 documents."
    )


def test_text_report_is_deterministic() -> None:
    report = CheckReport(issues=[_ghost(), _orphan()], documents=2)
    assert render_text(report) == render_text(report)


def test_json_report_matches_schema() -> None:
    failure = LoadFailure(path=Path("bad.md"), message="broken", line=2)
    report = CheckReport(issues=[_ghost(), _orphan()], failures=[failure], documents=2)
    data = json.loads(render_json(report))

    Draft202012Validator(REPORT_SCHEMA).validate(data)
    assert data["exit_status"] == 2
    assert data["issues"][0]["kind"] == "MissingTarget"
    assert data["issues"][1]["severity"] == "warning"
    assert data["failures"][0]["line"] == 2


def test_render_manifest_normalizes_targets() -> None:
    manifest = parse_manifest(
        "# Summary\n"
        "\n"
        "[Intro](intro.html)\n"
        "\n"
        "# Part One\n"
        "\n"
        "* [Ch 1](ch1.md)\n"
        "    * [Sub](sub.md)\n"
        "* [Blog](https://blog.rust-lang.org)\n"
        "* [Draft]()\n"
    )
    out = render_manifest(manifest)
    assert out.rstrip("\n").splitlines() == [
        "# Summary",
        "",
        "- [Intro](intro.md)",
        "",
        "# Part One",
        "",
        "- [Ch 1](ch1.md)",
        "  - [Sub](sub.md)",
        "- [Blog](https://blog.rust-lang.org)",
        "- [Draft]()",
    ]
    # The normalized form parses back to the same structure
    again = parse_manifest(out)
    assert [(e.title, e.doc_id) for e in again.walk()] == [(e.title, e.doc_id) for e in manifest.walk()]


def test_custom_template_directory(tmp_path: Path) -> None:
    (tmp_path / "SUMMARY.md").write_text(
        "{% for row in rows %}{{ row.title }};{% endfor %}", encoding="utf-8"
    )
    manifest = parse_manifest("# S\n- [A](a.md)\n")
    assert render_manifest(manifest, create_environment(tmp_path)) == "S;A;"


def test_write_manifest(tmp_path: Path) -> None:
    target = tmp_path / "out" / "SUMMARY.md"
    write_manifest(parse_manifest("# S\n- [A](a.html)\n"), target)
    assert target.read_text(encoding="utf-8") == render_manifest(parse_manifest("# S\n- [A](a.md)\n"))
