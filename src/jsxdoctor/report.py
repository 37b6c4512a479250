"""Project-wide aggregation of file results, JSON artifact and console summary."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click

from .models import (
    ChangeRecord,
    ErrorRecord,
    FileRank,
    FileReport,
    FindingRecord,
    IssueSummary,
    Report,
    Summary,
)
from .rules import get_rule
from .rules.base import Category, Severity

if TYPE_CHECKING:
    from .engine import FileResult

logger = logging.getLogger(__name__)

TOP_ISSUES = 10
TOP_FILES = 10

SEVERITY_ICONS = {
    Severity.ERROR.value: "❌",
    Severity.WARNING.value: "⚠️",
    Severity.INFO.value: "ℹ️",
}


class ReportAggregator:
    """Collects FileResults as files complete and builds the Report."""

    def __init__(self):
        self.results: list[FileResult] = []
        self.interrupted = False

    def add(self, result: FileResult) -> None:
        self.results.append(result)

    def mark_interrupted(self) -> None:
        self.interrupted = True

    def build(self) -> Report:
        results = sorted(self.results, key=lambda result: result.path)

        by_severity = {severity.value: 0 for severity in Severity}
        by_category = {category.value: 0 for category in Category}
        by_rule: Counter[str] = Counter()
        changes_by_type: Counter[str] = Counter()
        issue_groups: dict[str, IssueSummary] = {}
        ranking: list[FileRank] = []

        for result in results:
            for finding in result.findings:
                by_severity[finding.severity.value] += 1
                by_rule[finding.rule_id] += 1
                if not finding.is_issue:
                    continue
                by_category[finding.category.value] += 1
                group = issue_groups.get(finding.rule_id)
                if group is None:
                    rule = get_rule(finding.rule_id)
                    group = issue_groups[finding.rule_id] = IssueSummary(
                        rule=finding.rule_id,
                        name=rule.name if rule is not None else finding.rule_id,
                        category=finding.category.value,
                        severity=finding.severity.value,
                        message=finding.message,
                        hint=finding.hint,
                    )
                group.count += 1
                if result.path not in group.files:
                    group.files.append(result.path)
            for change in result.changes:
                changes_by_type[change.rule_id] += 1
            if result.issues:
                ranking.append(FileRank(file=result.path, issues=len(result.issues)))

        top_issues = sorted(issue_groups.values(), key=lambda group: group.count, reverse=True)[:TOP_ISSUES]
        top_files = sorted(ranking, key=lambda rank: rank.issues, reverse=True)[:TOP_FILES]

        summary = Summary(
            by_severity=by_severity,
            by_category=by_category,
            by_rule=dict(by_rule),
            total_issues=sum(len(result.issues) for result in results),
            total_good=sum(len(result.good) for result in results),
            unresolved_errors=sum(len(result.unresolved_errors) for result in results),
            top_issues=top_issues,
            top_files=top_files,
        )
        return Report(
            files_checked=len(results),
            files_fixed=sum(1 for result in results if result.written),
            total_changes=sum(changes_by_type.values()),
            changes_by_type=dict(changes_by_type),
            files=[_file_report(result) for result in results],
            summary=summary,
            interrupted=self.interrupted,
        )


def _file_report(result: FileResult) -> FileReport:
    errors: list[ErrorRecord] = []
    if result.parse_error:
        errors.append(ErrorRecord(stage="parse", message=result.parse_error))
    for failure in result.errors:
        errors.append(ErrorRecord(stage="detect", rule=failure.rule_id, message=failure.message))
    for failure in result.fix_failures:
        errors.append(
            ErrorRecord(stage="fix", rule=failure.rule_id, line=failure.finding.line, message=failure.reason)
        )
    if result.error:
        errors.append(ErrorRecord(stage="analyze", message=result.error))
    if result.write_error:
        errors.append(ErrorRecord(stage="write", message=result.write_error))

    return FileReport(
        file=result.path,
        changes=[
            ChangeRecord(
                type=change.rule_id,
                kind=change.kind.value,
                line=change.line,
                from_=change.before,
                to=change.after,
                action=change.action,
            )
            for change in result.changes
        ],
        findings=[
            FindingRecord(
                rule=finding.rule_id,
                severity=finding.severity.value,
                category=finding.category.value,
                message=finding.message,
                line=finding.line,
                column=finding.column,
                hint=finding.hint,
                detail=finding.detail,
            )
            for finding in result.findings
        ],
        parse_failed=result.parse_failed,
        written=result.written,
        errors=errors,
    )


def write_report(report: Report, path: Path) -> Path:
    """Write the JSON artifact and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.to_json() + "\n", encoding="utf-8")
    logger.debug("Report written to %s", path)
    return path


def exit_code(report: Report) -> int:
    """0 when no error-severity finding is left unresolved, 1 otherwise."""
    return 1 if report.summary.unresolved_errors else 0


def print_summary(report: Report, fix: bool = False, report_path: Optional[Path] = None) -> None:
    """Console summary of a run."""
    summary = report.summary

    click.echo("\n📊 JSX Best Practices Report")
    click.echo("=====================================\n")
    click.echo(f"📁 Files analyzed: {report.files_checked}")
    click.echo(f"⚠️  Total issues: {summary.total_issues}")
    click.echo(f"✅ Good practices: {summary.total_good}")

    skipped = [
        file for file in report.files if file.parse_failed or any(error.stage == "analyze" for error in file.errors)
    ]
    if skipped:
        click.echo(f"⏭️  Skipped (parse or analysis errors): {len(skipped)}")
        for file in skipped:
            click.echo(f"   - {file.file}")

    if summary.total_issues:
        click.echo("\n📈 Issues by severity:")
        for severity, count in summary.by_severity.items():
            if severity != Severity.GOOD.value and count > 0:
                click.echo(f"  {SEVERITY_ICONS[severity]} {severity}: {count}")

    if summary.top_issues:
        click.echo("\n🔝 Top issues:")
        for index, issue in enumerate(summary.top_issues, start=1):
            click.echo(f"  {index}. {issue.name} ({issue.count} occurrences)")
            click.echo(f"     {issue.message}")
            if issue.hint:
                click.echo(f"     💡 Fix: {issue.hint}")

    if fix:
        for file in report.files:
            if not file.written:
                continue
            click.echo(f"\n✓ Fixed {file.file}")
            for change in file.changes:
                if change.to:
                    click.echo(f"  - {change.type}: {change.from_ or change.action} → {change.to}")
                else:
                    click.echo(f"  - {change.type}: {change.action}")

        click.echo("\n" + "=" * 50)
        click.echo("Summary:")
        click.echo(f"  Files fixed: {report.files_fixed}")
        click.echo(f"  Total changes: {report.total_changes}")
        if report.changes_by_type:
            click.echo("\nChanges by type:")
            for change_type, count in report.changes_by_type.items():
                click.echo(f"  {change_type}: {count}")

    if summary.unresolved_errors:
        click.echo(f"\n❌ Unresolved errors: {summary.unresolved_errors}")
    if report.interrupted:
        click.echo("\n⚠️  Run interrupted; report is partial")
    if report_path is not None:
        click.echo(f"\nReport saved to: {report_path}")
