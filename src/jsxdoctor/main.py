"""Main CLI entry point for jsx-doctor."""

import logging
import sys

import click
from pathlib import Path
from .config import Config
from .errors import ScanRootError
from .engine import run_project
from .report import exit_code, print_summary, write_report
from .rules import DEFAULT_RULES, RULE_IDS, default_rules

INTERRUPTED_EXIT_CODE = 130


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _run_options(command):
    command = click.option("--debug", is_flag=True, help="Enable debug logging")(command)
    command = click.option(
        "--jobs", "-j", type=click.IntRange(min=1), default=None, help="Files processed in parallel"
    )(command)
    command = click.option(
        "--disable",
        "disabled",
        multiple=True,
        type=click.Choice(sorted(RULE_IDS)),
        help="Rule id to switch off (repeatable)",
    )(command)
    command = click.option("--output", "-o", type=click.Path(), help="Report file path")(command)
    command = click.argument("root", type=click.Path(), default=".")(command)
    return command


@click.group()
def cli():
    """jsx-doctor - Find and fix common JSX/TSX mistakes."""
    pass


@cli.command()
@_run_options
def check(root: str, output: str | None, disabled: tuple[str, ...], jobs: int | None, debug: bool):
    """Report issues without changing any file.

    Examples:
        jsx-doctor check src/

        jsx-doctor check . --disable inline-function -o reports/jsx.json
    """
    sys.exit(_run(root, output, disabled, jobs, debug, fix=False))


@cli.command()
@_run_options
def fix(root: str, output: str | None, disabled: tuple[str, ...], jobs: int | None, debug: bool):
    """Report issues and rewrite files to fix what can be fixed.

    Examples:
        jsx-doctor fix src/components
    """
    sys.exit(_run(root, output, disabled, jobs, debug, fix=True))


def _run(root: str, output: str | None, disabled: tuple[str, ...], jobs: int | None, debug: bool, fix: bool) -> int:
    _configure_logging(debug)
    config = Config.from_env(
        root=Path(root),
        fix=fix,
        output_path=Path(output) if output else None,
        disabled_rules=list(disabled),
        jobs=jobs,
    )

    try:
        rules = default_rules(config.disabled_rules)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        return 1

    mode = "Fixing" if fix else "Checking"
    click.echo(f"🔍 {mode} JSX/TSX files in: {config.root.resolve()}")
    try:
        report = run_project(config, rules)
    except ScanRootError as e:
        click.echo(f"❌ {e}", err=True)
        return 1

    report_path = write_report(report, config.report_path)
    print_summary(report, fix=fix, report_path=report_path)

    if report.interrupted:
        return INTERRUPTED_EXIT_CODE
    return exit_code(report)


@cli.command("list-rules")
def list_rules():
    """List every rule with its category, severity and whether it can be fixed."""
    for rule in DEFAULT_RULES:
        fixable = "fixable" if rule.fixable else "-"
        click.echo(f"{rule.id:<22} {rule.category.value:<11} {rule.severity.value:<8} {fixable:<8} {rule.message}")


if __name__ == "__main__":
    cli()
