"""Per-file pipeline and project run.

A file moves through ``FileState``: it is parsed, analysed by every rule and,
in fix mode, repaired in rounds. Each round resolves scopes afresh, detects,
and hands the findings that are new in that round to their transformers. The
rounds stop when a round applies no change or ``max_fix_passes`` is reached,
after which the tree is regenerated and written back if anything changed.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from .config import Config
from .errors import GenerationError, ParseError
from .models import Report
from .report import ReportAggregator
from .rules import default_rules
from .rules.base import Change, DetectionFailure, Finding, FixFailure, Rule, RuleContext, Severity, Transformer
from .scanner.sources import SourceScanner
from .syntax.generator import CodeGenerator
from .syntax.parser import SourceParser
from .syntax.scope import Resolver

logger = logging.getLogger(__name__)


class FileState(str, Enum):
    UNPARSED = "unparsed"
    PARSED = "parsed"
    ANALYZED = "analyzed"
    FIXED = "fixed"
    REGENERATED = "regenerated"
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass
class FileResult:
    """Outcome for one file."""

    path: str
    findings: list[Finding] = field(default_factory=list)
    changes: list[Change] = field(default_factory=list)
    fix_failures: list[FixFailure] = field(default_factory=list)
    errors: list[DetectionFailure] = field(default_factory=list)
    parse_failed: bool = False
    parse_error: Optional[str] = None
    written: bool = False
    write_error: Optional[str] = None
    error: Optional[str] = None
    state: FileState = FileState.UNPARSED
    passes: int = 0
    output: Optional[str] = field(default=None, repr=False)

    @property
    def issues(self) -> list[Finding]:
        return [finding for finding in self.findings if finding.is_issue]

    @property
    def good(self) -> list[Finding]:
        return [finding for finding in self.findings if not finding.is_issue]

    @property
    def unresolved(self) -> list[Finding]:
        """Issues no change was made for."""
        fixed = {change.finding.key for change in self.changes if change.finding is not None}
        return [finding for finding in self.issues if finding.key not in fixed]

    @property
    def unresolved_errors(self) -> list[Finding]:
        return [finding for finding in self.unresolved if finding.severity == Severity.ERROR]


class Engine:
    """Runs the rule set over single files."""

    def __init__(self, config: Config, rules: Optional[Iterable[Rule]] = None):
        self.config = config
        self.rules = list(rules) if rules is not None else default_rules(config.disabled_rules)
        self.parser = SourceParser()
        self.resolver = Resolver()

    def analyze_source(self, source: str, path: str = "component.jsx", fix: Optional[bool] = None) -> FileResult:
        """Run the pipeline on in-memory text; never touches the filesystem.

        When fixes were applied, ``FileResult.output`` holds the regenerated text.
        """
        result = FileResult(path=path)
        fix = self.config.fix if fix is None else fix
        try:
            self._analyze(source, path, fix, result)
        except Exception as e:
            logger.warning("Could not analyse %s: %s", path, e)
            logger.debug("Analysis failure", exc_info=True)
            result.error = f"{type(e).__name__}: {e}"
            # Findings and edits of a half-processed tree are not reported.
            result.findings = []
            result.changes = []
            result.fix_failures = []
            result.output = None
            result.state = FileState.SKIPPED
        return result

    def _analyze(self, source: str, path: str, fix: bool, result: FileResult) -> None:
        try:
            tree = self.parser.parse(source, path)
        except ParseError as e:
            logger.warning("Skipping %s: %s", path, e)
            result.parse_failed = True
            result.parse_error = str(e)
            result.state = FileState.SKIPPED
            return
        result.state = FileState.PARSED

        seen: dict[tuple[str, int, int], Finding] = {}
        failed_rules: set[str] = set()
        while True:
            ctx = RuleContext(tree, self.resolver.resolve(tree))
            new: list[tuple[Rule, Finding]] = []
            for rule in self.rules:
                for finding in self._detect(rule, ctx, result, failed_rules):
                    if finding.key not in seen:
                        seen[finding.key] = finding
                        new.append((rule, finding))
            if result.state == FileState.PARSED:
                result.state = FileState.ANALYZED

            if not fix or result.passes >= self.config.max_fix_passes:
                break
            result.passes += 1
            applied = 0
            for rule, finding in new:
                if not isinstance(rule, Transformer):
                    continue
                outcome = self._fix(rule, ctx, finding)
                if isinstance(outcome, Change):
                    result.changes.append(outcome)
                    applied += 1
                else:
                    result.fix_failures.append(outcome)
            logger.debug("%s: pass %d applied %d change(s)", path, result.passes, applied)
            if not applied:
                break

        result.findings = sorted(seen.values(), key=lambda finding: (finding.line, finding.column))
        if not result.changes:
            result.state = FileState.UNCHANGED
            return

        result.state = FileState.FIXED
        try:
            result.output = CodeGenerator().generate(tree)
        except GenerationError as e:
            logger.warning("Could not regenerate %s: %s", path, e)
            self._abandon_changes(result, f"could not regenerate source: {e}")
            result.state = FileState.UNCHANGED
            return
        result.state = FileState.REGENERATED

    def process_file(self, path: Path, root: Optional[Path] = None) -> FileResult:
        """Read, analyse and (in fix mode) rewrite one file on disk."""
        display = _display_path(path, root)
        try:
            source = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", display, e)
            return FileResult(
                path=display,
                parse_failed=True,
                parse_error=f"could not read file: {e}",
                state=FileState.SKIPPED,
            )

        result = self.analyze_source(source, display)
        if result.output is None:
            return result

        try:
            _write_atomic(path, result.output)
        except OSError as e:
            logger.warning("Could not write %s: %s", display, e)
            result.write_error = str(e)
            self._abandon_changes(result, f"write failed: {e}")
            return result

        result.written = True
        result.state = FileState.WRITTEN
        logger.debug("Wrote %s (%d change(s))", display, len(result.changes))
        return result

    def _detect(
        self, rule: Rule, ctx: RuleContext, result: FileResult, failed_rules: set[str]
    ) -> list[Finding]:
        if rule.id in failed_rules:
            return []
        try:
            return rule.detect(ctx)
        except Exception as e:
            logger.warning("Rule %s failed on %s: %s", rule.id, ctx.path, e)
            logger.debug("Detection failure", exc_info=True)
            failed_rules.add(rule.id)
            result.errors.append(DetectionFailure(rule_id=rule.id, message=str(e) or type(e).__name__))
            return []

    def _fix(self, rule: Transformer, ctx: RuleContext, finding: Finding) -> Change | FixFailure:
        try:
            return rule.fix(ctx, finding)
        except Exception as e:
            logger.warning("Fix %s failed on %s:%d: %s", rule.id, finding.file, finding.line, e)
            logger.debug("Fix failure", exc_info=True)
            return FixFailure(rule_id=rule.id, finding=finding, reason=str(e) or type(e).__name__)

    @staticmethod
    def _abandon_changes(result: FileResult, reason: str) -> None:
        """Turn applied-but-unsaved changes back into unresolved findings."""
        for change in result.changes:
            if change.finding is not None:
                result.fix_failures.append(FixFailure(rule_id=change.rule_id, finding=change.finding, reason=reason))
        result.changes = []
        result.output = None


def _display_path(path: Path, root: Optional[Path]) -> str:
    if root is not None:
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def _write_atomic(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` so readers see the old or the new file, never a mix."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(text.encode("utf-8"))
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def run_project(config: Config, rules: Optional[Iterable[Rule]] = None) -> Report:
    """Scan ``config.root`` and run every file through the engine.

    Raises:
        ScanRootError: If the root cannot be scanned
    """
    root = Path(config.root).resolve()
    files = SourceScanner(config).scan(root)
    engine = Engine(config, rules)
    aggregator = ReportAggregator()
    logger.debug("Processing %d file(s) with %d job(s)", len(files), config.jobs)

    try:
        if config.jobs > 1 and len(files) > 1:
            pool = ThreadPoolExecutor(max_workers=config.jobs)
            try:
                futures = [pool.submit(engine.process_file, path, root) for path in files]
                # Results are only aggregated here, on the coordinating thread.
                for future in as_completed(futures):
                    aggregator.add(future.result())
            except KeyboardInterrupt:
                pool.shutdown(wait=True, cancel_futures=True)
                raise
            pool.shutdown(wait=True)
        else:
            for path in files:
                aggregator.add(engine.process_file(path, root))
    except KeyboardInterrupt:
        logger.warning("Interrupted after %d of %d file(s)", len(aggregator.results), len(files))
        aggregator.mark_interrupted()

    return aggregator.build()
