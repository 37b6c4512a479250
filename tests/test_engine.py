"""Tests for the per-file pipeline and project runs."""

import pytest
from jsxdoctor.config import Config
from jsxdoctor.engine import Engine, FileState, run_project
from jsxdoctor.errors import ScanRootError
from jsxdoctor.rules import default_rules
from jsxdoctor.rules.base import Category, Rule, Severity, Transformer
from jsxdoctor.syntax.scope import Resolver


class ExplodingRule(Rule):
    id = "exploding"
    name = "Exploding"
    category = Category.EXPRESSION
    severity = Severity.ERROR
    message = "never reported"

    def detect(self, ctx):
        raise RuntimeError("boom")


class ExplodingFixRule(Transformer):
    id = "exploding-fix"
    name = "Exploding fix"
    category = Category.STRUCTURE
    severity = Severity.ERROR
    message = "div found"

    def detect(self, ctx):
        from jsxdoctor.syntax.nodes import JSXElement

        return [self.report(ctx, element) for element in ctx.nodes(JSXElement) if element.tag == "div"]

    def fix(self, ctx, finding):
        raise RuntimeError("cannot fix")


class TestAnalyzeSource:
    def test_check_mode_does_not_fix(self, config):
        result = Engine(config).analyze_source('const A = () => <div class="x" />;\n', "A.jsx")

        assert result.state == FileState.UNCHANGED
        assert result.changes == []
        assert result.output is None
        assert [f.rule_id for f in result.unresolved_errors] == ["reserved-prop"]

    def test_fix_mode_regenerates(self, engine):
        result = engine.analyze_source('const A = () => <div class="x" />;\n', "A.jsx")

        assert result.state == FileState.REGENERATED
        assert result.output == 'const A = () => <div className="x" />;\n'
        assert len(result.changes) == 1
        assert result.unresolved_errors == []

    def test_empty_expressions_all_removed(self, engine):
        source = "const A = () => <div>{}<p>{}</p>{}{}</div>;\n"
        result = engine.analyze_source(source, "A.jsx")

        assert [c.rule_id for c in result.changes] == ["empty-expression"] * 4
        assert result.output == "const A = () => <div><p></p></div>;\n"
        rerun = engine.analyze_source(result.output, "A.jsx")
        assert not any(f.rule_id == "empty-expression" for f in rerun.findings)

    def test_fixes_enable_further_fixes(self, engine):
        result = engine.analyze_source("const A = () => <img>{}</img>;\n", "A.jsx")

        assert [c.rule_id for c in result.changes] == ["empty-expression", "self-closing-tag"]
        assert result.passes == 3
        assert result.output == "const A = () => <img />;\n"

    def test_fix_passes_are_bounded(self, tmp_path):
        engine = Engine(Config(root=tmp_path, fix=True, max_fix_passes=1))
        result = engine.analyze_source("const A = () => <img>{}</img>;\n", "A.jsx")

        assert [c.rule_id for c in result.changes] == ["empty-expression"]
        assert result.passes == 1
        assert [f.rule_id for f in result.unresolved] == ["self-closing-tag"]

    def test_idempotent(self, engine):
        source = (
            "function todoItem({ todo }) {\n"
            "  return <li class='item' tabindex=\"0\">{todo.title}{}</li>;\n"
            "}\n"
            "export const TodoList = ({ todos }) => (\n"
            "  <ul>{todos.map(todo => todoItem({ todo }))}{todos.map(t => <input readonly></input>)}</ul>\n"
            ");\n"
        )
        first = engine.analyze_source(source, "TodoList.jsx")
        assert first.changes

        second = engine.analyze_source(first.output, "TodoList.jsx")
        assert second.changes == []
        assert second.state == FileState.UNCHANGED

    def test_parse_failure_is_isolated(self, engine):
        result = engine.analyze_source("const A = () => <div>;\n", "Broken.jsx")

        assert result.parse_failed
        assert result.state == FileState.SKIPPED
        assert result.findings == []
        assert result.changes == []
        assert "Broken.jsx" in result.parse_error

    def test_unexpected_failure_skips_file(self, engine, monkeypatch):
        def explode(tree):
            raise RuntimeError("tree too strange")

        monkeypatch.setattr(engine.resolver, "resolve", explode)
        result = engine.analyze_source('const A = () => <div class="x" />;\n', "A.jsx")

        assert result.state == FileState.SKIPPED
        assert result.error == "RuntimeError: tree too strange"
        assert result.findings == []
        assert result.changes == []
        assert result.output is None

    def test_detection_failure_is_isolated(self, config):
        engine = Engine(config, [ExplodingRule(), *default_rules()])
        result = engine.analyze_source('const A = () => <div class="x" />;\n', "A.jsx")

        assert [e.rule_id for e in result.errors] == ["exploding"]
        assert "boom" in result.errors[0].message
        assert any(f.rule_id == "reserved-prop" for f in result.findings)

    def test_fix_failure_keeps_finding(self, fix_config):
        engine = Engine(fix_config, [ExplodingFixRule(), *default_rules()])
        result = engine.analyze_source('const A = () => <div class="x" />;\n', "A.jsx")

        assert [f.rule_id for f in result.fix_failures] == ["exploding-fix"]
        assert [f.rule_id for f in result.unresolved_errors] == ["exploding-fix"]
        assert [c.rule_id for c in result.changes] == ["reserved-prop"]

    def test_good_findings_are_not_issues(self, config):
        result = Engine(config).analyze_source(
            "const A = ({ ok, name }) => <>{ok && <b>{name}</b>}</>;\n", "A.jsx"
        )

        assert result.issues == []
        assert {f.rule_id for f in result.good} == {"conditional-rendering", "safe-interpolation", "fragment-usage"}


class TestProcessFile:
    def test_writes_only_when_changed(self, tmp_path, fix_config):
        clean = tmp_path / "Clean.jsx"
        clean.write_text("const Clean = () => <p />;\n")
        dirty = tmp_path / "Dirty.jsx"
        dirty.write_text('const Dirty = () => <p class="x" />;\n')
        engine = Engine(fix_config)

        clean_result = engine.process_file(clean, tmp_path)
        dirty_result = engine.process_file(dirty, tmp_path)

        assert clean_result.state == FileState.UNCHANGED
        assert not clean_result.written
        assert dirty_result.state == FileState.WRITTEN
        assert dirty_result.written
        assert dirty_result.path == "Dirty.jsx"
        assert dirty.read_text() == 'const Dirty = () => <p className="x" />;\n'

    def test_preserves_line_endings(self, tmp_path, fix_config):
        path = tmp_path / "Crlf.jsx"
        path.write_bytes(b'const A = () => <label for="x" />;\r\nexport default A;\r\n')

        Engine(fix_config).process_file(path, tmp_path)

        assert path.read_bytes() == b'const A = () => <label htmlFor="x" />;\r\nexport default A;\r\n'
        assert not list(tmp_path.glob(".*.tmp"))

    def test_write_error_is_recorded(self, tmp_path, fix_config, monkeypatch):
        path = tmp_path / "A.jsx"
        path.write_text('const A = () => <p class="x" />;\n')

        def fail(*args, **kwargs):
            raise PermissionError("read-only file system")

        monkeypatch.setattr("jsxdoctor.engine._write_atomic", fail)
        result = Engine(fix_config).process_file(path, tmp_path)

        assert not result.written
        assert "read-only" in result.write_error
        assert result.changes == []
        assert [f.rule_id for f in result.unresolved_errors] == ["reserved-prop"]
        assert path.read_text() == 'const A = () => <p class="x" />;\n'


class TestRunProject:
    def test_check_project(self, temp_repo):
        report = run_project(Config(root=temp_repo))

        assert report.files_checked == 2
        assert [f.file for f in report.files] == ["src/Clean.tsx", "src/TodoList.jsx"]
        assert report.files_fixed == 0
        assert report.summary.unresolved_errors == 2  # class attribute and missing key

    def test_fix_project(self, temp_repo):
        report = run_project(Config(root=temp_repo, fix=True))

        assert report.files_fixed == 1
        assert report.changes_by_type == {"reserved-prop": 1, "missing-key": 1}
        assert report.summary.unresolved_errors == 0
        fixed = (temp_repo / "src" / "TodoList.jsx").read_text()
        assert '<ul className="todos">' in fixed
        assert "todos.map((todo, index) => <li key={index} onClick" in fixed

    def test_excluded_directory_is_absent(self, temp_repo):
        vendor = temp_repo / "node_modules" / "lib"
        vendor.mkdir(parents=True)
        (vendor / "Bad.jsx").write_text('const Bad = () => <div class="x" />;\n')

        report = run_project(Config(root=temp_repo))

        assert all("node_modules" not in f.file for f in report.files)
        assert report.files_checked == 2

    def test_parse_failure_does_not_stop_run(self, temp_repo):
        (temp_repo / "src" / "Broken.jsx").write_text("const Broken = () => <div>;\n")

        report = run_project(Config(root=temp_repo, fix=True))

        broken = next(f for f in report.files if f.file == "src/Broken.jsx")
        assert broken.parse_failed
        assert broken.findings == []
        assert broken.changes == []
        assert report.files_checked == 3
        assert report.files_fixed == 1
        assert report.summary.unresolved_errors == 0

    @pytest.mark.parametrize("jobs", [1, 2])
    def test_deeply_nested_file_does_not_stop_run(self, temp_repo, jobs):
        deep = "const s = " + " + ".join(['"a"'] * 3000) + ";\n"
        (temp_repo / "src" / "Deep.jsx").write_text(deep)

        report = run_project(Config(root=temp_repo, jobs=jobs))

        assert [f.file for f in report.files] == ["src/Clean.tsx", "src/Deep.jsx", "src/TodoList.jsx"]
        deep_report = report.files[1]
        assert deep_report.parse_failed
        assert "nested too deeply" in deep_report.errors[0].message
        assert report.summary.unresolved_errors == 2

    @pytest.mark.parametrize("jobs", [1, 2])
    def test_unexpected_failure_is_recorded_per_file(self, temp_repo, monkeypatch, jobs):
        resolve = Resolver.resolve

        def flaky_resolve(self, tree):
            if tree.path.endswith("Clean.tsx"):
                raise RecursionError("maximum recursion depth exceeded")
            return resolve(self, tree)

        monkeypatch.setattr(Resolver, "resolve", flaky_resolve)
        report = run_project(Config(root=temp_repo, fix=True, jobs=jobs))

        assert report.files_checked == 2
        clean, todo = report.files
        assert clean.file == "src/Clean.tsx"
        assert [e.stage for e in clean.errors] == ["analyze"]
        assert "RecursionError" in clean.errors[0].message
        assert clean.findings == []
        assert not clean.written
        assert todo.written
        assert report.files_fixed == 1

    def test_parallel_run_matches_sequential(self, temp_repo):
        sequential = run_project(Config(root=temp_repo))
        parallel = run_project(Config(root=temp_repo, jobs=4))

        assert [f.file for f in parallel.files] == [f.file for f in sequential.files]
        assert parallel.summary.by_rule == sequential.summary.by_rule

    def test_missing_root_is_fatal(self, tmp_path):
        with pytest.raises(ScanRootError):
            run_project(Config(root=tmp_path / "missing"))
