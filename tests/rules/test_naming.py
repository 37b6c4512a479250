"""Tests for naming and prop-passing rules."""

from jsxdoctor.rules.base import Change, ChangeKind, FixFailure, Severity
from jsxdoctor.rules.naming import ComponentNamingRule, InlineFunctionRule, PropsSpreadingRule
from jsxdoctor.syntax.generator import CodeGenerator


class TestComponentNamingRule:
    def setup_method(self):
        self.rule = ComponentNamingRule()

    def test_detects_function_declaration(self, make_context):
        ctx = make_context("function myComponent() {\n  return <div />;\n}\n")
        findings = self.rule.detect(ctx)

        assert len(findings) == 1
        assert findings[0].severity == Severity.WARNING
        assert findings[0].detail == "myComponent"

    def test_detects_arrow_functions(self, make_context):
        ctx = make_context(
            "const card = () => <div />;\n"
            "const panel = function () { return (<section />); };\n"
            "const helper = () => 42;\n"
        )

        assert [f.detail for f in self.rule.detect(ctx)] == ["card", "panel"]

    def test_ignores_markup_returned_by_nested_function(self, make_context):
        ctx = make_context(
            "function build(items) {\n"
            "  const render = () => <ul />;\n"
            "  return items.length;\n"
            "}\n"
        )

        assert [f.detail for f in self.rule.detect(ctx)] == ["render"]

    def test_rename_updates_every_reference(self, make_context):
        ctx = make_context(
            "function myComponent() {\n"
            "  return <div />;\n"
            "}\n"
            "const el = myComponent();\n"
            "export default myComponent;\n"
        )
        change = self.rule.fix(ctx, self.rule.detect(ctx)[0])

        assert isinstance(change, Change)
        assert change.kind == ChangeKind.RENAME
        assert (change.before, change.after) == ("myComponent", "MyComponent")
        binding = next(b for b in ctx.scopes.bindings() if b.name == "MyComponent")
        assert [ref.name for ref in binding.references] == ["MyComponent", "MyComponent"]
        assert not any(b.name == "myComponent" for b in ctx.scopes.bindings())

        output = CodeGenerator().generate(ctx.tree)
        assert "myComponent" not in output
        assert "const el = MyComponent();" in output

    def test_refuses_on_conflict(self, make_context):
        ctx = make_context(
            "const MyComponent = null;\n"
            "function myComponent() { return <div />; }\n"
        )
        outcome = self.rule.fix(ctx, self.rule.detect(ctx)[0])

        assert isinstance(outcome, FixFailure)
        assert "function myComponent()" in CodeGenerator().generate(ctx.tree)

    def test_refuses_named_export(self, make_context):
        ctx = make_context("export function card() { return <div />; }\n")
        outcome = self.rule.fix(ctx, self.rule.detect(ctx)[0])

        assert isinstance(outcome, FixFailure)
        assert "export" in outcome.reason

    def test_default_export_is_renamed(self, make_context):
        ctx = make_context("export default function card() { return <div />; }\n")
        outcome = self.rule.fix(ctx, self.rule.detect(ctx)[0])

        assert isinstance(outcome, Change)
        assert CodeGenerator().generate(ctx.tree) == "export default function Card() { return <div />; }\n"

    def test_aliased_export_is_renamed(self, make_context):
        ctx = make_context("function card() { return <div />; }\nexport { card as Card };\n")
        assert ctx.scopes.unresolved == []
        outcome = self.rule.fix(ctx, self.rule.detect(ctx)[0])

        assert isinstance(outcome, Change)
        assert CodeGenerator().generate(ctx.tree) == (
            "function Card() { return <div />; }\nexport { Card as Card };\n"
        )


def test_props_spreading(make_context):
    ctx = make_context("const A = (props) => <B {...props} {...props.extra} />;\n")
    findings = PropsSpreadingRule().detect(ctx)

    assert len(findings) == 2
    assert all(f.severity == Severity.INFO for f in findings)


def test_inline_function(make_context):
    ctx = make_context(
        "const A = ({ save }) => (\n"
        "  <form onSubmit={save}>\n"
        "    <button onClick={() => save()} onBlur={function () {}} />\n"
        "  </form>\n"
        ");\n"
    )
    findings = InlineFunctionRule().detect(ctx)

    assert [f.detail for f in findings] == ["onClick", "onBlur"]
