"""Component naming and prop-passing checks."""

from __future__ import annotations

from typing import Iterator, Optional

from ..syntax.nodes import (
    FUNCTION_TYPES,
    ArrowFunction,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    JSXAttribute,
    JSXExpressionContainer,
    JSXSpreadAttribute,
    Node,
    Opaque,
    VariableDeclarator,
    returns_markup,
    unwrap_parens,
)
from .base import Category, ChangeKind, Finding, FixResult, Rule, RuleContext, Severity, Transformer


def _named_functions(ctx: RuleContext) -> Iterator[tuple[Identifier, Node]]:
    """(name, function) for function declarations and functions bound to a variable."""
    for declaration in ctx.nodes(FunctionDeclaration):
        if declaration.name is not None:
            yield declaration.name, declaration
    for declarator in ctx.nodes(VariableDeclarator):
        init = unwrap_parens(declarator.init)
        if isinstance(declarator.name, Identifier) and isinstance(init, (ArrowFunction, FunctionExpression)):
            yield declarator.name, init


def _export_statement(identifier: Identifier) -> Optional[Opaque]:
    for ancestor in identifier.ancestors():
        if isinstance(ancestor, Opaque) and ancestor.kind == "export_statement":
            return ancestor
        if isinstance(ancestor, (*FUNCTION_TYPES, VariableDeclarator)) and ancestor is not identifier.parent:
            return None
    return None


class ComponentNamingRule(Transformer):
    id = "component-naming"
    name = "Component naming"
    category = Category.NAMING
    severity = Severity.WARNING
    message = "Component names should be PascalCase"
    hint = "Rename components to use PascalCase"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for name, function in _named_functions(ctx):
            if name.name[:1].islower() and returns_markup(function):
                findings.append(self.report(ctx, name, detail=name.name))
        return findings

    def fix(self, ctx: RuleContext, finding: Finding) -> FixResult:
        identifier = finding.node
        binding = ctx.scopes.binding_for(identifier)
        if binding is None or binding.declaration is not identifier:
            return self.refuse(finding, f"no declaration recorded for '{identifier.name}'")

        export = _export_statement(identifier)
        if export is not None and not ctx.tree.text_of(export).startswith("export default"):
            return self.refuse(finding, f"'{identifier.name}' is a named export; renaming would change the module API")

        old_name = binding.name
        new_name = old_name[:1].upper() + old_name[1:]
        conflict = ctx.scopes.rename_conflict(binding, new_name)
        if conflict is not None:
            return self.refuse(finding, conflict)

        ctx.scopes.rename(binding, new_name)
        return self.change(finding, ChangeKind.RENAME, before=old_name, after=new_name)


class PropsSpreadingRule(Rule):
    id = "props-spreading"
    name = "Props spreading"
    category = Category.NAMING
    severity = Severity.INFO
    message = "Avoid excessive props spreading"
    hint = "Be explicit about which props to pass"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        return [self.report(ctx, spread) for spread in ctx.nodes(JSXSpreadAttribute)]


class InlineFunctionRule(Rule):
    id = "inline-function"
    name = "Inline functions"
    category = Category.NAMING
    severity = Severity.INFO
    message = "Inline function definitions in JSX can impact performance"
    hint = "Extract functions outside render or use useCallback"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for attribute in ctx.nodes(JSXAttribute):
            value = attribute.value
            if not isinstance(value, JSXExpressionContainer):
                continue
            if isinstance(unwrap_parens(value.expression), (ArrowFunction, FunctionExpression)):
                findings.append(self.report(ctx, attribute, detail=attribute.name.name))
        return findings
