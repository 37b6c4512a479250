"""Checks on embedded ``{...}`` expressions."""

from __future__ import annotations

from ..syntax.nodes import (
    MARKUP_TYPES,
    ConditionalExpression,
    JSXExpressionContainer,
    LogicalExpression,
    unwrap_parens,
)
from .base import Category, ChangeKind, Finding, FixResult, Rule, RuleContext, Severity, Transformer


class EmptyExpressionRule(Transformer):
    id = "empty-expression"
    name = "Empty JSX expressions"
    category = Category.EXPRESSION
    severity = Severity.WARNING
    message = "Avoid empty JSX expressions {}"
    hint = "Remove empty expressions or add meaningful content"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        return [
            self.report(ctx, container)
            for container in ctx.nodes(JSXExpressionContainer)
            if container.is_empty
        ]

    def fix(self, ctx: RuleContext, finding: Finding) -> FixResult:
        container = finding.node
        parent = container.parent
        # Attribute values and other non-child positions cannot simply lose the node.
        if not isinstance(parent, MARKUP_TYPES):
            return self.refuse(finding, "expression is not a child of an element or fragment")
        if not parent.remove_child(container):
            return self.refuse(finding, "expression is no longer in the tree")
        return self.change(finding, ChangeKind.EXPRESSION_REMOVAL, before=ctx.tree.text_of(container) or "{}", action="removed")


class NestedTernaryRule(Rule):
    id = "nested-ternary"
    name = "Complex expressions in JSX"
    category = Category.EXPRESSION
    severity = Severity.INFO
    message = "Complex expressions in JSX reduce readability"
    hint = "Extract complex expressions to variables or functions"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for container in ctx.nodes(JSXExpressionContainer):
            expression = unwrap_parens(container.expression)
            if isinstance(expression, ConditionalExpression) and isinstance(
                unwrap_parens(expression.alternate), ConditionalExpression
            ):
                findings.append(self.report(ctx, container, detail="Nested ternary expression"))
        return findings


class ConditionalRenderingRule(Rule):
    id = "conditional-rendering"
    name = "Conditional rendering"
    category = Category.EXPRESSION
    severity = Severity.GOOD
    message = "Good use of conditional rendering"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for container in ctx.nodes(JSXExpressionContainer):
            expression = unwrap_parens(container.expression)
            if isinstance(expression, ConditionalExpression):
                findings.append(self.report(ctx, container, detail="ternary"))
            elif isinstance(expression, LogicalExpression) and expression.operator == "&&":
                findings.append(self.report(ctx, container, detail="short-circuit"))
        return findings
