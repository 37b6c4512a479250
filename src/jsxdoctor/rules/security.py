"""Markup injection checks."""

from __future__ import annotations

from ..syntax.nodes import MARKUP_TYPES, Identifier, JSXAttribute, JSXExpressionContainer
from .base import Category, Finding, Rule, RuleContext, Severity

RAW_HTML_ATTRIBUTE = "dangerouslySetInnerHTML"


class DangerousHtmlRule(Rule):
    """Flags raw HTML injection; sanitisation cannot be proven statically."""

    id = "dangerous-html"
    name = "dangerouslySetInnerHTML"
    category = Category.SECURITY
    severity = Severity.WARNING
    message = "Using dangerouslySetInnerHTML - ensure content is sanitized"
    hint = "Sanitize content or use text content instead"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        return [
            self.report(ctx, attribute)
            for attribute in ctx.nodes(JSXAttribute)
            if attribute.name.name == RAW_HTML_ATTRIBUTE
        ]


class SafeInterpolationRule(Rule):
    id = "safe-interpolation"
    name = "User input in JSX"
    category = Category.SECURITY
    severity = Severity.GOOD
    message = "User input is safely rendered in JSX"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for container in ctx.nodes(JSXExpressionContainer):
            if not isinstance(container.parent, MARKUP_TYPES):
                continue
            expression = container.expression
            if isinstance(expression, Identifier) and ctx.scopes.binding_for(expression) is not None:
                findings.append(self.report(ctx, container, detail=expression.name))
        return findings
