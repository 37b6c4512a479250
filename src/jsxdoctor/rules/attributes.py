"""Attribute spelling and quoting checks."""

from __future__ import annotations

from typing import Mapping

from ..syntax.nodes import JSXAttribute, JSXOpeningElement, StringLiteral
from .base import Category, ChangeKind, Finding, FixResult, Rule, RuleContext, Severity, Transformer
from .tables import CAMEL_CASE_ATTRIBUTES, RESERVED_PROPS


class QuoteConsistencyRule(Rule):
    """Reports once per file, at the first attribute written with the less common quote."""

    id = "quote-consistency"
    name = "Quote consistency"
    category = Category.ATTRIBUTE
    severity = Severity.WARNING
    message = "Inconsistent quote usage in JSX attributes"
    hint = "Use consistent quotes (prefer double quotes for JSX)"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        quoted = [
            attribute
            for attribute in ctx.nodes(JSXAttribute)
            if isinstance(attribute.value, StringLiteral)
        ]
        single = [attribute for attribute in quoted if attribute.value.quote == "'"]
        double = [attribute for attribute in quoted if attribute.value.quote == '"']
        if not single or not double:
            return []

        minority = double if len(double) < len(single) else single
        detail = f"Mixed quotes: {len(single)} single, {len(double)} double"
        return [self.report(ctx, minority[0], detail=detail)]


class _AttributeRenameRule(Transformer):
    """Renames attributes found in a fixed spelling table."""

    renames: Mapping[str, str]

    def detect(self, ctx: RuleContext) -> list[Finding]:
        return [
            self.report(ctx, attribute, detail=attribute.name.name)
            for attribute in ctx.nodes(JSXAttribute)
            if attribute.name.name in self.renames
        ]

    def fix(self, ctx: RuleContext, finding: Finding) -> FixResult:
        attribute = finding.node
        old_name = attribute.name.name
        new_name = self.renames.get(old_name)
        if new_name is None:
            return self.refuse(finding, f"'{old_name}' was already renamed")

        opening = attribute.parent
        if isinstance(opening, JSXOpeningElement) and opening.find_attribute(new_name) is not None:
            return self.refuse(finding, f"element already has a '{new_name}' attribute")

        attribute.name.name = new_name
        return self.change(finding, ChangeKind.ATTRIBUTE_RENAME, before=old_name, after=new_name)


class ReservedPropRule(_AttributeRenameRule):
    id = "reserved-prop"
    name = "Reserved prop names"
    category = Category.ATTRIBUTE
    severity = Severity.ERROR
    message = "Using reserved prop names (class, for)"
    hint = "Use className instead of class, htmlFor instead of for"
    renames = RESERVED_PROPS


class CamelCaseAttributeRule(_AttributeRenameRule):
    id = "camelCase-attribute"
    name = "CamelCase attributes"
    category = Category.ATTRIBUTE
    severity = Severity.WARNING
    message = "HTML attributes should use camelCase in JSX"
    hint = "Convert HTML attributes to camelCase (e.g., tabindex → tabIndex)"
    renames = CAMEL_CASE_ATTRIBUTES
