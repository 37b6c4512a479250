"""Rule registry."""

from __future__ import annotations

from typing import Iterable, Optional

from .attributes import CamelCaseAttributeRule, QuoteConsistencyRule, ReservedPropRule
from .base import (
    Category,
    Change,
    ChangeKind,
    DetectionFailure,
    Finding,
    FixFailure,
    Rule,
    RuleContext,
    Severity,
    Transformer,
)
from .expressions import ConditionalRenderingRule, EmptyExpressionRule, NestedTernaryRule
from .naming import ComponentNamingRule, InlineFunctionRule, PropsSpreadingRule
from .security import DangerousHtmlRule, SafeInterpolationRule
from .structure import FragmentUsageRule, MissingKeyRule, SelfClosingTagRule

# Registration order is reporting order.
DEFAULT_RULES: tuple[Rule, ...] = (
    EmptyExpressionRule(),
    NestedTernaryRule(),
    ConditionalRenderingRule(),
    QuoteConsistencyRule(),
    ReservedPropRule(),
    CamelCaseAttributeRule(),
    DangerousHtmlRule(),
    SafeInterpolationRule(),
    SelfClosingTagRule(),
    FragmentUsageRule(),
    MissingKeyRule(),
    ComponentNamingRule(),
    PropsSpreadingRule(),
    InlineFunctionRule(),
)

RULE_IDS = frozenset(rule.id for rule in DEFAULT_RULES)


def get_rule(rule_id: str) -> Optional[Rule]:
    for rule in DEFAULT_RULES:
        if rule.id == rule_id:
            return rule
    return None


def default_rules(disabled: Iterable[str] = ()) -> list[Rule]:
    """Registered rules minus ``disabled``; unknown ids raise ValueError."""
    disabled = set(disabled)
    unknown = disabled - RULE_IDS
    if unknown:
        raise ValueError(f"Unknown rule id(s): {', '.join(sorted(unknown))}")
    return [rule for rule in DEFAULT_RULES if rule.id not in disabled]


__all__ = [
    "Category",
    "Change",
    "ChangeKind",
    "DEFAULT_RULES",
    "DetectionFailure",
    "Finding",
    "FixFailure",
    "Rule",
    "RuleContext",
    "RULE_IDS",
    "Severity",
    "Transformer",
    "default_rules",
    "get_rule",
]
