"""Element structure checks: void tags, fragments and list keys."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..syntax.nodes import (
    ArrowFunction,
    Block,
    CallExpression,
    FunctionExpression,
    Identifier,
    JSXAttribute,
    JSXElement,
    JSXExpressionContainer,
    JSXFragment,
    JSXName,
    JSXText,
    MemberExpression,
    Node,
    Opaque,
    attach,
    enclosing_function,
    is_descendant,
    own_returns,
    unwrap_parens,
)
from ..syntax.scope import Scope, identifiers_named
from .base import Category, ChangeKind, Finding, FixResult, Rule, RuleContext, Severity, Transformer
from .tables import VOID_ELEMENTS

logger = logging.getLogger(__name__)

INDEX_PARAMETER = "index"
PLACEHOLDER_PARAMETER = "_"


def _is_blank(node: Node) -> bool:
    # JSX drops whitespace-only text that spans a line break.
    return isinstance(node, JSXText) and not node.text.strip() and "\n" in node.text


class SelfClosingTagRule(Transformer):
    id = "self-closing-tag"
    name = "Self-closing tags"
    category = Category.STRUCTURE
    severity = Severity.INFO
    message = "Empty tags should be self-closing"
    hint = "Use self-closing syntax for empty tags (e.g., <img />)"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for element in ctx.nodes(JSXElement):
            if not isinstance(element.opening.name, JSXName) or element.self_closing:
                continue
            if element.tag.lower() not in VOID_ELEMENTS:
                continue
            if all(_is_blank(child) for child in element.content):
                findings.append(self.report(ctx, element, detail=element.tag))
        return findings

    def fix(self, ctx: RuleContext, finding: Finding) -> FixResult:
        element = finding.node
        if element.self_closing or element.closing is None:
            return self.refuse(finding, "element is already self-closing")
        if not all(_is_blank(child) for child in element.content):
            return self.refuse(finding, "element has children")

        tag = element.tag
        element.collapse()
        return self.change(
            finding,
            ChangeKind.TAG_COLLAPSE,
            before=f"<{tag}></{tag}>",
            after=f"<{tag} />",
            action="made self-closing",
        )


class FragmentUsageRule(Rule):
    id = "fragment-usage"
    name = "Fragment usage"
    category = Category.STRUCTURE
    severity = Severity.GOOD
    message = "Good use of React Fragments"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = [self.report(ctx, fragment, detail="Using React Fragment") for fragment in ctx.nodes(JSXFragment)]
        for element in ctx.nodes(JSXElement):
            name = element.opening.name
            if (isinstance(name, Identifier) and name.name == "Fragment") or (
                isinstance(name, MemberExpression) and name.property == "Fragment"
            ):
                findings.append(self.report(ctx, element, detail="Using React Fragment"))
        return findings


def _map_callback(call: CallExpression) -> Optional[Node]:
    callee = call.callee
    if not isinstance(callee, MemberExpression) or callee.property != "map" or not call.arguments:
        return None
    callback = unwrap_parens(call.arguments[0])
    if isinstance(callback, (ArrowFunction, FunctionExpression)):
        return callback
    return None


def _returned_elements(callback: Node) -> Iterator[JSXElement]:
    body = callback.body
    if isinstance(body, Block):
        for statement in own_returns(callback):
            returned = unwrap_parens(statement.argument)
            if isinstance(returned, JSXElement):
                yield returned
        return
    returned = unwrap_parens(body)
    if isinstance(returned, JSXElement):
        yield returned


def _plain_identifier(param: Node) -> Optional[Identifier]:
    if isinstance(param, Identifier):
        return param
    if isinstance(param, Opaque) and param.kind in ("required_parameter", "optional_parameter"):
        pattern = param.part("pattern")
        if isinstance(pattern, Identifier):
            return pattern
    return None


class MissingKeyRule(Transformer):
    """Elements returned from a ``.map`` callback need a ``key`` prop.

    The fix keys the element on the callback's index parameter, adding an
    ``index`` parameter when the callback takes fewer than two.
    """

    id = "missing-key"
    name = "Key props in lists"
    category = Category.STRUCTURE
    severity = Severity.ERROR
    message = "Missing key prop in list items"
    hint = "Add unique key prop to list items"

    def detect(self, ctx: RuleContext) -> list[Finding]:
        findings = []
        for call in ctx.nodes(CallExpression):
            callback = _map_callback(call)
            if callback is None:
                continue
            for element in _returned_elements(callback):
                if element.opening.find_attribute("key") is None:
                    findings.append(self.report(ctx, element, detail=element.tag or None))
        return findings

    def fix(self, ctx: RuleContext, finding: Finding) -> FixResult:
        element = finding.node
        if element.opening.find_attribute("key") is not None:
            return self.refuse(finding, "element already has a key")
        callback = enclosing_function(element)
        scope = ctx.scopes.scope_for(callback) if callback is not None else None
        if scope is None:
            return self.refuse(finding, "list callback not found")

        params = callback.params
        if len(params.params) >= 2:
            index = _plain_identifier(params.params[1])
            if index is None:
                return self.refuse(finding, "index parameter is not a plain identifier")
            binding = ctx.scopes.binding_for(index)
        else:
            names = [INDEX_PARAMETER] if params.params else [PLACEHOLDER_PARAMETER, INDEX_PARAMETER]
            for name in names:
                reason = self._introduce_conflict(ctx, callback, scope, name)
                if reason is not None:
                    return self.refuse(finding, reason)
            for name in names:
                index = attach(Identifier(name), params, params)
                params.add(index)
                binding = ctx.scopes.declare(scope, index, "param")
            params.parenthesized = True

        reference = Identifier(index.name)
        attribute = JSXAttribute(name=JSXName("key"), value=JSXExpressionContainer(expression=reference))
        attach(attribute, element.opening, element.opening)
        element.opening.insert_attribute(0, attribute)
        if binding is not None:
            ctx.scopes.add_reference(binding, reference, ctx.scopes.scope_of(element))
        return self.change(
            finding,
            ChangeKind.ATTRIBUTE_INSERT,
            after=f"key={{{index.name}}}",
            action="added key prop",
        )

    def _introduce_conflict(self, ctx: RuleContext, callback: Node, scope: Scope, name: str) -> Optional[str]:
        """Reason a new parameter ``name`` would change what the callback refers to."""
        if name in scope.bindings:
            return f"'{name}' is already bound in the callback"
        for identifier in identifiers_named(callback, name):
            binding = ctx.scopes.binding_for(identifier)
            if binding is None:
                return f"parameter '{name}' would shadow a global used at line {identifier.line}"
            owner = binding.scope.node
            if owner is not callback and not is_descendant(owner, callback):
                return f"parameter '{name}' would shadow an outer binding used at line {identifier.line}"
        return None
