"""Turn a (possibly mutated) syntax tree back into source text.

Parsed nodes are re-emitted by splicing: the original bytes between children
are copied verbatim and each child is rendered in turn, so comments and
formatting outside edited nodes survive. Synthesized nodes have no original
bytes and are printed from their fields.
"""

from __future__ import annotations

from typing import Callable, Iterable

from ..errors import GenerationError
from .nodes import (
    NODE_TYPES,
    ArrowFunction,
    Block,
    CallExpression,
    ConditionalExpression,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    ImportDeclaration,
    JSXAttribute,
    JSXClosingElement,
    JSXElement,
    JSXExpressionContainer,
    JSXFragment,
    JSXName,
    JSXOpeningElement,
    JSXSpreadAttribute,
    JSXText,
    LogicalExpression,
    MemberExpression,
    Node,
    Opaque,
    Parameters,
    ParenthesizedExpression,
    Program,
    ReturnStatement,
    StringLiteral,
    SyntaxTree,
    VariableDeclaration,
    VariableDeclarator,
)


class CodeGenerator:
    """Serializes syntax trees."""

    def __init__(self) -> None:
        self._renderers: dict[type[Node], Callable[[Node], bytes]] = {
            Program: self._splice_children,
            Block: self._splice_children,
            FunctionDeclaration: self._splice_children,
            FunctionExpression: self._splice_children,
            ArrowFunction: self._splice_children,
            VariableDeclarator: self._splice_children,
            VariableDeclaration: self._splice_children,
            ReturnStatement: self._splice_children,
            CallExpression: self._splice_children,
            MemberExpression: self._splice_children,
            ConditionalExpression: self._splice_children,
            LogicalExpression: self._splice_children,
            ParenthesizedExpression: self._splice_children,
            ImportDeclaration: self._splice_children,
            JSXClosingElement: self._splice_children,
            JSXSpreadAttribute: self._splice_children,
            JSXFragment: self._splice_children,
            Opaque: self._splice_children,
            Identifier: self._identifier,
            Parameters: self._parameters,
            StringLiteral: self._string,
            JSXName: self._name,
            JSXText: self._text,
            JSXExpressionContainer: self._expression_container,
            JSXAttribute: self._attribute,
            JSXOpeningElement: self._opening_element,
            JSXElement: self._element,
        }
        missing = [cls.__name__ for cls in NODE_TYPES if cls not in self._renderers]
        if missing:
            raise TypeError(f"No renderer for node types: {', '.join(missing)}")
        self._source = b""

    def generate(self, tree: SyntaxTree) -> str:
        return self.generate_bytes(tree).decode("utf-8")

    def generate_bytes(self, tree: SyntaxTree) -> bytes:
        self._source = tree.source_bytes
        root = tree.root
        body = self.render(root)
        return self._source[: root.start or 0] + body + self._source[root.end or len(self._source):]

    def render(self, node: Node) -> bytes:
        renderer = self._renderers.get(type(node))
        if renderer is None:
            raise GenerationError(f"No renderer for {type(node).__name__}")
        return renderer(node)

    # -- splicing ----------------------------------------------------------

    def _original(self, node: Node) -> bytes:
        return self._source[node.start:node.end]

    def _gap(self, owner: Node, start: int, end: int) -> bytes:
        """Original bytes between two children, minus spans of removed children."""
        removed = sorted(getattr(owner, "removed_spans", ()))
        if not removed:
            return self._source[start:end]
        out = bytearray()
        cursor = start
        for span_start, span_end in removed:
            if span_end <= cursor or span_start >= end:
                continue
            out += self._source[cursor:span_start]
            cursor = span_end
        out += self._source[cursor:end]
        return bytes(out)

    def _splice(self, node: Node, children: Iterable[Node]) -> bytes:
        if node.synthesized:
            raise GenerationError(f"Cannot print synthesized {type(node).__name__}")
        out = bytearray()
        cursor = node.start
        for child in children:
            if child.synthesized:
                raise GenerationError(
                    f"Synthesized {type(child).__name__} has no position inside {type(node).__name__}"
                )
            out += self._gap(node, cursor, child.start)
            out += self.render(child)
            cursor = child.end
        out += self._gap(node, cursor, node.end)
        return bytes(out)

    def _splice_children(self, node: Node) -> bytes:
        return self._splice(node, node.children())

    # -- leaves ------------------------------------------------------------

    def _identifier(self, node: Identifier) -> bytes:
        if node.synthesized or node.name == node.original:
            return node.name.encode("utf-8")
        if node.shorthand == "property":
            return f"{node.original}: {node.name}".encode("utf-8")
        if node.shorthand == "export":
            return f"{node.name} as {node.original}".encode("utf-8")
        return node.name.encode("utf-8")

    def _name(self, node: JSXName) -> bytes:
        return node.name.encode("utf-8")

    def _string(self, node: StringLiteral) -> bytes:
        if node.synthesized:
            return f"{node.quote}{node.value}{node.quote}".encode("utf-8")
        return self._original(node)

    def _text(self, node: JSXText) -> bytes:
        if node.synthesized:
            return node.text.encode("utf-8")
        return self._original(node)

    # -- nodes that may hold synthesized parts -------------------------------

    def _parameters(self, node: Parameters) -> bytes:
        if not node.synthesized and not any(param.synthesized for param in node.params):
            return self._splice_children(node)
        rendered = ", ".join(self.render(param).decode("utf-8") for param in node.params)
        return f"({rendered})".encode("utf-8")

    def _expression_container(self, node: JSXExpressionContainer) -> bytes:
        if not node.synthesized:
            return self._splice_children(node)
        inner = self.render(node.expression) if node.expression is not None else b""
        return b"{" + inner + b"}"

    def _attribute(self, node: JSXAttribute) -> bytes:
        if not node.synthesized:
            return self._splice_children(node)
        out = self.render(node.name)
        if node.value is not None:
            out += b"=" + self.render(node.value)
        return out

    def _opening_element(self, node: JSXOpeningElement) -> bytes:
        out = bytearray(self._gap(node, node.start, node.name.start))
        out += self.render(node.name)
        for attribute in node.attributes:
            if attribute.synthesized:
                out += b" " + self.render(attribute)
        cursor = node.name.end
        for attribute in node.attributes:
            if attribute.synthesized:
                continue
            out += self._gap(node, cursor, attribute.start)
            out += self.render(attribute)
            cursor = attribute.end
        tail = self._gap(node, cursor, node.end)
        if node.self_closing and not tail.rstrip().endswith(b"/>"):
            tail = tail.rstrip()
            if tail.endswith(b">"):
                tail = tail[:-1]
            out = bytearray(bytes(out).rstrip())
            tail = tail.rstrip() + b" />"
        out += tail
        return bytes(out)

    def _element(self, node: JSXElement) -> bytes:
        if node.self_closing:
            return self.render(node.opening)
        return self._splice_children(node)
