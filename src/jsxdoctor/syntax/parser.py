"""JavaScript/TypeScript component parser using tree-sitter.

tree-sitter produces a concrete syntax tree; ``SourceParser`` converts it into
the node variants of :mod:`jsxdoctor.syntax.nodes`, keeping byte spans so the
original text can be regenerated around any edits.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Callable, Optional

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Parser

from ..errors import ParseError
from .nodes import (
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
    line_starts,
    position_of,
    walk,
)

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tsjs.language())
TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

# Map file extensions to tree-sitter languages
_LANG_MAP: dict[str, tuple[str, Language]] = {
    ".js": ("javascript", JS_LANGUAGE),
    ".jsx": ("javascript", JS_LANGUAGE),
    ".mjs": ("javascript", JS_LANGUAGE),
    ".ts": ("typescript", TS_LANGUAGE),
    ".tsx": ("tsx", TSX_LANGUAGE),
}

LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})


class SourceParser:
    """Parse component source into a :class:`SyntaxTree`."""

    def _get_language(self, file_path: str) -> tuple[str, Language]:
        """Pick the right tree-sitter language from file extension."""
        ext = PurePosixPath(file_path).suffix.lower()
        return _LANG_MAP.get(ext, _LANG_MAP[".jsx"])

    def parse(self, source: str, file_path: str = "component.jsx") -> SyntaxTree:
        """Parse ``source``; raises ParseError when the text is malformed."""
        language_name, language = self._get_language(file_path)
        data = source.encode("utf-8")
        ts_tree = Parser(language).parse(data)
        starts = line_starts(data)

        if ts_tree.root_node.has_error:
            raise self._error_for(ts_tree.root_node, data, starts, file_path)

        builder = _TreeBuilder(data, starts)
        try:
            root = builder.build(ts_tree.root_node)
        except RecursionError:
            raise ParseError(file_path, "source is nested too deeply to analyse") from None
        for node in walk(root):
            for child in node.children():
                child.parent = node
        if not isinstance(root, Program):
            raise ParseError(file_path, f"unexpected root node {ts_tree.root_node.type}")

        logger.debug("Parsed %s (%s, %d bytes)", file_path, language_name, len(data))
        return SyntaxTree(
            path=file_path,
            source=source,
            root=root,
            language=language_name,
            source_bytes=data,
            _line_starts=starts,
        )

    def _error_for(self, root, data: bytes, starts: list[int], file_path: str) -> ParseError:
        """Build a ParseError pointing at the first ERROR or MISSING node."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.is_missing or node.type == "ERROR":
                line, column = position_of(data, starts, node.start_byte)
                if node.is_missing:
                    message = f"missing '{node.type}'"
                else:
                    snippet = data[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
                    message = f"unexpected syntax near {snippet[:40]!r}"
                return ParseError(file_path, message, line=line, column=column)
            if node.has_error:
                stack.extend(reversed(node.children))
        return ParseError(file_path, "source contains syntax errors")


def _named_with_fields(ts_node) -> list[tuple[Optional[str], object]]:
    """Named children of ``ts_node`` paired with their grammar field names."""
    result = []
    cursor = ts_node.walk()
    if not cursor.goto_first_child():
        return result
    while True:
        child = cursor.node
        if child.is_named:
            result.append((cursor.field_name, child))
        if not cursor.goto_next_sibling():
            break
    return result


def _significant(ts_node) -> list:
    return [child for child in ts_node.named_children if child.type != "comment"]


def _first_of(ts_node, node_type: str):
    for child in ts_node.named_children:
        if child.type == node_type:
            return child
    return None


class _TreeBuilder:
    """Converts tree-sitter nodes into syntax tree variants."""

    def __init__(self, data: bytes, starts: list[int]):
        self.data = data
        self.starts = starts
        self._builders: dict[str, Callable] = {
            "program": self._program,
            "statement_block": self._block,
            "function_declaration": self._function_declaration,
            "generator_function_declaration": self._function_declaration,
            "function_expression": self._function_expression,
            "function": self._function_expression,
            "generator_function": self._function_expression,
            "arrow_function": self._arrow_function,
            "method_definition": self._method_definition,
            "lexical_declaration": self._variable_declaration,
            "variable_declaration": self._variable_declaration,
            "variable_declarator": self._variable_declarator,
            "return_statement": self._return_statement,
            "call_expression": self._call_expression,
            "member_expression": self._member_expression,
            "ternary_expression": self._conditional_expression,
            "binary_expression": self._binary_expression,
            "parenthesized_expression": self._parenthesized_expression,
            "identifier": self._identifier,
            "shorthand_property_identifier": self._shorthand_identifier,
            "shorthand_property_identifier_pattern": self._shorthand_identifier,
            "string": self._string,
            "import_statement": self._import_statement,
            "export_statement": self._export_statement,
            "export_specifier": self._export_specifier,
            "class_declaration": self._class_declaration,
            "abstract_class_declaration": self._class_declaration,
            "for_in_statement": self._for_in_statement,
            "jsx_element": self._jsx_element,
            "jsx_self_closing_element": self._jsx_self_closing_element,
            "jsx_expression": self._jsx_expression,
            "jsx_attribute": self._jsx_attribute,
            "jsx_text": self._jsx_text,
            "html_character_reference": self._jsx_text,
        }

    def build(self, ts_node) -> Node:
        builder = self._builders.get(ts_node.type, self._opaque)
        node = builder(ts_node)
        if node.start is None:
            self._place(node, ts_node)
        return node

    def _place(self, node: Node, ts_node) -> Node:
        node.start = ts_node.start_byte
        node.end = ts_node.end_byte
        node.line, node.column = position_of(self.data, self.starts, ts_node.start_byte)
        return node

    def _text(self, ts_node) -> str:
        return self.data[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace")

    def _maybe(self, ts_node) -> Optional[Node]:
        return self.build(ts_node) if ts_node is not None else None

    def _first_expression(self, ts_node) -> Optional[Node]:
        children = _significant(ts_node)
        return self.build(children[0]) if children else None

    # -- generic -----------------------------------------------------------

    def _opaque(self, ts_node) -> Opaque:
        fields: list[Optional[str]] = []
        parts: list[Node] = []
        for field_name, child in _named_with_fields(ts_node):
            fields.append(field_name)
            parts.append(self.build(child))
        return Opaque(kind=ts_node.type, parts=parts, fields=fields)

    def _leaf(self, ts_node) -> Opaque:
        return Opaque(kind=ts_node.type)

    # -- statements --------------------------------------------------------

    def _program(self, ts_node) -> Program:
        return Program(body=[self.build(child) for child in ts_node.named_children])

    def _block(self, ts_node) -> Block:
        return Block(body=[self.build(child) for child in ts_node.named_children])

    def _parameters(self, ts_node) -> Parameters:
        if ts_node is None:
            return Parameters()
        if ts_node.type == "formal_parameters":
            params = Parameters(params=[self.build(child) for child in _significant(ts_node)])
            return self._place(params, ts_node)
        # Bare arrow parameter: `item => ...`
        params = Parameters(params=[self.build(ts_node)], parenthesized=False)
        return self._place(params, ts_node)

    def _function_declaration(self, ts_node) -> FunctionDeclaration:
        name = ts_node.child_by_field_name("name")
        return FunctionDeclaration(
            name=self.build(name) if name is not None else None,
            params=self._parameters(ts_node.child_by_field_name("parameters")),
            body=self.build(ts_node.child_by_field_name("body")),
        )

    def _function_expression(self, ts_node) -> FunctionExpression:
        name = ts_node.child_by_field_name("name")
        return FunctionExpression(
            name=self.build(name) if name is not None else None,
            params=self._parameters(ts_node.child_by_field_name("parameters")),
            body=self.build(ts_node.child_by_field_name("body")),
        )

    def _method_definition(self, ts_node) -> FunctionExpression:
        # The method name is a property key, not a binding; it stays in the spliced text.
        return FunctionExpression(
            name=None,
            params=self._parameters(ts_node.child_by_field_name("parameters")),
            body=self.build(ts_node.child_by_field_name("body")),
        )

    def _arrow_function(self, ts_node) -> ArrowFunction:
        params = ts_node.child_by_field_name("parameters")
        if params is None:
            params = ts_node.child_by_field_name("parameter")
        return ArrowFunction(
            params=self._parameters(params),
            body=self.build(ts_node.child_by_field_name("body")),
        )

    def _variable_declaration(self, ts_node) -> VariableDeclaration:
        kind = ts_node.children[0].type if ts_node.children else "var"
        declarators = [
            self.build(child)
            for child in ts_node.named_children
            if child.type == "variable_declarator"
        ]
        return VariableDeclaration(kind=kind, declarators=declarators)

    def _variable_declarator(self, ts_node) -> VariableDeclarator:
        return VariableDeclarator(
            name=self.build(ts_node.child_by_field_name("name")),
            init=self._maybe(ts_node.child_by_field_name("value")),
        )

    def _return_statement(self, ts_node) -> ReturnStatement:
        return ReturnStatement(argument=self._first_expression(ts_node))

    def _import_statement(self, ts_node) -> Node:
        bindings: list[Identifier] = []
        for clause in ts_node.named_children:
            if clause.type != "import_clause":
                continue
            for item in clause.named_children:
                if item.type == "identifier":
                    bindings.append(self.build(item))
                elif item.type == "namespace_import":
                    bindings.extend(
                        self.build(child) for child in item.named_children if child.type == "identifier"
                    )
                elif item.type == "named_imports":
                    for spec in item.named_children:
                        if spec.type != "import_specifier":
                            continue
                        local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                        if local is not None and local.type == "identifier":
                            bindings.append(self.build(local))
        return ImportDeclaration(bindings=bindings)

    def _export_statement(self, ts_node) -> Node:
        # Re-exports name bindings of another module, not of this file.
        if ts_node.child_by_field_name("source") is not None:
            return self._leaf(ts_node)
        return self._opaque(ts_node)

    def _export_specifier(self, ts_node) -> Node:
        name = ts_node.child_by_field_name("name")
        if name is None or name.type != "identifier":
            return self._leaf(ts_node)
        if ts_node.child_by_field_name("alias") is None:
            return Identifier(self._text(name), shorthand="export")
        # The alias is the exported name, not a reference; it stays in the spliced text.
        local = self._place(Identifier(self._text(name)), name)
        return Opaque(kind=ts_node.type, parts=[local], fields=["name"])

    def _class_declaration(self, ts_node) -> Opaque:
        opaque = self._opaque(ts_node)
        for index, field_name in enumerate(opaque.fields):
            if field_name == "name" and not isinstance(opaque.parts[index], Identifier):
                # TypeScript names classes with type_identifier nodes.
                name = ts_node.child_by_field_name("name")
                opaque.parts[index] = self._place(Identifier(self._text(name)), name)
        return opaque

    def _for_in_statement(self, ts_node) -> Opaque:
        opaque = self._opaque(ts_node)
        kind = ts_node.child_by_field_name("kind")
        if kind is not None:
            opaque.detail = kind.type
        else:
            for child in ts_node.children:
                if child.type in ("const", "let", "var"):
                    opaque.detail = child.type
                    break
        return opaque

    # -- expressions -------------------------------------------------------

    def _call_expression(self, ts_node) -> CallExpression:
        arguments = ts_node.child_by_field_name("arguments")
        if arguments is None:
            args: list[Node] = []
        elif arguments.type == "arguments":
            args = [self.build(child) for child in _significant(arguments)]
        else:
            # Tagged template: fn`...`
            args = [self.build(arguments)]
        return CallExpression(
            callee=self.build(ts_node.child_by_field_name("function")),
            arguments=args,
        )

    def _member_expression(self, ts_node) -> MemberExpression:
        # Dotted JSX tag names (`<Foo.Bar>`) are aliased member expressions without fields.
        named = _significant(ts_node)
        obj = ts_node.child_by_field_name("object") or named[0]
        prop = ts_node.child_by_field_name("property")
        if prop is None and len(named) > 1:
            prop = named[-1]
        return MemberExpression(
            object=self.build(obj),
            property=self._text(prop) if prop is not None else "",
        )

    def _conditional_expression(self, ts_node) -> ConditionalExpression:
        return ConditionalExpression(
            test=self.build(ts_node.child_by_field_name("condition")),
            consequent=self.build(ts_node.child_by_field_name("consequence")),
            alternate=self.build(ts_node.child_by_field_name("alternative")),
        )

    def _binary_expression(self, ts_node) -> Node:
        operator = ts_node.child_by_field_name("operator")
        if operator is None or operator.type not in LOGICAL_OPERATORS:
            return self._opaque(ts_node)
        return LogicalExpression(
            operator=operator.type,
            left=self.build(ts_node.child_by_field_name("left")),
            right=self.build(ts_node.child_by_field_name("right")),
        )

    def _parenthesized_expression(self, ts_node) -> Node:
        inner = self._first_expression(ts_node)
        if inner is None:
            return self._opaque(ts_node)
        return ParenthesizedExpression(expression=inner)

    def _identifier(self, ts_node) -> Identifier:
        return Identifier(self._text(ts_node))

    def _shorthand_identifier(self, ts_node) -> Identifier:
        return Identifier(self._text(ts_node), shorthand="property")

    def _string(self, ts_node) -> StringLiteral:
        text = self._text(ts_node)
        quote = text[:1] if text[:1] in ("'", '"') else '"'
        return StringLiteral(value=text[1:-1], quote=quote)

    # -- markup ------------------------------------------------------------

    def _element_name(self, ts_node) -> Node:
        if ts_node.type == "identifier":
            text = self._text(ts_node)
            # Capitalised tags refer to components in scope; the rest are intrinsic.
            if text[:1].isupper():
                return self.build(ts_node)
            return self._place(JSXName(text), ts_node)
        if ts_node.type == "jsx_namespace_name":
            return self._place(JSXName(self._text(ts_node)), ts_node)
        return self.build(ts_node)

    def _opening(self, ts_node, self_closing: bool) -> JSXOpeningElement:
        name = ts_node.child_by_field_name("name")
        attributes: list[Node] = []
        for child in ts_node.named_children:
            if child.type == "jsx_attribute":
                attributes.append(self.build(child))
            elif child.type == "jsx_expression":
                attributes.append(self._spread_attribute(child))
        opening = JSXOpeningElement(
            name=self._element_name(name),
            attributes=attributes,
            self_closing=self_closing,
        )
        return self._place(opening, ts_node)

    def _spread_attribute(self, ts_node) -> Node:
        inner = _significant(ts_node)
        if inner and inner[0].type == "spread_element":
            argument = _significant(inner[0])
            spread = JSXSpreadAttribute(
                argument=self.build(argument[0]) if argument else self._place(Opaque(kind="empty"), inner[0])
            )
            return self._place(spread, ts_node)
        return self.build(ts_node)

    def _jsx_element(self, ts_node) -> Node:
        open_tag = ts_node.child_by_field_name("open_tag") or _first_of(ts_node, "jsx_opening_element")
        close_tag = ts_node.child_by_field_name("close_tag") or _first_of(ts_node, "jsx_closing_element")
        content = [
            self.build(child)
            for child in ts_node.named_children
            if child.type not in ("jsx_opening_element", "jsx_closing_element")
        ]
        if open_tag is None or open_tag.child_by_field_name("name") is None:
            return JSXFragment(content=content)

        closing = None
        if close_tag is not None:
            closing_name = close_tag.child_by_field_name("name")
            closing = JSXClosingElement(name=self._element_name(closing_name))
            self._place(closing, close_tag)
        return JSXElement(
            opening=self._opening(open_tag, self_closing=False),
            content=content,
            closing=closing,
        )

    def _jsx_self_closing_element(self, ts_node) -> JSXElement:
        return JSXElement(opening=self._opening(ts_node, self_closing=True))

    def _jsx_expression(self, ts_node) -> JSXExpressionContainer:
        has_comment = any(child.type == "comment" for child in ts_node.named_children)
        return JSXExpressionContainer(
            expression=self._first_expression(ts_node),
            has_comment=has_comment,
        )

    def _jsx_attribute(self, ts_node) -> JSXAttribute:
        children = _significant(ts_node)
        name = children[0]
        value = children[1] if len(children) > 1 else None
        return JSXAttribute(
            name=self._place(JSXName(self._text(name)), name),
            value=self._maybe(value),
        )

    def _jsx_text(self, ts_node) -> JSXText:
        return JSXText(self._text(ts_node))
