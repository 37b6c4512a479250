"""Syntax tree model for component source files.

The tree is a closed set of node variants. Every node keeps the byte span it
was parsed from (``start``/``end``) so the code generator can splice edits
back into the original text; nodes created by transformers have no span and
borrow the position of the node they were attached to.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator, Optional, TypeVar


@dataclass(eq=False)
class Node:
    """Base class for all syntax tree variants."""

    start: Optional[int] = field(default=None, kw_only=True)
    end: Optional[int] = field(default=None, kw_only=True)
    line: int = field(default=0, kw_only=True)
    column: int = field(default=0, kw_only=True)
    parent: Optional[Node] = field(default=None, kw_only=True, repr=False)

    @property
    def synthesized(self) -> bool:
        return self.start is None

    def children(self) -> Iterator[Node]:
        return iter(())

    def ancestors(self) -> Iterator[Node]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent


@dataclass(eq=False)
class Program(Node):
    body: list[Node] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        yield from self.body


@dataclass(eq=False)
class Block(Node):
    body: list[Node] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        yield from self.body


@dataclass(eq=False)
class Identifier(Node):
    """A name that may declare or reference a binding.

    ``shorthand`` marks positions where the written name doubles as an external
    name: ``"property"`` for ``{ foo }`` and ``"export"`` for ``export { foo }``.
    """

    name: str
    shorthand: Optional[str] = None
    original: str = ""

    def __post_init__(self) -> None:
        if not self.original:
            self.original = self.name


@dataclass(eq=False)
class Parameters(Node):
    params: list[Node] = field(default_factory=list)
    parenthesized: bool = True

    def children(self) -> Iterator[Node]:
        yield from self.params

    def add(self, param: Node) -> None:
        param.parent = self
        self.params.append(param)


@dataclass(eq=False)
class FunctionDeclaration(Node):
    name: Optional[Identifier]
    params: Parameters
    body: Node

    def children(self) -> Iterator[Node]:
        if self.name is not None:
            yield self.name
        yield self.params
        yield self.body


@dataclass(eq=False)
class FunctionExpression(Node):
    name: Optional[Identifier]
    params: Parameters
    body: Node

    def children(self) -> Iterator[Node]:
        if self.name is not None:
            yield self.name
        yield self.params
        yield self.body


@dataclass(eq=False)
class ArrowFunction(Node):
    params: Parameters
    body: Node

    def children(self) -> Iterator[Node]:
        yield self.params
        yield self.body


@dataclass(eq=False)
class VariableDeclarator(Node):
    name: Node
    init: Optional[Node] = None

    def children(self) -> Iterator[Node]:
        yield self.name
        if self.init is not None:
            yield self.init


@dataclass(eq=False)
class VariableDeclaration(Node):
    kind: str
    declarators: list[VariableDeclarator] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        yield from self.declarators


@dataclass(eq=False)
class ReturnStatement(Node):
    argument: Optional[Node] = None

    def children(self) -> Iterator[Node]:
        if self.argument is not None:
            yield self.argument


@dataclass(eq=False)
class CallExpression(Node):
    callee: Node
    arguments: list[Node] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        yield self.callee
        yield from self.arguments


@dataclass(eq=False)
class MemberExpression(Node):
    object: Node
    property: str

    def children(self) -> Iterator[Node]:
        yield self.object


@dataclass(eq=False)
class ConditionalExpression(Node):
    test: Node
    consequent: Node
    alternate: Node

    def children(self) -> Iterator[Node]:
        yield self.test
        yield self.consequent
        yield self.alternate


@dataclass(eq=False)
class LogicalExpression(Node):
    operator: str
    left: Node
    right: Node

    def children(self) -> Iterator[Node]:
        yield self.left
        yield self.right


@dataclass(eq=False)
class ParenthesizedExpression(Node):
    expression: Node

    def children(self) -> Iterator[Node]:
        yield self.expression


@dataclass(eq=False)
class StringLiteral(Node):
    value: str
    quote: str = '"'


@dataclass(eq=False)
class ImportDeclaration(Node):
    bindings: list[Identifier] = field(default_factory=list)

    def children(self) -> Iterator[Node]:
        yield from self.bindings


@dataclass(eq=False)
class JSXName(Node):
    """Intrinsic tag name or attribute name."""

    name: str


@dataclass(eq=False)
class JSXText(Node):
    text: str


@dataclass(eq=False)
class JSXExpressionContainer(Node):
    expression: Optional[Node] = None
    has_comment: bool = False

    @property
    def is_empty(self) -> bool:
        return self.expression is None and not self.has_comment

    def children(self) -> Iterator[Node]:
        if self.expression is not None:
            yield self.expression


@dataclass(eq=False)
class JSXAttribute(Node):
    name: JSXName
    value: Optional[Node] = None

    def children(self) -> Iterator[Node]:
        yield self.name
        if self.value is not None:
            yield self.value


@dataclass(eq=False)
class JSXSpreadAttribute(Node):
    argument: Node

    def children(self) -> Iterator[Node]:
        yield self.argument


@dataclass(eq=False)
class JSXOpeningElement(Node):
    name: Node
    attributes: list[Node] = field(default_factory=list)
    self_closing: bool = False

    @property
    def tag(self) -> str:
        if isinstance(self.name, (JSXName, Identifier)):
            return self.name.name
        return ""

    def children(self) -> Iterator[Node]:
        yield self.name
        yield from self.attributes

    def find_attribute(self, name: str) -> Optional[JSXAttribute]:
        for attribute in self.attributes:
            if isinstance(attribute, JSXAttribute) and attribute.name.name == name:
                return attribute
        return None

    def insert_attribute(self, index: int, attribute: Node) -> None:
        attribute.parent = self
        self.attributes.insert(index, attribute)


@dataclass(eq=False)
class JSXClosingElement(Node):
    name: Node

    def children(self) -> Iterator[Node]:
        yield self.name


@dataclass(eq=False)
class _MarkupContainer(Node):
    content: list[Node] = field(default_factory=list)
    removed_spans: list[tuple[int, int]] = field(default_factory=list, repr=False)

    def remove_child(self, child: Node) -> bool:
        for index, candidate in enumerate(self.content):
            if candidate is child:
                del self.content[index]
                if child.start is not None and child.end is not None:
                    self.removed_spans.append((child.start, child.end))
                child.parent = None
                return True
        return False


@dataclass(eq=False)
class JSXElement(_MarkupContainer):
    opening: JSXOpeningElement = field(kw_only=True)
    closing: Optional[JSXClosingElement] = None

    @property
    def tag(self) -> str:
        return self.opening.tag

    @property
    def self_closing(self) -> bool:
        return self.opening.self_closing

    def collapse(self) -> None:
        """Turn ``<tag ...></tag>`` into ``<tag ... />``."""
        self.opening.self_closing = True
        self.closing = None
        self.content = []

    def children(self) -> Iterator[Node]:
        yield self.opening
        yield from self.content
        if self.closing is not None:
            yield self.closing


@dataclass(eq=False)
class JSXFragment(_MarkupContainer):
    def children(self) -> Iterator[Node]:
        yield from self.content


@dataclass(eq=False)
class Opaque(Node):
    """Syntax the engine does not model, kept as its raw grammar type.

    ``fields`` runs parallel to ``parts`` and holds the grammar field name of
    each part (or None). ``detail`` carries a keyword the grammar does not
    expose as a named child, such as the ``const`` of ``for (const x of y)``.
    """

    kind: str
    parts: list[Node] = field(default_factory=list)
    fields: list[Optional[str]] = field(default_factory=list)
    detail: Optional[str] = None

    def children(self) -> Iterator[Node]:
        yield from self.parts

    def part(self, field_name: str) -> Optional[Node]:
        for name, part in zip(self.fields, self.parts):
            if name == field_name:
                return part
        return None


NODE_TYPES: tuple[type[Node], ...] = (
    Program,
    Block,
    Identifier,
    Parameters,
    FunctionDeclaration,
    FunctionExpression,
    ArrowFunction,
    VariableDeclarator,
    VariableDeclaration,
    ReturnStatement,
    CallExpression,
    MemberExpression,
    ConditionalExpression,
    LogicalExpression,
    ParenthesizedExpression,
    StringLiteral,
    ImportDeclaration,
    JSXName,
    JSXText,
    JSXExpressionContainer,
    JSXAttribute,
    JSXSpreadAttribute,
    JSXOpeningElement,
    JSXClosingElement,
    JSXElement,
    JSXFragment,
    Opaque,
)

FUNCTION_TYPES = (FunctionDeclaration, FunctionExpression, ArrowFunction)
MARKUP_TYPES = (JSXElement, JSXFragment)

N = TypeVar("N", bound=Node)


def walk(root: Node) -> Iterator[Node]:
    """Yield ``root`` and every descendant in source (pre-)order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children())))


def find_all(root: Node, node_type: type[N]) -> list[N]:
    return [node for node in walk(root) if isinstance(node, node_type)]


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    while isinstance(node, ParenthesizedExpression):
        node = node.expression
    return node


def is_markup(node: Optional[Node]) -> bool:
    return isinstance(unwrap_parens(node), MARKUP_TYPES)


def is_descendant(node: Node, ancestor: Node) -> bool:
    return any(candidate is ancestor for candidate in node.ancestors())


def enclosing_function(node: Node) -> Optional[Node]:
    for ancestor in node.ancestors():
        if isinstance(ancestor, FUNCTION_TYPES):
            return ancestor
    return None


def own_returns(function: Node) -> Iterator[ReturnStatement]:
    """Return statements of ``function`` itself, not of functions nested in it."""
    body = getattr(function, "body", None)
    if not isinstance(body, Block):
        return
    stack = list(reversed(body.body))
    while stack:
        node = stack.pop()
        if isinstance(node, FUNCTION_TYPES):
            continue
        if isinstance(node, ReturnStatement):
            yield node
        stack.extend(reversed(list(node.children())))


def returns_markup(function: Node) -> bool:
    """True when ``function`` returns an element or fragment, directly or from its body."""
    body = getattr(function, "body", None)
    if not isinstance(body, Block):
        return is_markup(body)
    return any(is_markup(statement.argument) for statement in own_returns(function))


def attach(node: N, anchor: Node, parent: Optional[Node] = None) -> N:
    """Give a synthesized node the position of ``anchor``."""
    node.line = anchor.line
    node.column = anchor.column
    node.parent = parent
    for child in node.children():
        if child.synthesized:
            attach(child, anchor, node)
    return node


@dataclass(eq=False)
class SyntaxTree:
    """Parsed representation of one file."""

    path: str
    source: str
    root: Program
    language: str = "javascript"
    source_bytes: bytes = field(default=b"", repr=False)
    _line_starts: list[int] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.source_bytes:
            self.source_bytes = self.source.encode("utf-8")
        if not self._line_starts:
            self._line_starts = line_starts(self.source_bytes)

    def text_of(self, node: Node) -> str:
        """Original text of a parsed node (empty for synthesized nodes)."""
        if node.start is None or node.end is None:
            return ""
        return self.source_bytes[node.start:node.end].decode("utf-8", errors="replace")

    def position(self, offset: int) -> tuple[int, int]:
        return position_of(self.source_bytes, self._line_starts, offset)


def line_starts(data: bytes) -> list[int]:
    starts = [0]
    index = data.find(b"\n")
    while index != -1:
        starts.append(index + 1)
        index = data.find(b"\n", index + 1)
    return starts


def position_of(data: bytes, starts: list[int], offset: int) -> tuple[int, int]:
    """Map a byte offset to a 1-based line and 0-based character column."""
    row = bisect_right(starts, offset) - 1
    prefix = data[starts[row]:offset]
    return row + 1, len(prefix.decode("utf-8", errors="replace"))
