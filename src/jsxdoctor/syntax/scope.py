"""Lexical scope resolution.

``Resolver`` makes two walks over a tree: the first records every declaration
in the scope that owns it, the second attaches each remaining identifier to
the nearest visible declaration. Renames go through ``ScopeTable`` so every
recorded reference moves with the declaration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from .nodes import (
    ArrowFunction,
    Block,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    ImportDeclaration,
    Node,
    Opaque,
    Program,
    SyntaxTree,
    VariableDeclaration,
    is_descendant,
    walk,
)

logger = logging.getLogger(__name__)

# Opaque grammar nodes that open a block scope.
BLOCK_SCOPE_KINDS = frozenset({
    "for_statement",
    "for_in_statement",
    "catch_clause",
    "class_body",
    "switch_statement",
})

# Opaque grammar nodes that may appear inside a binding pattern.
_PATTERN_CONTAINERS = frozenset({"object_pattern", "array_pattern", "rest_pattern", "rest_element"})


class ScopeKind(str, Enum):
    PROGRAM = "program"
    FUNCTION = "function"
    BLOCK = "block"


@dataclass(eq=False)
class Binding:
    """A declared name and every identifier that resolves to it."""

    name: str
    kind: str  # "function", "const", "let", "var", "param", "import", "class", "catch"
    declaration: Identifier
    scope: Scope
    references: list[Identifier] = field(default_factory=list)


@dataclass(eq=False)
class Scope:
    kind: ScopeKind
    node: Node
    parent: Optional[Scope] = None
    bindings: dict[str, Binding] = field(default_factory=dict)
    children: list[Scope] = field(default_factory=list)

    def lookup(self, name: str) -> Optional[Binding]:
        scope: Optional[Scope] = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def function_scope(self) -> Scope:
        scope = self
        while scope.kind == ScopeKind.BLOCK and scope.parent is not None:
            scope = scope.parent
        return scope

    def chain(self) -> Iterator[Scope]:
        scope: Optional[Scope] = self
        while scope is not None:
            yield scope
            scope = scope.parent


class ScopeTable:
    """Bindings and resolved references for one syntax tree."""

    def __init__(self, root: Scope):
        self.root = root
        self.unresolved: list[Identifier] = []
        self._scopes: dict[Node, Scope] = {root.node: root}
        self._declarations: dict[Identifier, Binding] = {}
        self._references: dict[Identifier, Binding] = {}
        self._reference_scopes: dict[Identifier, Scope] = {}

    # -- queries -----------------------------------------------------------

    def scopes(self) -> Iterator[Scope]:
        stack = [self.root]
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(reversed(scope.children))

    def bindings(self) -> Iterator[Binding]:
        for scope in self.scopes():
            yield from scope.bindings.values()

    def binding_for(self, identifier: Identifier) -> Optional[Binding]:
        """Binding declared or referenced by ``identifier``."""
        return self._declarations.get(identifier) or self._references.get(identifier)

    def is_declaration(self, identifier: Identifier) -> bool:
        return identifier in self._declarations

    def scope_for(self, node: Node) -> Optional[Scope]:
        """Scope opened by ``node`` itself, if it opens one."""
        return self._scopes.get(node)

    def scope_of(self, node: Node) -> Scope:
        """Innermost scope enclosing ``node``."""
        if node in self._reference_scopes:
            return self._reference_scopes[node]
        for ancestor in node.ancestors():
            scope = self._scopes.get(ancestor)
            if scope is not None:
                return scope
        return self.root

    # -- updates -----------------------------------------------------------

    def add_scope(self, kind: ScopeKind, node: Node, parent: Scope) -> Scope:
        scope = Scope(kind=kind, node=node, parent=parent)
        parent.children.append(scope)
        self._scopes[node] = scope
        return scope

    def declare(self, scope: Scope, identifier: Identifier, kind: str) -> Binding:
        existing = scope.bindings.get(identifier.name)
        if existing is not None:
            # Redeclaration (var twice, function overloads); keep the first.
            self._declarations[identifier] = existing
            existing.references.append(identifier)
            self._reference_scopes[identifier] = scope
            return existing
        binding = Binding(name=identifier.name, kind=kind, declaration=identifier, scope=scope)
        scope.bindings[identifier.name] = binding
        self._declarations[identifier] = binding
        return binding

    def add_reference(self, binding: Binding, identifier: Identifier, scope: Scope) -> None:
        binding.references.append(identifier)
        self._references[identifier] = binding
        self._reference_scopes[identifier] = scope

    def rename_conflict(self, binding: Binding, new_name: str) -> Optional[str]:
        """Reason the rename would change program meaning, or None if it is safe."""
        if new_name in binding.scope.bindings:
            return f"'{new_name}' is already bound in the same scope"

        for reference in binding.references:
            for scope in self.scope_of(reference).chain():
                if scope is binding.scope:
                    break
                if new_name in scope.bindings:
                    return f"'{new_name}' is shadowed where '{binding.name}' is used (line {reference.line})"

        # Existing uses of `new_name` that would resolve to the renamed binding instead.
        for other in self.bindings():
            if other is binding or other.name != new_name:
                continue
            for reference in other.references:
                if self._captured(reference, binding.scope, other.scope):
                    return f"'{new_name}' from an outer scope is used at line {reference.line}"
        for free in self.unresolved:
            if free.name == new_name and self._captured(free, binding.scope, None):
                return f"global '{new_name}' is used at line {free.line}"
        return None

    def _captured(self, identifier: Identifier, scope: Scope, owner: Optional[Scope]) -> bool:
        for candidate in self.scope_of(identifier).chain():
            if candidate is owner:
                return False
            if candidate is scope:
                return True
        return False

    def rename(self, binding: Binding, new_name: str) -> int:
        """Rename a binding at its declaration and every reference; returns references touched."""
        old_name = binding.name
        del binding.scope.bindings[old_name]
        binding.name = new_name
        binding.scope.bindings[new_name] = binding
        binding.declaration.name = new_name
        for reference in binding.references:
            reference.name = new_name
        logger.debug("Renamed %s -> %s (%d references)", old_name, new_name, len(binding.references))
        return len(binding.references)


class Resolver:
    """Builds a ScopeTable for a syntax tree."""

    def resolve(self, tree: SyntaxTree) -> ScopeTable:
        table = ScopeTable(Scope(kind=ScopeKind.PROGRAM, node=tree.root))
        self._declare(tree.root, table.root, table)
        self._resolve(tree.root, table.root, table)
        return table

    # -- pass 1: declarations ----------------------------------------------

    def _declare(self, node: Node, scope: Scope, table: ScopeTable) -> None:
        if isinstance(node, FunctionDeclaration):
            if node.name is not None:
                table.declare(scope, node.name, "function")
            self._declare_function(node, scope, table)
            return

        if isinstance(node, (FunctionExpression, ArrowFunction)):
            self._declare_function(node, scope, table)
            return

        if isinstance(node, Block) and not isinstance(node.parent, (FunctionDeclaration, FunctionExpression, ArrowFunction)):
            inner = table.add_scope(ScopeKind.BLOCK, node, scope)
            for child in node.children():
                self._declare(child, inner, table)
            return

        if isinstance(node, VariableDeclaration):
            target = scope.function_scope() if node.kind == "var" else scope
            for declarator in node.declarators:
                for identifier in binding_identifiers(declarator.name):
                    table.declare(target, identifier, node.kind)
        elif isinstance(node, ImportDeclaration):
            for identifier in node.bindings:
                table.declare(scope, identifier, "import")
        elif isinstance(node, Opaque):
            if node.kind in ("class_declaration", "abstract_class_declaration"):
                name = node.part("name")
                if isinstance(name, Identifier):
                    table.declare(scope, name, "class")
            if node.kind in BLOCK_SCOPE_KINDS:
                scope = table.add_scope(ScopeKind.BLOCK, node, scope)
                if node.kind == "catch_clause":
                    parameter = node.part("parameter")
                    if parameter is not None:
                        for identifier in binding_identifiers(parameter):
                            table.declare(scope, identifier, "catch")
                elif node.kind == "for_in_statement" and node.detail:
                    left = node.part("left")
                    if left is not None:
                        target = scope.function_scope() if node.detail == "var" else scope
                        for identifier in binding_identifiers(left):
                            table.declare(target, identifier, node.detail)

        for child in node.children():
            self._declare(child, scope, table)

    def _declare_function(self, node: Node, scope: Scope, table: ScopeTable) -> None:
        inner = table.add_scope(ScopeKind.FUNCTION, node, scope)
        if isinstance(node, FunctionExpression) and node.name is not None:
            table.declare(inner, node.name, "function")
        for param in node.params.params:
            for identifier in binding_identifiers(param):
                table.declare(inner, identifier, "param")
        for param in node.params.params:
            self._declare(param, inner, table)
        body = node.body
        if isinstance(body, Block):
            for child in body.children():
                self._declare(child, inner, table)
        else:
            self._declare(body, inner, table)

    # -- pass 2: references ------------------------------------------------

    def _resolve(self, root: Node, scope: Scope, table: ScopeTable) -> None:
        stack: list[tuple[Node, Scope]] = [(root, scope)]
        while stack:
            node, current = stack.pop()
            current = table.scope_for(node) or current
            if isinstance(node, Identifier) and not table.is_declaration(node):
                binding = current.lookup(node.name)
                if binding is not None:
                    table.add_reference(binding, node, current)
                else:
                    table.unresolved.append(node)
            for child in reversed(list(node.children())):
                stack.append((child, current))


def binding_identifiers(pattern: Node) -> list[Identifier]:
    """Identifiers declared by a binding pattern (``a``, ``{ a, b: c }``, ``[d = 1, ...e]``)."""
    if isinstance(pattern, Identifier):
        return [pattern]
    if not isinstance(pattern, Opaque):
        return []

    if pattern.kind in _PATTERN_CONTAINERS:
        found: list[Identifier] = []
        for part in pattern.parts:
            found.extend(binding_identifiers(part))
        return found
    if pattern.kind == "pair_pattern":
        value = pattern.part("value")
        return binding_identifiers(value) if value is not None else []
    if pattern.kind in ("assignment_pattern", "object_assignment_pattern"):
        left = pattern.part("left")
        if left is None and pattern.parts:
            left = pattern.parts[0]
        return binding_identifiers(left) if left is not None else []
    if pattern.kind in ("required_parameter", "optional_parameter"):
        inner = pattern.part("pattern")
        return binding_identifiers(inner) if inner is not None else []
    return []


def references_within(binding: Binding, root: Node) -> list[Identifier]:
    return [ref for ref in binding.references if ref is root or is_descendant(ref, root)]


def identifiers_named(root: Node, name: str) -> list[Identifier]:
    return [node for node in walk(root) if isinstance(node, Identifier) and node.name == name]
