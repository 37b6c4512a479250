"""Parsing, scope resolution and code generation for component sources."""

from .generator import CodeGenerator
from .nodes import SyntaxTree, walk
from .parser import SourceParser
from .scope import Binding, Resolver, Scope, ScopeTable

__all__ = [
    "Binding",
    "CodeGenerator",
    "Resolver",
    "Scope",
    "ScopeTable",
    "SourceParser",
    "SyntaxTree",
    "walk",
]
