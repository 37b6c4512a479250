"""Rule model: findings, changes and the detector/transformer base classes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, TypeVar, Union

from ..syntax.nodes import Node, SyntaxTree, walk
from ..syntax.scope import ScopeTable

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Node)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    GOOD = "good"


class Category(str, Enum):
    EXPRESSION = "expression"
    ATTRIBUTE = "attribute"
    SECURITY = "security"
    STRUCTURE = "structure"
    NAMING = "naming"


class ChangeKind(str, Enum):
    RENAME = "rename"
    ATTRIBUTE_INSERT = "attribute-insert"
    ATTRIBUTE_RENAME = "attribute-rename"
    TAG_COLLAPSE = "tag-collapse"
    EXPRESSION_REMOVAL = "expression-removal"


@dataclass(frozen=True)
class Finding:
    """One detected issue (or, for severity ``good``, one recognised good practice)."""

    rule_id: str
    severity: Severity
    category: Category
    message: str
    file: str
    line: int
    column: int
    hint: Optional[str] = None
    detail: Optional[str] = None
    node: Optional[Node] = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> tuple[str, int, int]:
        return (self.rule_id, self.line, self.column)

    @property
    def is_issue(self) -> bool:
        return self.severity != Severity.GOOD

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "rule": self.rule_id,
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }
        if self.hint:
            result["hint"] = self.hint
        if self.detail:
            result["detail"] = self.detail
        return result


@dataclass(frozen=True)
class Change:
    """One applied fix."""

    rule_id: str
    kind: ChangeKind
    file: str
    line: int
    before: Optional[str] = None
    after: Optional[str] = None
    action: Optional[str] = None
    finding: Optional[Finding] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.rule_id, "kind": self.kind.value, "line": self.line}
        if self.before is not None:
            result["from"] = self.before
        if self.after is not None:
            result["to"] = self.after
        if self.action is not None:
            result["action"] = self.action
        return result


@dataclass(frozen=True)
class FixFailure:
    """A fix that was refused or raised; the finding stays unresolved."""

    rule_id: str
    finding: Finding
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule": self.rule_id,
            "stage": "fix",
            "line": self.finding.line,
            "message": self.reason,
        }


@dataclass(frozen=True)
class DetectionFailure:
    """A detector raised; the rule contributes no findings for the file."""

    rule_id: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"rule": self.rule_id, "stage": "detect", "message": self.message}


FixResult = Union[Change, FixFailure]


class RuleContext:
    """What a rule sees of one file: the tree and its resolved scopes."""

    def __init__(self, tree: SyntaxTree, scopes: ScopeTable):
        self.tree = tree
        self.scopes = scopes
        self._index: Optional[dict[type, list[Node]]] = None

    @property
    def path(self) -> str:
        return self.tree.path

    def nodes(self, node_type: type[N]) -> list[N]:
        """All nodes of ``node_type`` in source order."""
        if self._index is None:
            index: dict[type, list[Node]] = {}
            for node in walk(self.tree.root):
                index.setdefault(type(node), []).append(node)
            self._index = index
        if node_type in self._index:
            return list(self._index[node_type])
        return [node for nodes in self._index.values() for node in nodes if isinstance(node, node_type)]


class Rule:
    """A named, stateless check.

    Subclasses set the class attributes and implement :meth:`detect`, which
    must not mutate the tree.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    category: ClassVar[Category]
    severity: ClassVar[Severity]
    message: ClassVar[str]
    hint: ClassVar[Optional[str]] = None

    @property
    def fixable(self) -> bool:
        return False

    def detect(self, ctx: RuleContext) -> list[Finding]:
        raise NotImplementedError

    def report(self, ctx: RuleContext, node: Node, detail: Optional[str] = None) -> Finding:
        return Finding(
            rule_id=self.id,
            severity=self.severity,
            category=self.category,
            message=self.message,
            file=ctx.path,
            line=node.line,
            column=node.column,
            hint=self.hint,
            detail=detail,
            node=node,
        )

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "severity": self.severity.value,
            "fixable": self.fixable,
            "message": self.message,
            "hint": self.hint,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class Transformer(Rule):
    """A rule whose findings can be fixed by mutating the tree."""

    @property
    def fixable(self) -> bool:
        return True

    def fix(self, ctx: RuleContext, finding: Finding) -> FixResult:
        raise NotImplementedError

    def refuse(self, finding: Finding, reason: str) -> FixFailure:
        logger.debug("%s: not fixing %s:%d: %s", self.id, finding.file, finding.line, reason)
        return FixFailure(rule_id=self.id, finding=finding, reason=reason)

    def change(
        self,
        finding: Finding,
        kind: ChangeKind,
        before: Optional[str] = None,
        after: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Change:
        return Change(
            rule_id=self.id,
            kind=kind,
            file=finding.file,
            line=finding.line,
            before=before,
            after=after,
            action=action,
            finding=finding,
        )
