"""
Structural matching of expressions against rewrite patterns.

The matcher never looks at host nodes directly. It goes through a
``HostView`` which only exposes what matching needs: the shape of a node, its
operator or function name, its children, its literal value and a captured
``Fragment`` when the node is bound to a hole. ``TreeView`` is the view over
expression trees themselves; the Python ``ast`` view lives with the analyzer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Hashable, Optional, Sequence

from herbie_lint.lisp.expr import VARIABLE_PREFIX, Binary, Call, Expr, Literal, Unary, Variable, format_float


class Shape(str, Enum):
    """Node shapes the matcher can tell apart."""
    BINARY = "binary"
    UNARY = "unary"
    CALL = "call"
    LITERAL = "literal"
    OTHER = "other"


class FragmentKind(str, Enum):
    """What a hole was bound to."""
    LITERAL = "literal"
    PATH = "path"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class Fragment:
    """
    A host sub-term captured by a hole.

    Attributes:
        kind: Literal value, named reference (variable, attribute, index) or
            opaque sub-term
        text: Source text reinserted when rendering a rewrite
        key: Equality key; ``None`` means the fragment never equals another one
        value: The numeric value for literal fragments
    """
    kind: FragmentKind
    text: str
    key: Optional[Hashable] = None
    value: Optional[float] = None

    def same_as(self, other: "Fragment") -> bool:
        """Whether a second occurrence of a hole may bind ``other``."""
        if self.kind != other.kind:
            return False
        if self.kind == FragmentKind.LITERAL:
            return self.value == other.value
        return self.key is not None and self.key == other.key


BindingTable = Dict[int, Fragment]


class HostView(ABC):
    """Capability-restricted view of host expression nodes."""

    @abstractmethod
    def shape(self, node: Any) -> Shape:
        pass

    @abstractmethod
    def operator(self, node: Any) -> str:
        """Operator of a binary or unary node, spelled as in the DSL."""
        pass

    @abstractmethod
    def function(self, node: Any) -> str:
        """DSL function name of a call node."""
        pass

    @abstractmethod
    def children(self, node: Any) -> Sequence[Any]:
        pass

    @abstractmethod
    def literal(self, node: Any) -> float:
        pass

    @abstractmethod
    def fragment(self, node: Any) -> Fragment:
        """Capture ``node`` for binding into a hole."""
        pass


class TreeView(HostView):
    """View over expression trees, treating their variables as references."""

    def __init__(self, prefix: str = VARIABLE_PREFIX):
        self.prefix = prefix

    def shape(self, node: Expr) -> Shape:
        if isinstance(node, Binary):
            return Shape.BINARY
        if isinstance(node, Unary):
            return Shape.UNARY
        if isinstance(node, Call):
            return Shape.CALL
        if isinstance(node, Literal):
            return Shape.LITERAL
        return Shape.OTHER

    def operator(self, node: Expr) -> str:
        return node.op

    def function(self, node: Call) -> str:
        return node.name

    def children(self, node: Expr) -> Sequence[Expr]:
        if isinstance(node, Binary):
            return (node.left, node.right)
        if isinstance(node, Unary):
            return (node.operand, )
        if isinstance(node, Call):
            return node.args
        return ()

    def literal(self, node: Literal) -> float:
        return node.value

    def fragment(self, node: Expr) -> Fragment:
        if isinstance(node, Literal):
            return Fragment(FragmentKind.LITERAL, format_float(node.value), value=node.value)
        if isinstance(node, Variable):
            return Fragment(FragmentKind.PATH, f"{self.prefix}{node.id}", key=("var", node.id))
        return Fragment(FragmentKind.OPAQUE, repr(node), key=node)


def match(node: Any, pattern: Expr, view: Optional[HostView] = None) -> Optional[BindingTable]:
    """
    Match a host node against ``pattern``.

    Pattern variables are holes. The first occurrence of a hole binds the host
    sub-term it faces; every later occurrence must face an equal fragment.
    There is no backtracking: each sub-term commits to the first compatible
    interpretation.

    Returns:
        The binding table, or ``None`` when the node does not match
    """
    if view is None:
        view = TreeView()
    bindings: BindingTable = {}
    if _match(node, pattern, view, bindings):
        return bindings
    return None


def _match(node: Any, pattern: Expr, view: HostView, bindings: BindingTable) -> bool:
    if isinstance(pattern, Variable):
        fragment = view.fragment(node)
        bound = bindings.get(pattern.id)
        if bound is None:
            bindings[pattern.id] = fragment
            return True
        return bound.same_as(fragment)

    shape = view.shape(node)

    if isinstance(pattern, Literal):
        return shape == Shape.LITERAL and view.literal(node) == pattern.value

    if isinstance(pattern, Binary):
        if shape != Shape.BINARY or view.operator(node) != pattern.op:
            return False
        left, right = view.children(node)
        return _match(left, pattern.left, view, bindings) and _match(right, pattern.right, view, bindings)

    if isinstance(pattern, Unary):
        if shape != Shape.UNARY or view.operator(node) != pattern.op:
            return False
        (operand, ) = view.children(node)
        return _match(operand, pattern.operand, view, bindings)

    if isinstance(pattern, Call):
        if shape != Shape.CALL or view.function(node) != pattern.name:
            return False
        args = view.children(node)
        if len(args) != len(pattern.args):
            return False
        return all(_match(arg, parg, view, bindings) for arg, parg in zip(args, pattern.args))

    return False
