"""View of Python ``ast`` expression nodes for matching and oracle queries."""

import ast
import math
import re
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple

from herbie_lint.lisp.expr import NEG, PYTHON_FUNCTIONS, Binary, Call, Expr, Literal, Unary, Variable
from herbie_lint.lisp.matcher import BindingTable, Fragment, FragmentKind, HostView, Shape

_BINARY_OPS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
}

# Builtins that behave like an allow-listed math function.
_BUILTIN_ALIASES = {"abs": "fabs"}

_MATH_MODULES = ("math", )

# Line breaks as the tokenizer sees them; form feeds do not end a line.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

# Nodes whose value may differ between two evaluations of the same text.
_IMPURE_NODES = (ast.Call, ast.Await, ast.Yield, ast.YieldFrom, ast.NamedExpr)

# Nodes whose source text can be used as an operand without parentheses.
_ATOMIC_NODES = (ast.Name, ast.Attribute, ast.Subscript, ast.Call, ast.Constant, ast.List, ast.Tuple, ast.Dict,
                 ast.Set, ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)


class PythonView(HostView):
    """
    Host view over the expressions of one Python source file.

    ``x ** y`` is seen as the ``pow`` call and ``abs(x)`` as ``fabs``. Numeric
    constants (int or float, never bool) are literals.
    """

    def __init__(self, source: str = ""):
        self.source = source
        self._lines = _LINE_BREAK.split(source)

    def shape(self, node: ast.AST) -> Shape:
        if isinstance(node, ast.BinOp):
            if type(node.op) in _BINARY_OPS:
                return Shape.BINARY
            if isinstance(node.op, ast.Pow):
                return Shape.CALL
        elif isinstance(node, ast.UnaryOp):
            if isinstance(node.op, ast.USub):
                return Shape.UNARY
        elif isinstance(node, ast.Call):
            if self._function_name(node) is not None:
                return Shape.CALL
        elif self._is_literal(node):
            return Shape.LITERAL
        return Shape.OTHER

    def operator(self, node: ast.AST) -> str:
        if isinstance(node, ast.UnaryOp):
            return NEG
        return _BINARY_OPS[type(node.op)]

    def function(self, node: ast.AST) -> str:
        if isinstance(node, ast.BinOp):
            return "pow"
        return self._function_name(node)

    def children(self, node: ast.AST) -> Sequence[ast.AST]:
        if isinstance(node, ast.BinOp):
            return (node.left, node.right)
        if isinstance(node, ast.UnaryOp):
            return (node.operand, )
        if isinstance(node, ast.Call):
            return node.args
        return ()

    def literal(self, node: ast.Constant) -> float:
        return float(node.value)

    def fragment(self, node: ast.AST) -> Fragment:
        text = self.text(node)
        if self._is_literal(node):
            return Fragment(FragmentKind.LITERAL, text, value=float(node.value))
        if not isinstance(node, _ATOMIC_NODES):
            text = f"({text})"

        key: Optional[Hashable] = ast.dump(node)
        if _is_path(node):
            return Fragment(FragmentKind.PATH, text, key=key)
        if any(isinstance(child, _IMPURE_NODES) for child in ast.walk(node)):
            key = None
        return Fragment(FragmentKind.OPAQUE, text, key=key)

    def text(self, node: ast.AST) -> str:
        """Source text of ``node``, regenerated when the source is unavailable."""
        segment = ast.get_source_segment(self.source, node) if self.source else None
        return segment if segment is not None else ast.unparse(node)

    def column(self, lineno: int, offset: int) -> int:
        """Character column of the UTF-8 byte ``offset`` that ``ast`` reports on line ``lineno``."""
        if not 0 < lineno <= len(self._lines):
            return offset
        return len(self._lines[lineno - 1].encode("utf-8")[:offset].decode("utf-8", errors="replace"))

    def is_floating(self, node: ast.AST) -> bool:
        """
        Whether the arithmetic around ``node`` is evaluated in floating point.

        True division, float literals and math calls always produce floats;
        purely integer arithmetic is left alone. Opaque operands are not
        inspected.
        """
        shape = self.shape(node)
        if shape == Shape.LITERAL:
            return isinstance(node.value, float)
        if shape == Shape.CALL:
            return True
        if shape == Shape.BINARY and self.operator(node) == "/":
            return True
        if shape in (Shape.BINARY, Shape.UNARY):
            return any(self.is_floating(child) for child in self.children(node))
        return False

    def _function_name(self, node: ast.Call) -> Optional[str]:
        if node.keywords or any(isinstance(arg, ast.Starred) for arg in node.args):
            return None

        func = node.func
        if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name) and func.value.id in _MATH_MODULES:
            name = func.attr
        elif isinstance(func, ast.Name):
            name = _BUILTIN_ALIASES.get(func.id, func.id)
        else:
            return None

        return PYTHON_FUNCTIONS.get((name, len(node.args)))

    @staticmethod
    def _is_literal(node: ast.AST) -> bool:
        if not isinstance(node, ast.Constant) or isinstance(node.value, bool):
            return False
        if not isinstance(node.value, (int, float)):
            return False
        try:
            return math.isfinite(node.value)
        except OverflowError:
            return False


def _is_path(node: ast.AST) -> bool:
    """Names, attribute chains and constant or path indexing, e.g. ``p.x[0]``."""
    if isinstance(node, ast.Name):
        return True
    if isinstance(node, ast.Attribute):
        return _is_path(node.value)
    if isinstance(node, ast.Subscript):
        index = node.slice
        return _is_path(node.value) and (isinstance(index, ast.Constant) or _is_path(index))
    return False


def to_tree(node: ast.AST, view: HostView) -> Tuple[Expr, BindingTable]:
    """
    Build an expression tree from a host node for an oracle query.

    Every sub-term the tree cannot express becomes a variable. Equal
    sub-terms share a variable; impure ones always get a fresh one. Variables
    are numbered from 0 in order of first appearance.

    Returns:
        The tree, whose variables are references, and their captured fragments
    """
    bindings: BindingTable = {}
    ids: Dict[Any, int] = {}

    def convert(child: Any) -> Expr:
        shape = view.shape(child)
        if shape == Shape.BINARY:
            left, right = view.children(child)
            return Binary(view.operator(child), convert(left), convert(right))
        if shape == Shape.UNARY:
            (operand, ) = view.children(child)
            return Unary(view.operator(child), convert(operand))
        if shape == Shape.CALL:
            return Call(view.function(child), tuple(convert(arg) for arg in view.children(child)))
        if shape == Shape.LITERAL:
            return Literal(view.literal(child))

        fragment = view.fragment(child)
        if fragment.key is not None and fragment.key in ids:
            return Variable(ids[fragment.key])

        var_id = len(bindings)
        bindings[var_id] = fragment
        if fragment.key is not None:
            ids[fragment.key] = var_id
        return Variable(var_id)

    return convert(node), bindings
