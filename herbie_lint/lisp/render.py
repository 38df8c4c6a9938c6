"""Rendering of rewrite trees back into Python source."""

from typing import Tuple

from herbie_lint.lisp.expr import FUNCTIONS, Binary, Call, Expr, Literal, Unary
from herbie_lint.lisp.matcher import BindingTable

MATH_MODULE = "math"


def render(expr: Expr, bindings: BindingTable, module: str = MATH_MODULE) -> str:
    """
    Render ``expr`` as Python source.

    Variables are holes and are replaced by the source text captured in
    ``bindings``. Composite operands are always parenthesized instead of
    consulting a precedence table.
    """
    text, _ = _render(expr, bindings, module)
    return text


def _render(expr: Expr, bindings: BindingTable, module: str) -> Tuple[str, bool]:
    """Return the rendered text and whether it needs parentheses as an operand."""
    if isinstance(expr, Binary):
        left = _operand(expr.left, bindings, module)
        right = _operand(expr.right, bindings, module)
        return f"{left} {expr.op} {right}", True

    if isinstance(expr, Unary):
        return f"{expr.op}{_operand(expr.operand, bindings, module)}", True

    if isinstance(expr, Call):
        name, _ = FUNCTIONS[expr.name]
        args = ", ".join(_render(arg, bindings, module)[0] for arg in expr.args)
        return f"{module}.{name}({args})", False

    if isinstance(expr, Literal):
        return repr(expr.value), False

    return bindings[expr.id].text, False


def _operand(expr: Expr, bindings: BindingTable, module: str) -> str:
    text, needs_parens = _render(expr, bindings, module)
    return f"({text})" if needs_parens else text
