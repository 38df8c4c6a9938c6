"""
Expression trees shared by rewrite patterns and host expressions.

A single tree type is used for both sides of a rule and for expressions
built from host code. The meaning of a ``Variable`` depends on where the
tree came from:

- inside a rule (``pattern`` or ``rewrite``) it is a *hole*, bound during
  matching;
- inside a tree built from host source it is a *reference* to a captured
  sub-term, whose source text lives in a binding table.

Nothing in the type itself tells the two apart, so functions taking a tree
document which meaning they expect.
"""

from dataclasses import dataclass
from typing import Dict, List, Set, Tuple, Union

# Binary operators of the DSL, which are also their Python spelling.
BINARY_OPS = ("+", "-", "*", "/")

# Only negation is supported as a unary operator.
NEG = "-"

# Allow-listed mathematical functions: DSL name -> (Python ``math`` name, arity).
# ``sqr`` is not here: the parser desugars it into a multiplication.
FUNCTIONS: Dict[str, Tuple[str, int]] = {
    "acos": ("acos", 1),
    "acosh": ("acosh", 1),
    "asin": ("asin", 1),
    "asinh": ("asinh", 1),
    "atan": ("atan", 1),
    "atan2": ("atan2", 2),
    "atanh": ("atanh", 1),
    "cbrt": ("cbrt", 1),
    "ceil": ("ceil", 1),
    "cos": ("cos", 1),
    "cosh": ("cosh", 1),
    "exp": ("exp", 1),
    "exp2": ("exp2", 1),
    "expm1": ("expm1", 1),
    "fabs": ("fabs", 1),
    "floor": ("floor", 1),
    "fmod": ("fmod", 2),
    "hypot": ("hypot", 2),
    "log": ("log", 1),
    "log10": ("log10", 1),
    "log1p": ("log1p", 1),
    "log2": ("log2", 1),
    "pow": ("pow", 2),
    "sin": ("sin", 1),
    "sinh": ("sinh", 1),
    "sqrt": ("sqrt", 1),
    "tan": ("tan", 1),
    "tanh": ("tanh", 1),
}

# Reverse table: (Python name, arity) -> DSL name.
PYTHON_FUNCTIONS: Dict[Tuple[str, int], str] = {(py, arity): dsl for dsl, (py, arity) in FUNCTIONS.items()}

# Prefix of the variable names used when talking to the oracle and the store.
VARIABLE_PREFIX = "herbie"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Expr"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Expr", ...]


@dataclass(frozen=True)
class Literal:
    value: float


@dataclass(frozen=True)
class Variable:
    id: int


Expr = Union[Binary, Unary, Call, Literal, Variable]


def depth(expr: Expr) -> int:
    """
    Nesting depth used to decide whether an expression is worth an oracle call.

    Unary operators do not add depth, so ``(- (- (- x)))`` has depth 0.
    """
    if isinstance(expr, (Literal, Variable)):
        return 0
    if isinstance(expr, Unary):
        return depth(expr.operand)
    if isinstance(expr, Binary):
        return 1 + max(depth(expr.left), depth(expr.right))
    return 1 + max((depth(arg) for arg in expr.args), default=0)


def variables(expr: Expr) -> Set[int]:
    """Return the ids of all variables appearing in ``expr``."""
    if isinstance(expr, Variable):
        return {expr.id}
    if isinstance(expr, Literal):
        return set()
    if isinstance(expr, Unary):
        return variables(expr.operand)
    if isinstance(expr, Binary):
        return variables(expr.left) | variables(expr.right)
    result: Set[int] = set()
    for arg in expr.args:
        result |= variables(arg)
    return result


def format_float(value: float) -> str:
    """Format a literal so that the DSL parser reads it back unchanged."""
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def to_lisp(expr: Expr, prefix: str = VARIABLE_PREFIX) -> str:
    """Render ``expr`` as DSL text, naming variable ``n`` as ``{prefix}{n}``."""
    if isinstance(expr, Binary):
        return f"({expr.op} {to_lisp(expr.left, prefix)} {to_lisp(expr.right, prefix)})"
    if isinstance(expr, Unary):
        return f"({expr.op} {to_lisp(expr.operand, prefix)})"
    if isinstance(expr, Call):
        parts: List[str] = [expr.name] + [to_lisp(arg, prefix) for arg in expr.args]
        return "(" + " ".join(parts) + ")"
    if isinstance(expr, Literal):
        return format_float(expr.value)
    return f"{prefix}{expr.id}"


def to_lambda(expr: Expr, nb_vars: int, prefix: str = VARIABLE_PREFIX) -> str:
    """Wrap ``expr`` in a DSL lambda over its ``nb_vars`` free variables."""
    params = " ".join(f"{prefix}{i}" for i in range(nb_vars))
    return f"(lambda ({params}) {to_lisp(expr, prefix)})"
