"""Tests for rendering rewrites back into Python source."""

import ast

from herbie_lint.analyzers.host import PythonView
from herbie_lint.lisp.matcher import Fragment, FragmentKind, match
from herbie_lint.lisp.parser import Parser
from herbie_lint.lisp.render import render


def _rewrite(source: str, pattern: str, rewrite: str) -> str:
    parser = Parser()
    pattern_tree = parser.parse(pattern)
    rewrite_tree = parser.parse(rewrite)
    node = ast.parse(source, mode="eval").body
    bindings = match(node, pattern_tree, PythonView(source))
    assert bindings is not None
    return render(rewrite_tree, bindings)


def test_known_rule():
    """Test the (a/b + c) * b rule end to end."""
    assert _rewrite("(a/b + c) * b", "(* (+ (/ h0 h1) h2) h1)", "(+ (* h2 h1) h0)") == "(c * b) + a"


def test_bindings_keep_source_text():
    assert _rewrite("(x.y/d[0] + f()) * d[0]", "(* (+ (/ h0 h1) h2) h1)",
                    "(+ (* h2 h1) h0)") == "(f() * d[0]) + x.y"
    assert _rewrite("(0./1. + 2.) * 1.", "(* (+ (/ h0 h1) h2) h1)", "(+ (* h2 h1) h0)") == "(2. * 1.) + 0."


def test_composite_bindings_are_parenthesized():
    assert _rewrite("(a % n) / b", "(/ h0 h1)", "(* h0 (/ 1 h1))") == "(a % n) * (1.0 / b)"


def test_calls_and_unary():
    assert _rewrite("math.sqrt(a*a + b*b)", "(sqrt (+ (* h0 h0) (* h1 h1)))", "(hypot h0 h1)") == "math.hypot(a, b)"
    assert _rewrite("math.exp(x) - 1", "(- (exp h0) 1)", "(expm1 h0)") == "math.expm1(x)"
    assert _rewrite("a - b", "(- h0 h1)", "(- (- h1 h0))") == "-(b - a)"
    assert _rewrite("-x", "(- h0)", "(- h0)") == "-x"
    assert _rewrite("x ** 2", "(pow h0 2)", "(* h0 h0)") == "x * x"


def test_render_with_explicit_bindings():
    parser = Parser()
    rewrite = parser.parse("(log1p (+ x (sqr y)))")
    bindings = {
        0: Fragment(FragmentKind.PATH, "u", key="u"),
        1: Fragment(FragmentKind.LITERAL, "3.0", value=3.0),
    }
    assert render(rewrite, bindings) == "math.log1p(u + (3.0 * 3.0))"
