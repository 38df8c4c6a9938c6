"""Tests for pattern matching, depth and the Python host view."""

import ast

import pytest

from herbie_lint.analyzers.host import PythonView, to_tree
from herbie_lint.lisp.expr import Binary, Literal, Variable, depth, to_lambda, to_lisp
from herbie_lint.lisp.matcher import FragmentKind, Shape, TreeView, match
from herbie_lint.lisp.parser import parse


def _match_source(source: str, pattern: str):
    node = ast.parse(source, mode="eval").body
    return match(node, parse(pattern), PythonView(source))


@pytest.mark.parametrize(
    "text",
    [
        "(* (+ (/ herbie0 herbie1) herbie2) herbie1)",
        "(sqrt (+ (* a a) (* b b)))",
        "(- (log1p x) 2.5)",
    ],
)
def test_match_is_reflexive(text):
    """Test that a tree matches itself, binding each hole to itself."""
    bindings = match(parse(text), parse(text), TreeView())
    assert bindings is not None
    for hole, fragment in bindings.items():
        assert fragment.kind == FragmentKind.PATH
        assert fragment.key == ("var", hole)


def test_tree_binding_consistency():
    assert match(parse("(+ x x)"), parse("(+ h0 h0)")) is not None
    assert match(parse("(+ x y)"), parse("(+ h0 h0)")) is None


def test_binding_consistency():
    """Test that a repeated hole requires identical sub-terms."""
    assert _match_source("a + a", "(+ h0 h0)") is not None
    assert _match_source("a + b", "(+ h0 h0)") is None


def test_named_references_compare_structurally():
    assert _match_source("p.x + p.x", "(+ h0 h0)") is not None
    assert _match_source("p.x + p.y", "(+ h0 h0)") is None
    assert _match_source("d[0] + d[0]", "(+ h0 h0)") is not None
    assert _match_source("d[0] + d[1]", "(+ h0 h0)") is None


def test_impure_subterms_never_repeat():
    """Test that two calls to an unknown function are not the same value."""
    assert _match_source("f() + f()", "(+ h0 h0)") is None
    bindings = _match_source("f() + g(x)", "(+ h0 h1)")
    assert bindings[0].kind == FragmentKind.OPAQUE
    assert bindings[0].text == "f()"


def test_literals():
    """Test exact literal matching and literal bindings."""
    assert _match_source("x + 1.0", "(+ h0 1)") is not None
    assert _match_source("x + 1", "(+ h0 1)") is not None
    assert _match_source("x + 1.5", "(+ h0 1)") is None

    bindings = _match_source("2.0 * 2.0", "(* h0 h0)")
    assert bindings[0].kind == FragmentKind.LITERAL
    assert bindings[0].value == 2.0
    assert _match_source("2.0 * 3.0", "(* h0 h0)") is None
    assert _match_source("2.0 * x", "(* h0 h0)") is None

    # A pattern literal never matches a non-literal host term
    assert _match_source("x + y", "(+ h0 1)") is None


def test_overflowing_constants_are_not_literals():
    """Test that constants with no finite float value stay opaque."""
    for source in ["x + 1e400", f"x + {10 ** 400}"]:
        node = ast.parse(source, mode="eval").body
        view = PythonView(source)
        assert view.shape(node.right) == Shape.OTHER
        assert view.fragment(node.right).kind == FragmentKind.OPAQUE

    source = "b * ((a - 1e400)/a)"
    node = ast.parse(source, mode="eval").body
    tree, bindings = to_tree(node, PythonView(source))
    assert parse(to_lisp(tree)) == tree
    assert len(bindings) == 3


def test_calls():
    """Test that host calls match allow-listed pattern functions."""
    assert _match_source("math.sqrt(x)", "(sqrt h0)") is not None
    assert _match_source("sqrt(x)", "(sqrt h0)") is not None
    assert _match_source("np.sqrt(x)", "(sqrt h0)") is None
    assert _match_source("math.cos(x)", "(sqrt h0)") is None
    assert _match_source("math.hypot(x, y)", "(hypot h0 h1)") is not None
    assert _match_source("x ** y", "(pow h0 h1)") is not None
    assert _match_source("abs(x)", "(fabs h0)") is not None


def test_operators():
    assert _match_source("-x", "(- h0)") is not None
    assert _match_source("+x", "(- h0)") is None
    assert _match_source("a - b", "(+ h0 h1)") is None
    assert _match_source("a - b", "(- h0)") is None
    # A composite sub-term can fill a hole
    bindings = _match_source("(a + b) * c", "(* h0 h1)")
    assert bindings[0].text == "(a + b)"


def test_depth():
    """Test the depth metric used by the oracle gate."""
    assert depth(parse("(+ (* a b) c)")) == 2
    assert depth(parse("x")) == 0
    assert depth(parse("1.5")) == 0
    assert depth(parse("(sqrt x)")) == 1
    assert depth(parse("(* (+ (/ a b) c) b)")) == 3
    # Unary negation does not count
    assert depth(parse("(- (- (- (- (- x)))))")) == 0
    assert depth(parse("(- (+ a b))")) == 1


def test_to_tree():
    """Test building an oracle query from host source."""
    source = "b * ((a - 1.)/a)"
    node = ast.parse(source, mode="eval").body
    tree, bindings = to_tree(node, PythonView(source))

    assert tree == Binary("*", Variable(0), Binary("/", Binary("-", Variable(1), Literal(1.0)), Variable(1)))
    assert [bindings[i].text for i in range(len(bindings))] == ["b", "a"]
    assert depth(tree) == 3
    assert to_lambda(tree, len(bindings)) == "(lambda (herbie0 herbie1) (* herbie0 (/ (- herbie1 1) herbie1)))"


def test_to_tree_impure_terms_get_fresh_variables():
    source = "f() * f() + x"
    node = ast.parse(source, mode="eval").body
    tree, bindings = to_tree(node, PythonView(source))

    assert tree == Binary("+", Binary("*", Variable(0), Variable(1)), Variable(2))
    assert len(bindings) == 3


@pytest.mark.parametrize(
    "source,expected",
    [
        ("a / b", True),
        ("x * 2.0", True),
        ("math.sqrt(x)", True),
        ("(x + 1) * math.exp(y)", True),
        ("(i + j) * k", False),
        ("-x", False),
        ("(i // 2) * j", False),
    ],
)
def test_is_floating(source, expected):
    node = ast.parse(source, mode="eval").body
    assert PythonView(source).is_floating(node) == expected


def test_column_counts_characters():
    source = "x = 1\r\nlabel = (\"\u00e9t\u00e9\", a / b)\n"
    expr = ast.parse(source).body[1].value.elts[1]
    view = PythonView(source)

    assert (expr.lineno, expr.col_offset, expr.end_col_offset) == (2, 18, 23)
    assert view.column(expr.lineno, expr.col_offset) == 16
    assert view.column(expr.end_lineno, expr.end_col_offset) == 21
    assert view.column(1, 4) == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
