"""Expression trees, the rewrite DSL, matching and rendering."""

from herbie_lint.lisp.expr import (
    Binary,
    Call,
    Expr,
    Literal,
    Unary,
    Variable,
    depth,
    to_lambda,
    to_lisp,
)
from herbie_lint.lisp.matcher import BindingTable, Fragment, FragmentKind, HostView, Shape, TreeView, match
from herbie_lint.lisp.parser import ParseError, ParseErrorKind, Parser, parse
from herbie_lint.lisp.render import render

__all__ = [
    "Binary",
    "BindingTable",
    "Call",
    "Expr",
    "Fragment",
    "FragmentKind",
    "HostView",
    "Literal",
    "ParseError",
    "ParseErrorKind",
    "Parser",
    "Shape",
    "TreeView",
    "Unary",
    "Variable",
    "depth",
    "match",
    "parse",
    "render",
    "to_lambda",
    "to_lisp",
]
