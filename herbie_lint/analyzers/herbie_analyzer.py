"""Python AST pass reporting numerically unstable floating-point expressions."""

import ast
import logging
import shlex
from typing import Any, List, Optional

from herbie_lint.analyzers.host import PythonView, to_tree
from herbie_lint.cache.store import RuleCache, RuleStore
from herbie_lint.core.config import Config, UseHerbie
from herbie_lint.core.errors import StoreError
from herbie_lint.core.finding import Finding, Severity
from herbie_lint.lisp.expr import Expr, depth
from herbie_lint.lisp.matcher import BindingTable, Shape, match
from herbie_lint.lisp.render import render
from herbie_lint.oracle.client import OracleClient
from herbie_lint import rules

logger = logging.getLogger(__name__)

# Decorators excluding a function or class from the analysis.
IGNORE_DECORATORS = ("ignore", "herbie_ignore")


class HerbieAnalyzer:
    """
    Reports floating-point expressions with a more accurate equivalent.

    Every arithmetic expression is matched against all stored rules, and every
    matching rule is reported. When none matches, the oracle is asked about
    expressions deep enough to be worth it; improvements are reported and
    saved as new rules.

    One analyzer can be reused across files: the rule store is read once, on
    the first expression that needs it, and oracle availability is
    remembered.
    """

    def __init__(self, config: Config, cache: Optional[RuleCache] = None, oracle: Optional[OracleClient] = None):
        self.config = config
        self.cache = cache if cache is not None else RuleCache(RuleStore(config.db_path))
        self.oracle = oracle if oracle is not None else OracleClient(config.herbie_command, config.herbie_options)
        self.findings: List[Finding] = []
        self.filename = ""
        self.view = PythonView()
        self.oracle_missing = False

    def reset(self):
        """Reset the per-file state."""
        self.findings = []

    def analyze(self, source_code: str, filename: str) -> List[Finding]:
        """Analyze Python source code for numerically unstable expressions."""
        self.reset()
        self.filename = filename
        self.view = PythonView(source_code)

        try:
            tree = ast.parse(source_code, filename=filename)
        except SyntaxError as e:
            self._add_at(rules.SYNTAX_ERROR, Severity.ERROR, e.lineno or 1, e.offset or 0, f"Syntax error: {e.msg}")
            return self.findings

        self.visit(tree)
        return self.findings

    def visit(self, node: ast.AST):
        """Visit AST nodes using the visitor pattern."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ast.AST):
        """Visit children of this node."""
        for child in ast.iter_child_nodes(node):
            self.visit(child)

    def visit_FunctionDef(self, node: ast.FunctionDef):
        if not self._is_ignored(node):
            self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_ClassDef = visit_FunctionDef

    def visit_BinOp(self, node: ast.BinOp):
        self.check_expr(node)
        self.generic_visit(node)

    visit_UnaryOp = visit_BinOp
    visit_Call = visit_BinOp

    def check_expr(self, node: ast.expr):
        """Check one candidate expression. Sub-expressions are checked separately."""
        if self.view.shape(node) not in (Shape.BINARY, Shape.UNARY, Shape.CALL):
            return
        if not self.view.is_floating(node):
            return

        self._initialize()

        got_match = False
        for rule in self.cache.rules:
            bindings = match(node, rule.pattern, self.view)
            if bindings is not None:
                self._report(node, rule.rewrite, bindings, rule.error_before, rule.error_after)
                got_match = True

        if not got_match and self.config.use_herbie != UseHerbie.NEVER:
            self._try_with_herbie(node)

    def _initialize(self):
        """Load the rule store on first use, reporting a failure once."""
        if self.cache.loaded:
            return
        try:
            self.cache.ensure_loaded()
        except StoreError as e:
            logger.warning(f"Could not initialize herbie-lint: {e}")
            self._add_at(rules.HERBIE_INIT_ERROR, Severity.WARNING, 1, 0, f"Could not initialize herbie-lint: {e}")

    def _try_with_herbie(self, node: ast.expr):
        if self.oracle_missing:
            return

        expr, bindings = to_tree(node, self.view)
        if depth(expr) <= self.config.min_depth:
            return

        result = self.oracle.query(expr, len(bindings), self.config.herbie_seed, self.config.timeout)

        if result.launch_failed:
            self.oracle_missing = True
            logger.info(result.message)
            if self.config.use_herbie == UseHerbie.ALWAYS:
                self._add(rules.HERBIE_INIT_ERROR, Severity.ERROR, node, result.message)
            return

        self._add(rules.HERBIE_NOTICE, Severity.INFO, node,
                  "Calling Herbie on the following expression, it might take a while")

        if result.timed_out:
            self._add(rules.HERBIE_NOTICE, Severity.INFO, node, "Herbie timed out")
            return

        if result.failed:
            self._add(rules.HERBIE_ERROR, Severity.WARNING, node, result.message)
            return

        if not result.improved:
            logger.debug(f"No improvement for {self.view.text(node)}")
            return

        self._report(node, result.rewrite, bindings, result.error_before, result.error_after)
        self._save(node, expr, result.rewrite, result.error_before, result.error_after)

    def _save(self, node: ast.expr, pattern: Expr, rewrite: Expr, error_before: float, error_after: float):
        try:
            self.cache.add(pattern, rewrite, shlex.join(self.config.herbie_options), error_before, error_after)
        except StoreError as e:
            logger.warning(f"Could not save rule: {e}")
            self._add(rules.HERBIE_ERROR, Severity.WARNING, node, f"Could not save database: {e}")

    def _report(self, node: ast.expr, rewrite: Expr, bindings: BindingTable, error_before: float,
                error_after: float):
        self._add(
            rules.NUMERICAL_INSTABILITY,
            Severity.WARNING,
            node,
            "Numerically unstable expression",
            expression=self.view.text(node),
            suggestion=render(rewrite, bindings),
            error_before=error_before,
            error_after=error_after,
        )

    def _is_ignored(self, node: Any) -> bool:
        """Check if a definition carries the ignore decorator."""
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Attribute):
                if decorator.attr == "ignore" and isinstance(decorator.value, ast.Name) \
                        and decorator.value.id == "herbie_lint":
                    return True
            elif isinstance(decorator, ast.Name) and decorator.id in IGNORE_DECORATORS:
                return True
        return False

    def _add(self, rule_id: str, severity: Severity, node: ast.AST, message: str, **kwargs):
        # ast offsets count UTF-8 bytes, findings count characters
        self._add_at(rule_id, severity, node.lineno, self.view.column(node.lineno, node.col_offset), message,
                     end_line=node.end_lineno, end_col=self.view.column(node.end_lineno, node.end_col_offset), **kwargs)

    def _add_at(self, rule_id: str, severity: Severity, line: int, col: int, message: str, **kwargs):
        if not self.config.is_rule_enabled(rule_id):
            return
        severity = Severity(self.config.get_rule_severity(rule_id, severity.value))
        self.findings.append(
            Finding(
                rule_id=rule_id,
                severity=severity,
                filename=self.filename,
                line=line,
                col=col,
                message=message,
                **kwargs,
            ))
