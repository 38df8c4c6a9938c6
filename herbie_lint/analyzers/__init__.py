"""Analyzers running the numerical stability checks over Python source."""

from herbie_lint.analyzers.herbie_analyzer import HerbieAnalyzer
from herbie_lint.analyzers.host import PythonView, to_tree

__all__ = ["HerbieAnalyzer", "PythonView", "to_tree"]
