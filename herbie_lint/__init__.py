"""
Herbie-Lint - Static analyzer for numerically unstable floating-point code.

Arithmetic expressions in Python source are matched against a database of
rewrite rules validated by Herbie. Unknown expressions can be sent to Herbie
itself, and the improvements it finds are added to the database.
"""

__version__ = "0.1.0"

from herbie_lint.core.finding import Finding, Severity
from herbie_lint.core.config import Config


def ignore(func):
    """Decorator excluding a function or class from herbie-lint analysis."""
    return func


__all__ = ["Finding", "Severity", "Config", "ignore", "__version__"]
