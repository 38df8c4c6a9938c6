"""Findings reported by the analysis."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Finding:
    """
    One diagnostic, usually attached to an arithmetic expression.

    Attributes:
        rule_id: Finding rule that produced it (see ``herbie_lint.rules``)
        severity: Severity level
        filename: File the expression was read from
        line: First line of the expression (1-indexed)
        col: First column of the expression (0-indexed)
        message: Human-readable description
        end_line: Last line of the expression, when known
        end_col: Column just past the expression, when known
        expression: Source text of the flagged expression
        suggestion: Replacement source text for ``expression``
        error_before: Error of the expression as measured by Herbie, in bits
        error_after: Error of the suggestion, in bits
    """
    rule_id: str
    severity: Severity
    filename: str
    line: int
    col: int
    message: str
    end_line: Optional[int] = None
    end_col: Optional[int] = None
    expression: Optional[str] = None
    suggestion: Optional[str] = None
    error_before: Optional[float] = None
    error_after: Optional[float] = None

    def __str__(self) -> str:
        result = f"{self.location}: {self.severity.value}: {self.rule_id}\n"
        result += f"    {self.message}"
        if self.suggestion:
            result += f"\n    Try this: {self.suggestion}"
        return result

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.line}:{self.col}"

    @property
    def accuracy(self) -> Optional[str]:
        """Measured error improvement, e.g. ``"2.0 -> 0.5 bits"``."""
        if self.error_before is None or self.error_after is None:
            return None
        return f"{self.error_before:g} -> {self.error_after:g} bits"

    def to_dict(self) -> dict:
        """Convert finding to dictionary for JSON serialization."""
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "filename": self.filename,
            "line": self.line,
            "col": self.col,
            "end_line": self.end_line,
            "end_col": self.end_col,
            "message": self.message,
            "expression": self.expression,
            "suggestion": self.suggestion,
            "error_before": self.error_before,
            "error_after": self.error_after,
        }

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity == Severity.WARNING
