"""
Finding rules reported by herbie_lint.

Rewrite rules live in the rule store; these are the kinds of findings the
analyzer can emit, each of which can be disabled or re-graded in the config.
"""

NUMERICAL_INSTABILITY = "numerical-instability"
HERBIE_NOTICE = "herbie-notice"
HERBIE_ERROR = "herbie-error"
HERBIE_INIT_ERROR = "herbie-init-error"
SYNTAX_ERROR = "syntax-error"

RULE_REGISTRY = {
    NUMERICAL_INSTABILITY: {
        "category": "accuracy",
        "severity": "warning",
        "description": "Expression has a more accurate equivalent",
    },
    HERBIE_NOTICE: {
        "category": "oracle",
        "severity": "info",
        "description": "Herbie was called on an expression, or timed out",
    },
    HERBIE_ERROR: {
        "category": "oracle",
        "severity": "warning",
        "description": "Herbie failed, or its result could not be saved",
    },
    HERBIE_INIT_ERROR: {
        "category": "setup",
        "severity": "warning",
        "description": "The rule database could not be read or Herbie is required but missing",
    },
    SYNTAX_ERROR: {
        "category": "setup",
        "severity": "error",
        "description": "File could not be parsed",
    },
}


def get_rule_info(rule_id: str) -> dict:
    """Get information about a specific rule."""
    return RULE_REGISTRY.get(rule_id,
                             {"category": "unknown", "severity": "warning", "description": "No description available"})


def list_rules() -> dict:
    """List all available rules."""
    return RULE_REGISTRY
