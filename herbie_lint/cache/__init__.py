"""Persistent cache of oracle-validated rewrite rules."""

from herbie_lint.cache.store import Rule, RuleCache, RuleStore, decode_row

__all__ = ["Rule", "RuleCache", "RuleStore", "decode_row"]
