"""Core data structures and utilities for herbie_lint."""

from herbie_lint.core.config import Config, UseHerbie
from herbie_lint.core.errors import ConfigError, HerbieLintError, StoreError
from herbie_lint.core.finding import Finding, Severity
from herbie_lint.core.report import Reporter

__all__ = ["Config", "ConfigError", "Finding", "HerbieLintError", "Reporter", "Severity", "StoreError", "UseHerbie"]
