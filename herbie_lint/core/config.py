"""Configuration management for herbie_lint."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

import toml

from herbie_lint.core.errors import ConfigError

CONFIG_FILENAME = "Herbie.toml"

DEFAULT_DB_PATH = "Herbie.db"
# A fixed seed keeps oracle runs, and therefore lint results, reproducible.
DEFAULT_HERBIE_SEED = "#(1461197085 2376054483 1553562171 1611329376 2497620867 2308122621)"
DEFAULT_TIMEOUT = 120
DEFAULT_HERBIE_COMMAND = "herbie-inout"
DEFAULT_HERBIE_OPTIONS = ["-o", "rules:numerics"]
DEFAULT_MIN_DEPTH = 2


class UseHerbie(str, Enum):
    """Policy for calling the oracle on expressions no stored rule matches."""
    ALWAYS = "always"
    NEVER = "never"
    AUTO = "auto"


@dataclass
class Config:
    """
    Configuration for herbie_lint analysis.

    Attributes:
        db_path: Path to the SQLite rule store
        herbie_seed: Seed passed to the oracle
        timeout: Oracle timeout in seconds (None = wait indefinitely)
        use_herbie: Whether the oracle is required, disabled or used if found
        herbie_command: Oracle executable
        herbie_options: Extra option flags passed to the oracle
        min_depth: Expressions at or below this depth are never sent to the oracle
        disabled_rules: Set of finding rule IDs to disable
        rule_severities: Override severities for specific finding rules
        max_errors: Maximum number of errors before stopping (0 = unlimited)
        show_suggestions: Whether to show rewrite suggestions
        output_format: Output format (text, json, sarif)
    """
    db_path: str = DEFAULT_DB_PATH
    herbie_seed: str = DEFAULT_HERBIE_SEED
    timeout: Optional[int] = DEFAULT_TIMEOUT
    use_herbie: UseHerbie = UseHerbie.AUTO
    herbie_command: str = DEFAULT_HERBIE_COMMAND
    herbie_options: List[str] = field(default_factory=lambda: list(DEFAULT_HERBIE_OPTIONS))
    min_depth: int = DEFAULT_MIN_DEPTH
    disabled_rules: Set[str] = field(default_factory=set)
    rule_severities: Dict[str, str] = field(default_factory=dict)
    max_errors: int = 0
    show_suggestions: bool = True
    output_format: str = "text"

    @classmethod
    def from_file(cls, config_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from a TOML file.

        If config_path is None, searches for Herbie.toml in current directory
        and parent directories.
        """
        if config_path is None:
            config_path = cls._find_config_file()

        if config_path is None or not config_path.exists():
            return cls()

        try:
            with open(config_path, "r") as f:
                data = toml.load(f)
        except toml.TomlDecodeError as e:
            raise ConfigError(f"{config_path}: {e}") from e

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "db_path" in data:
            config.db_path = str(data["db_path"])
        if "herbie_seed" in data:
            config.herbie_seed = str(data["herbie_seed"])
        if "timeout" in data:
            config.timeout = cls.normalize_timeout(data["timeout"])
        if "use_herbie" in data:
            config.use_herbie = UseHerbie.ALWAYS if data["use_herbie"] else UseHerbie.NEVER
        if "herbie_command" in data:
            config.herbie_command = str(data["herbie_command"])
        if "herbie_options" in data:
            config.herbie_options = [str(opt) for opt in data["herbie_options"]]
        if "min_depth" in data:
            config.min_depth = int(data["min_depth"])

        # Rules can be specified as rule-name = "severity"
        if "rules" in data:
            for rule_id, severity in data["rules"].items():
                if severity.lower() in ["off", "false", "disabled"]:
                    config.disabled_rules.add(rule_id)
                elif severity.lower() in ["error", "warning", "info", "hint"]:
                    config.rule_severities[rule_id] = severity.lower()
                else:
                    raise ConfigError(f"Unknown severity for rule {rule_id}: {severity}")

        if "output" in data:
            output = data["output"]
            if "format" in output:
                config.output_format = output["format"]
            if "show_suggestions" in output:
                config.show_suggestions = output["show_suggestions"]
            if "max_errors" in output:
                config.max_errors = output["max_errors"]

        return config

    @staticmethod
    def normalize_timeout(timeout: Optional[int]) -> Optional[int]:
        """Map a configured timeout to seconds, with 0 meaning no timeout."""
        if timeout is None:
            return None
        timeout = int(timeout)
        if timeout < 0:
            raise ConfigError(f"Timeout must not be negative: {timeout}")
        return timeout or None

    @staticmethod
    def _find_config_file() -> Optional[Path]:
        """Search for Herbie.toml in current and parent directories."""
        current = Path.cwd()

        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return config_path

            # Check if we've reached the root
            parent = current.parent
            if parent == current:
                break
            current = parent

        return None

    def is_rule_enabled(self, rule_id: str) -> bool:
        """Check if a finding rule is enabled."""
        return rule_id not in self.disabled_rules

    def get_rule_severity(self, rule_id: str, default: str = "warning") -> str:
        """Get the severity for a rule, with fallback to default."""
        return self.rule_severities.get(rule_id, default)
