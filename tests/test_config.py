"""Tests for Herbie.toml configuration loading."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from herbie_lint.core.config import DEFAULT_HERBIE_SEED, Config, UseHerbie
from herbie_lint.core.errors import ConfigError


class TestConfig(unittest.TestCase):
    """Test reading Herbie.toml."""

    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _load(self, text):
        path = self.tmp / "Herbie.toml"
        path.write_text(text)
        return Config.from_file(path)

    def test_defaults(self):
        config = Config.from_file(self.tmp / "missing.toml")

        self.assertEqual(config.db_path, "Herbie.db")
        self.assertEqual(config.herbie_seed, DEFAULT_HERBIE_SEED)
        self.assertEqual(config.timeout, 120)
        self.assertEqual(config.use_herbie, UseHerbie.AUTO)
        self.assertEqual(config.herbie_options, ["-o", "rules:numerics"])
        self.assertEqual(config.min_depth, 2)

    def test_top_level_keys(self):
        config = self._load("""
db_path = "rules/Herbie.db"
herbie_seed = "#(1 2 3 4 5 6)"
timeout = 30
herbie_command = "/opt/herbie/herbie-inout"
herbie_options = ["-o", "rules:numerics", "-o", "setup:simplify"]
min_depth = 3
""")
        self.assertEqual(config.db_path, "rules/Herbie.db")
        self.assertEqual(config.herbie_seed, "#(1 2 3 4 5 6)")
        self.assertEqual(config.timeout, 30)
        self.assertEqual(config.herbie_command, "/opt/herbie/herbie-inout")
        self.assertEqual(config.herbie_options, ["-o", "rules:numerics", "-o", "setup:simplify"])
        self.assertEqual(config.min_depth, 3)

    def test_zero_timeout_means_no_timeout(self):
        self.assertIsNone(self._load("timeout = 0\n").timeout)

    def test_negative_timeout(self):
        with self.assertRaises(ConfigError):
            self._load("timeout = -1\n")

    def test_use_herbie(self):
        self.assertEqual(self._load("use_herbie = true\n").use_herbie, UseHerbie.ALWAYS)
        self.assertEqual(self._load("use_herbie = false\n").use_herbie, UseHerbie.NEVER)
        self.assertEqual(self._load("db_path = 'x.db'\n").use_herbie, UseHerbie.AUTO)

    def test_rules_section(self):
        config = self._load("""
[rules]
numerical-instability = "error"
herbie-notice = "off"
""")
        self.assertFalse(config.is_rule_enabled("herbie-notice"))
        self.assertTrue(config.is_rule_enabled("numerical-instability"))
        self.assertEqual(config.get_rule_severity("numerical-instability"), "error")
        self.assertEqual(config.get_rule_severity("herbie-error", "warning"), "warning")

    def test_unknown_severity(self):
        with self.assertRaises(ConfigError):
            self._load("[rules]\nnumerical-instability = \"fatal\"\n")

    def test_output_section(self):
        config = self._load("""
[output]
format = "json"
show_suggestions = false
max_errors = 5
""")
        self.assertEqual(config.output_format, "json")
        self.assertFalse(config.show_suggestions)
        self.assertEqual(config.max_errors, 5)

    def test_malformed_file(self):
        with self.assertRaises(ConfigError):
            self._load("timeout = \n")


if __name__ == "__main__":
    unittest.main()
