"""Command-line interface for herbie_lint."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click

from herbie_lint import __version__
from herbie_lint.analyzers.herbie_analyzer import HerbieAnalyzer
from herbie_lint.cache.store import RuleStore
from herbie_lint.core.config import Config, UseHerbie
from herbie_lint.core.errors import HerbieLintError
from herbie_lint.core.finding import Finding
from herbie_lint.core.report import Reporter
from herbie_lint.rules import list_rules


@click.command()
@click.version_option(version=__version__)
@click.argument("files", nargs=-1, type=click.Path(exists=True))
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to config file (Herbie.toml)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "sarif"]),
    default=None,
    help="Output format",
)
@click.option("--db", "db_path", help="Path to the rule database")
@click.option("--seed", help="Seed passed to Herbie")
@click.option("--timeout", type=click.IntRange(min=0), help="Herbie timeout in seconds (0 = unlimited)")
@click.option(
    "--use-herbie",
    type=click.Choice([policy.value for policy in UseHerbie]),
    help="Call Herbie on unknown expressions: always (fail if missing), never, or auto",
)
@click.option("--create-db", is_flag=True, help="Create the rule database if it does not exist")
@click.option(
    "--disable-rule",
    multiple=True,
    help="Disable specific finding rule (can be used multiple times)",
)
@click.option(
    "--list-rules",
    "list_rules_flag",
    is_flag=True,
    help="List all finding rules and exit",
)
@click.option(
    "--no-suggestions",
    is_flag=True,
    help="Don't show rewrite suggestions in output",
)
@click.option(
    "--max-errors",
    type=int,
    default=0,
    help="Maximum number of errors before stopping (0 = unlimited)",
)
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug output)")
def main(
    files: tuple,
    config: Optional[str],
    output_format: Optional[str],
    db_path: Optional[str],
    seed: Optional[str],
    timeout: Optional[int],
    use_herbie: Optional[str],
    create_db: bool,
    disable_rule: tuple,
    list_rules_flag: bool,
    no_suggestions: bool,
    max_errors: int,
    verbose: int,
):
    """
    Herbie-Lint - Find numerically unstable floating-point expressions.

    Examples:

        # Analyze a single file
        herbie-lint physics.py

        # Only use the rule database, never call Herbie
        herbie-lint --use-herbie=never physics.py

        # Output as JSON
        herbie-lint --format=json physics.py > report.json
    """
    if list_rules_flag:
        _print_rules()
        sys.exit(0)

    if verbose:
        logging.basicConfig(level=logging.DEBUG if verbose > 1 else logging.INFO,
                            format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = Config.from_file(Path(config) if config else None)
    except HerbieLintError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    # Override config with CLI options
    if output_format:
        cfg.output_format = output_format
    if db_path:
        cfg.db_path = db_path
    if seed:
        cfg.herbie_seed = seed
    if timeout is not None:
        cfg.timeout = Config.normalize_timeout(timeout)
    if use_herbie:
        cfg.use_herbie = UseHerbie(use_herbie)
    if disable_rule:
        cfg.disabled_rules |= set(disable_rule)
    if no_suggestions:
        cfg.show_suggestions = False
    if max_errors:
        cfg.max_errors = max_errors

    if create_db:
        try:
            RuleStore(cfg.db_path).create()
        except HerbieLintError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(2)

    analyzer = HerbieAnalyzer(cfg)
    all_findings: List[Finding] = []
    error_count = 0

    for file_path in files:
        path = Path(file_path)

        if path.suffix != ".py":
            click.echo(f"Warning: Skipping non-Python file: {file_path}", err=True)
            continue

        try:
            source_code = path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            click.echo(f"Error reading {file_path}: {e}", err=True)
            continue

        findings = analyzer.analyze(source_code, str(path))
        all_findings.extend(findings)

        error_count += sum(1 for f in findings if f.is_error)
        if cfg.max_errors > 0 and error_count >= cfg.max_errors:
            click.echo(f"\nStopped after {error_count} errors (max_errors={cfg.max_errors})", err=True)
            break

    reporter = Reporter(output_format=cfg.output_format, show_suggestions=cfg.show_suggestions)
    sys.exit(reporter.report(all_findings))


def _print_rules():
    """Print all finding rules."""
    click.echo("Available Rules:\n")

    by_category = {}
    for rule_id, rule_info in list_rules().items():
        by_category.setdefault(rule_info["category"], []).append((rule_id, rule_info))

    for category, category_rules in sorted(by_category.items()):
        click.echo(f"{category.upper()}:")
        for rule_id, rule_info in sorted(category_rules):
            click.echo(f"  {rule_id:<30} [{rule_info['severity']:>7}]  {rule_info['description']}")
        click.echo()


if __name__ == "__main__":
    main()
