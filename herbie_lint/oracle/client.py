"""
Client for the external numerical-stability oracle (Herbie's ``herbie-inout``).

Protocol:

- argv is ``[command, "--seed", seed, *options]``;
- stdin receives one line, ``(lambda (herbie0 ... herbieN) <expr>)``;
- on success stdout holds three lines: the error before, the error after
  (each the text after the last space of its line) and the rewritten
  expression in the DSL.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from herbie_lint.lisp.expr import VARIABLE_PREFIX, Expr, to_lambda, variables
from herbie_lint.lisp.parser import ParseError, Parser
from herbie_lint.oracle.runner import Runner, run

logger = logging.getLogger(__name__)


class OracleStatus(str, Enum):
    IMPROVED = "improved"
    NO_IMPROVEMENT = "no-improvement"
    FAILED = "failed"


@dataclass
class OracleResult:
    """
    Result of one oracle query.

    Attributes:
        status: Whether the oracle improved the expression, did not, or failed
        error_before: Error of the original expression, as measured by the oracle
        error_after: Error of the rewritten expression
        rewrite: The rewritten expression, using the query's variable ids
        message: Reason of a failure
        launch_failed: The oracle could not be started at all
        timed_out: The oracle was killed by the timeout
    """
    status: OracleStatus
    error_before: Optional[float] = None
    error_after: Optional[float] = None
    rewrite: Optional[Expr] = None
    message: Optional[str] = None
    launch_failed: bool = False
    timed_out: bool = False

    @property
    def improved(self) -> bool:
        return self.status == OracleStatus.IMPROVED

    @property
    def failed(self) -> bool:
        return self.status == OracleStatus.FAILED

    @classmethod
    def failure(cls, message: str, **kwargs) -> "OracleResult":
        return cls(OracleStatus.FAILED, message=message, **kwargs)


class OracleClient:
    """
    Queries the oracle, one blocking subprocess per query.

    Args:
        command: Oracle executable
        options: Extra option flags appended after the seed
        runner: Process runner, replaceable for testing
    """

    def __init__(self, command: str, options: Optional[List[str]] = None, runner: Runner = run):
        self.command = command
        self.options = list(options or [])
        self.runner = runner

    def query(self, expr: Expr, nb_vars: int, seed: Optional[str] = None,
              timeout: Optional[float] = None) -> OracleResult:
        """
        Ask the oracle for a more accurate equivalent of ``expr``.

        Args:
            expr: Expression whose variables are ids ``0 .. nb_vars - 1``
            nb_vars: Number of free variables
            seed: Seed making oracle runs reproducible
            timeout: Seconds to wait, None for no limit
        """
        argv = [self.command]
        if seed is not None:
            argv += ["--seed", seed]
        argv += self.options

        query = to_lambda(expr, nb_vars) + "\n"
        logger.info(f"Calling {self.command} on {query.strip()}")

        try:
            result = self.runner(argv, query, timeout)
        except OSError as e:
            return OracleResult.failure(f"Could not call {self.command}: {e}", launch_failed=True)

        if result.timed_out:
            return OracleResult.failure(f"{self.command} timed out", timed_out=True)

        if not result.success:
            message = f"{self.command} did not return successfully: status={result.returncode}"
            if result.stderr.strip():
                message += f"\n{result.stderr.strip()}"
            return OracleResult.failure(message)

        logger.debug(f"{self.command} output: {result.stdout!r}")
        return self._parse_output(result.stdout, nb_vars)

    def _parse_output(self, stdout: str, nb_vars: int) -> OracleResult:
        lines = stdout.splitlines()
        if len(lines) < 3:
            return OracleResult.failure(f"Could not parse {self.command} output")

        error_before = parse_error_line(lines[0])
        error_after = parse_error_line(lines[1])
        if error_before is None or error_after is None:
            return OracleResult.failure(f"Could not parse {self.command} output")

        if error_before <= error_after:
            return OracleResult(OracleStatus.NO_IMPROVEMENT, error_before, error_after)

        # The rewrite refers to the lambda parameters, which must keep their ids
        parser = Parser({f"{VARIABLE_PREFIX}{i}": i for i in range(nb_vars)})
        try:
            rewrite = parser.parse(lines[2])
        except ParseError as e:
            return OracleResult.failure(f"Could not understand {self.command} output {lines[2]!r}: {e}")

        if not variables(rewrite) <= set(range(nb_vars)):
            return OracleResult.failure(f"{self.command} output uses unknown variables: {lines[2]!r}")

        return OracleResult(OracleStatus.IMPROVED, error_before, error_after, rewrite)


def parse_error_line(line: str) -> Optional[float]:
    """Parse the float after the last space of an error line."""
    try:
        value = float(line.split(" ")[-1])
    except ValueError:
        return None
    return None if math.isnan(value) else value
