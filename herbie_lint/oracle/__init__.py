"""Client for the external numerical-stability oracle."""

from herbie_lint.oracle.client import OracleClient, OracleResult, OracleStatus
from herbie_lint.oracle.runner import ProcessResult, run

__all__ = ["OracleClient", "OracleResult", "OracleStatus", "ProcessResult", "run"]
