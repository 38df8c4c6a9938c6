"""
Persistent store of oracle-validated rewrite rules.

Rules live in a SQLite table with one row per discovered rewrite::

    HerbieResults(id, cmdin, cmdout, opts, errin, errout)

``cmdin`` and ``cmdout`` are the DSL text of the pattern and the rewrite.
The store is append-only: rows are read in full at startup and inserted one at
a time after a successful oracle run. Nothing here updates, deletes or
deduplicates rows.
"""

import logging
import math
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from herbie_lint.core.errors import StoreError
from herbie_lint.lisp.expr import Expr, to_lisp, variables
from herbie_lint.lisp.parser import ParseError, Parser

logger = logging.getLogger(__name__)

TABLE = "HerbieResults"

_SCHEMA = f"""
    CREATE TABLE IF NOT EXISTS {TABLE} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cmdin TEXT NOT NULL,
        cmdout TEXT NOT NULL,
        opts TEXT,
        errin REAL,
        errout REAL
    )
"""


@dataclass(frozen=True)
class Rule:
    """A validated (pattern, rewrite) pair and the errors the oracle measured."""
    pattern: Expr
    rewrite: Expr
    error_before: float = 0.0
    error_after: float = 0.0


class RuleStore:
    """SQLite-backed rule store."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    def create(self):
        """Create the database file and its table if they do not exist."""
        try:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute(_SCHEMA)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not create {self.db_path}: {e}") from e

    def load(self) -> List[Rule]:
        """
        Read every row and return the ones that decode to valid rules.

        Invalid rows are skipped, never reported as failures.

        Raises:
            StoreError: If the database cannot be opened or read
        """
        try:
            conn = self._connect("ro")
            try:
                rows = conn.execute(f"SELECT cmdin, cmdout, opts, errin, errout FROM {TABLE}").fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read {self.db_path}: {e}") from e

        rules = []
        for cmdin, cmdout, _opts, errin, errout in rows:
            rule = decode_row(cmdin, cmdout, errin, errout)
            if rule is not None:
                rules.append(rule)

        logger.debug(f"Loaded {len(rules)} of {len(rows)} rows from {self.db_path}")
        return rules

    def save(self, pattern: Expr, rewrite: Expr, options: str, error_before: float, error_after: float):
        """
        Append one rule to the store.

        Raises:
            StoreError: If the database cannot be opened or written
        """
        try:
            conn = self._connect("rw")
            try:
                with conn:
                    conn.execute(
                        f"INSERT INTO {TABLE} (cmdin, cmdout, opts, errin, errout) VALUES (?, ?, ?, ?, ?)",
                        (to_lisp(pattern), to_lisp(rewrite), options, error_before, error_after),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not save to {self.db_path}: {e}") from e

    def _connect(self, mode: str) -> sqlite3.Connection:
        # mode=ro / mode=rw never create a missing database
        uri = f"{self.db_path.resolve().as_uri()}?mode={mode}"
        return sqlite3.connect(uri, uri=True)


def decode_row(cmdin: Any, cmdout: Any, errin: Any, errout: Any) -> Optional[Rule]:
    """Decode one stored row, returning None when it must not be trusted."""
    if not isinstance(cmdin, str) or not isinstance(cmdout, str):
        logger.debug(f"Skipping row with missing forms: {cmdin!r} -> {cmdout!r}")
        return None

    errin = _error_value(errin)
    errout = _error_value(errout)
    if cmdin == cmdout or errin <= errout:
        logger.debug(f"Skipping row without improvement: {cmdin}")
        return None

    # One parser for both forms so that names map to the same holes
    parser = Parser()
    try:
        pattern = parser.parse(cmdin)
        rewrite = parser.parse(cmdout)
    except ParseError as e:
        logger.debug(f"Skipping unparseable row {cmdin!r} -> {cmdout!r}: {e}")
        return None

    if not variables(rewrite) <= variables(pattern):
        logger.debug(f"Skipping row with unbound holes: {cmdin} -> {cmdout}")
        return None

    return Rule(pattern, rewrite, errin, errout)


def _error_value(value: Any) -> float:
    """Stored error in bits. NULL, text, blobs and non-finite values count as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    return value if math.isfinite(value) else 0.0


class RuleCache:
    """
    In-memory rule set backed by a ``RuleStore``.

    The store is read at most once, on the first call to ``ensure_loaded``.
    Rules discovered later are saved to the store and appended in memory.
    """

    def __init__(self, store: RuleStore):
        self.store = store
        self.rules: List[Rule] = []
        self.loaded = False

    def ensure_loaded(self):
        """
        Load the store on first use.

        Raises:
            StoreError: On the first call only, if the store cannot be read.
                Later calls are no-ops and the rule set stays empty.
        """
        if self.loaded:
            return
        self.loaded = True
        self.rules = self.store.load()

    def add(self, pattern: Expr, rewrite: Expr, options: str, error_before: float, error_after: float):
        """
        Persist a newly discovered rule and make it available immediately.

        Raises:
            StoreError: If the rule could not be saved. It is still kept in memory.
        """
        self.rules.append(Rule(pattern, rewrite, error_before, error_after))
        self.store.save(pattern, rewrite, options, error_before, error_after)
