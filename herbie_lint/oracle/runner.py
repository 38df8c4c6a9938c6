"""Running the oracle as a subprocess with piped stdio and a timeout."""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Outcome of one oracle process run."""
    returncode: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return not self.timed_out and self.returncode == 0


# run(argv, stdin, timeout) -> ProcessResult
Runner = Callable[[List[str], str, Optional[float]], ProcessResult]


def run(argv: List[str], stdin: str, timeout: Optional[float] = None) -> ProcessResult:
    """
    Run ``argv``, write ``stdin`` to it and wait for it to exit.

    The process is killed when ``timeout`` seconds elapse; ``None`` waits
    indefinitely. Output is decoded as UTF-8, invalid bytes becoming U+FFFD.

    Raises:
        OSError: If the process cannot be launched
    """
    logger.debug(f"Running: {' '.join(argv)}")
    try:
        result = subprocess.run(argv, input=stdin, capture_output=True, text=True, encoding="utf-8", errors="replace",
                                timeout=timeout)
    except subprocess.TimeoutExpired as e:
        logger.debug(f"{argv[0]} killed after {timeout} seconds")
        return ProcessResult(None, _decode(e.stdout), _decode(e.stderr), timed_out=True)

    return ProcessResult(result.returncode, result.stdout, result.stderr)


def _decode(output) -> str:
    # TimeoutExpired carries bytes even in text mode
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
