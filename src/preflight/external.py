from __future__ import annotations

"""External check loader.

CONTRACT
- Inputs: ordered search directories, timeout, a Requirement with a non-builtin keyword
- Outputs (required):
  - CheckResult forwarded from the `REQUIRE_<KEYWORD>` executable
- Invariants:
  - First directory holding an executable `REQUIRE_<KEYWORD>` wins
  - The executable receives the full token list (keyword first)
  - Keywords that are not plain tokens (path separators, `.`/`..`, whitespace) never resolve
- Failure:
  - No executable found -> failure "Unknown requirement: <KEYWORD>" (never raises)
  - Timeout -> failure with code 124
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .errors import ExitCode
from .model import CheckResult, Requirement
from .util.shell import is_executable, run_cmd

EXECUTABLE_PREFIX = "REQUIRE_"

_PLAIN_KEYWORD = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.+-]*$")


def executable_name(keyword: str) -> str:
    return f"{EXECUTABLE_PREFIX}{keyword}"


@dataclass(frozen=True)
class ExternalCheck:
    keyword: str
    path: Path


class ExternalCheckLoader:
    def __init__(
        self,
        search_path: Iterable[Path],
        timeout_s: float | None = 30.0,
        failure_code: int = ExitCode.REQUIREMENT_FAILED,
    ) -> None:
        self.search_path = [Path(p) for p in search_path]
        self.timeout_s = timeout_s
        self.failure_code = int(failure_code)

    def find(self, keyword: str) -> ExternalCheck | None:
        if not _PLAIN_KEYWORD.match(keyword) or keyword.strip(".") == "":
            logger.debug(f"Refusing to resolve external check for keyword {keyword!r}")
            return None
        name = executable_name(keyword)
        for directory in self.search_path:
            candidate = directory / name
            if is_executable(candidate):
                logger.debug(f"External check {keyword} -> {candidate}")
                return ExternalCheck(keyword=keyword, path=candidate)
        return None

    def available(self) -> list[ExternalCheck]:
        """All external checks on the search path, first match per keyword."""
        seen: dict[str, ExternalCheck] = {}
        for directory in self.search_path:
            if not directory.is_dir():
                continue
            for entry in sorted(directory.glob(f"{EXECUTABLE_PREFIX}*")):
                keyword = entry.name[len(EXECUTABLE_PREFIX):]
                if keyword and keyword not in seen and is_executable(entry):
                    seen[keyword] = ExternalCheck(keyword=keyword, path=entry)
        return [seen[k] for k in sorted(seen)]

    def run(self, requirement: Requirement) -> CheckResult:
        check = self.find(requirement.keyword)
        if check is None:
            return CheckResult.failure(
                f"Unknown requirement: {requirement.keyword}", self.failure_code
            )

        res = run_cmd([str(check.path), *requirement.tokens], timeout_s=self.timeout_s)
        if res.ok:
            return CheckResult.success()
        if res.timed_out:
            logger.warning(f"External check {check.path} timed out after {self.timeout_s}s")
            return CheckResult.failure(
                f"Requirement {requirement.keyword} timed out: {check.path}", ExitCode.TIMEOUT
            )
        message = res.last_line() or (
            f"Requirement {requirement.keyword} not met (exit {res.returncode})"
        )
        # Signals show up as negative return codes.
        code = res.returncode if res.returncode > 0 else self.failure_code
        return CheckResult.failure(message, code)
