from __future__ import annotations

"""Error state and error reporter.

CONTRACT
- Inputs: failing CheckResults; reporter arguments (`[code] [message...]`)
- Outputs (required):
  - ErrorState slot {message, code}
  - ErrorReporter.report() logs the message and raises SystemExit(code)
- Invariants:
  - At most one live failure; set() overwrites, clear()/consume() empty the slot
  - A numeric first reporter argument overrides the stored code
- Failure:
  - report() never returns
"""

from dataclasses import dataclass
from typing import NoReturn

from loguru import logger

from .errors import ExitCode
from .model import CheckResult

UNSPECIFIED_MESSAGE = "Requirement not met"


@dataclass
class ErrorState:
    default_code: int = int(ExitCode.REQUIREMENT_FAILED)
    message: str = ""
    code: int | None = None

    @property
    def live(self) -> bool:
        return self.code is not None

    def set(self, result: CheckResult) -> None:
        if result.ok:
            self.clear()
            return
        self.message = result.message
        self.code = result.code or self.default_code

    def clear(self) -> None:
        self.message = ""
        self.code = None

    def consume(self) -> tuple[str, int]:
        message = self.message
        code = self.code if self.code is not None else self.default_code
        self.clear()
        return message, code

    def as_result(self) -> CheckResult:
        if not self.live:
            return CheckResult.success()
        return CheckResult.failure(self.message, self.code or self.default_code)


def _as_code(arg: object) -> int | None:
    if isinstance(arg, bool):
        return None
    if isinstance(arg, int):
        return arg
    if isinstance(arg, str) and arg.isascii() and arg.isdigit():
        return int(arg)
    return None


class ErrorReporter:
    """Turns the stored failure (or explicit arguments) into a process exit."""

    def __init__(self, state: ErrorState) -> None:
        self.state = state

    def resolve(self, *args: object) -> tuple[str, int]:
        stored_message, stored_code = self.state.consume()
        if not args:
            return stored_message or UNSPECIFIED_MESSAGE, stored_code

        code = _as_code(args[0])
        if code is not None:
            message = " ".join(str(a) for a in args[1:]) or stored_message
            return message or UNSPECIFIED_MESSAGE, code
        return " ".join(str(a) for a in args), stored_code

    def report(self, *args: object) -> NoReturn:
        message, code = self.resolve(*args)
        logger.error(message)
        raise SystemExit(code)
