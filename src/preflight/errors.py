from __future__ import annotations

"""Exceptions and exit codes.

CONTRACT
- Outputs:
  - PreflightError hierarchy for programmer/config errors
  - ExitCode with the sysexits.h range and the reserved requirement code
- Invariants:
  - RequireSyntaxError is never recorded in ErrorState; it propagates
  - REQUIREMENT_FAILED (80) sits outside the sysexits range 64-78
"""

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    USAGE = 64
    DATAERR = 65
    NOINPUT = 66
    NOUSER = 67
    NOHOST = 68
    UNAVAILABLE = 69
    SOFTWARE = 70
    OSERR = 71
    OSFILE = 72
    CANTCREAT = 73
    IOERR = 74
    TEMPFAIL = 75
    PROTOCOL = 76
    NOPERM = 77
    CONFIG = 78
    REQUIREMENT_FAILED = 80
    TIMEOUT = 124


class PreflightError(Exception):
    """Base class for preflight errors."""


class RequireSyntaxError(PreflightError, ValueError):
    """A malformed requirement invocation."""

    def __init__(self, message: str, tokens: tuple[str, ...] = ()) -> None:
        self.tokens = tuple(tokens)
        if self.tokens:
            message = f"{message} (in: {' '.join(self.tokens)})"
        super().__init__(message)


class ConfigError(PreflightError, ValueError):
    pass


class DuplicateRequirementError(PreflightError):
    def __init__(self, keyword: str) -> None:
        self.keyword = keyword
        super().__init__(f"Requirement keyword already registered: {keyword}")


class RegistryFrozenError(PreflightError):
    pass


class RequirementNotMet(PreflightError):
    """Raised by Session.ensure when a requirement does not hold."""

    def __init__(self, message: str, code: int = ExitCode.REQUIREMENT_FAILED) -> None:
        self.message = message
        self.code = int(code)
        super().__init__(message)
