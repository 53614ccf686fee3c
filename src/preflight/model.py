from __future__ import annotations

"""Requirement and result types.

CONTRACT
- Inputs: token sequences (`FILE /etc/hosts`, `INTEGER 5 IS AT-LEAST 3`)
- Outputs (required):
  - Requirement(keyword, args), immutable
  - CheckResult(ok, message, code)
- Invariants:
  - A Requirement always has a keyword (may have zero args; arity is checked by the evaluator)
  - A failing CheckResult always carries a non-zero code
- Failure:
  - Requirement.parse raises RequireSyntaxError on an empty token list
"""

import operator
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from .errors import ExitCode, RequireSyntaxError

ARGUMENT_WORDS = frozenset({"ARGUMENT", "ARGUMENTS"})


class Keyword(str, Enum):
    FILE = "FILE"
    DIRECTORY = "DIRECTORY"
    PIPE = "PIPE"
    BLOCK_DEVICE = "BLOCK-DEVICE"
    DEVICE = "DEVICE"
    HOST = "HOST"
    INTEGER = "INTEGER"
    VALID_NAME = "VALID-NAME"
    KERNEL_MODULE = "KERNEL-MODULE"
    MOUNTPOINT = "MOUNTPOINT"
    VARIABLE = "VARIABLE"
    ARGUMENT = "ARGUMENT"
    AT_LEAST = "AT-LEAST"
    NO_LESS_THAN = "NO-LESS-THAN"
    GREATER_THAN = "GREATER-THAN"
    LESS_THAN = "LESS-THAN"
    NO_GREATER_THAN = "NO-GREATER-THAN"
    AT_MOST = "AT-MOST"
    EXACTLY = "EXACTLY"


class Comparison(Enum):
    """Integer comparison tests, usable standalone or after `IS`."""

    AT_LEAST = ("AT-LEAST", operator.ge, "at least")
    NO_LESS_THAN = ("NO-LESS-THAN", operator.ge, "no less than")
    GREATER_THAN = ("GREATER-THAN", operator.gt, "greater than")
    LESS_THAN = ("LESS-THAN", operator.lt, "less than")
    NO_GREATER_THAN = ("NO-GREATER-THAN", operator.le, "no greater than")
    AT_MOST = ("AT-MOST", operator.le, "at most")
    EXACTLY = ("EXACTLY", operator.eq, "exactly")

    def __init__(self, word: str, op: Callable[[int, int], bool], phrase: str) -> None:
        self.word = word
        self.op = op
        self.phrase = phrase

    def holds(self, value: int, bound: int) -> bool:
        return bool(self.op(value, bound))

    @classmethod
    def lookup(cls, word: str) -> Comparison | None:
        for member in cls:
            if member.word == word:
                return member
        return None


@dataclass(frozen=True)
class Requirement:
    keyword: str
    args: tuple[str, ...] = ()

    @classmethod
    def parse(cls, tokens: Iterable[str]) -> Requirement:
        toks = tuple(str(t) for t in tokens)
        if not toks:
            raise RequireSyntaxError("REQUIRE needs a keyword")
        return cls(keyword=toks[0], args=toks[1:])

    @property
    def tokens(self) -> tuple[str, ...]:
        return (self.keyword, *self.args)

    def __str__(self) -> str:
        return " ".join(self.tokens)


@dataclass(frozen=True)
class CheckResult:
    ok: bool
    message: str = ""
    code: int = 0

    @classmethod
    def success(cls) -> CheckResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str, code: int = ExitCode.REQUIREMENT_FAILED) -> CheckResult:
        return cls(ok=False, message=message, code=int(code) or int(ExitCode.REQUIREMENT_FAILED))

    def with_prefix(self, prefix: str) -> CheckResult:
        if self.ok or not prefix:
            return self
        return CheckResult(ok=False, message=f"{prefix}: {self.message}", code=self.code)

    def __bool__(self) -> bool:
        return self.ok
