from __future__ import annotations

"""Evaluation session.

CONTRACT
- Inputs: requirement tokens; session-wide caller context (variables, args, caller name)
- Outputs (required):
  - evaluate() -> CheckResult, mirrored into the session's ErrorState
  - require() -> bool for `session.require(...) or fallback()` branching
  - ensure() raises RequirementNotMet; error() exits the process
- Invariants:
  - Every evaluate() starts by clearing ErrorState, so stale failures never leak
  - Syntax errors propagate and leave ErrorState empty
  - One session per logical validation flow; sessions share nothing mutable
- Failure:
  - RequireSyntaxError for malformed requirements
"""

import uuid
from collections.abc import Mapping, Sequence
from typing import NoReturn

from loguru import logger

from .config import PreflightConfig
from .errors import RequireSyntaxError, RequirementNotMet
from .evaluator import EvalContext, Evaluator, VariableLookup
from .model import CheckResult, Requirement
from .state import ErrorReporter, ErrorState
from .util.events import EventLog


class Session:
    def __init__(
        self,
        evaluator: Evaluator | None = None,
        *,
        config: PreflightConfig | None = None,
        variables: Mapping[str, str] | VariableLookup | None = None,
        args: Sequence[str] = (),
        caller: str | None = None,
    ) -> None:
        if evaluator is not None and config is not None and config != evaluator.config:
            raise ValueError("Session config differs from the evaluator's config")
        self.config = evaluator.config if evaluator is not None else (config or PreflightConfig())
        self.evaluator = evaluator or Evaluator(config=self.config)
        self.context = EvalContext(variables=variables, args=tuple(args), caller=caller)
        self.state = ErrorState(default_code=self.config.failure_code)
        self.reporter = ErrorReporter(self.state)
        self.id = uuid.uuid4().hex
        self.events = (
            EventLog(self.config.event_log, session=self.id) if self.config.event_log else None
        )

    def evaluate(self, *tokens: str, ctx: EvalContext | None = None) -> CheckResult:
        self.state.clear()
        requirement = Requirement.parse(tokens)
        try:
            result = self.evaluator.evaluate(requirement, ctx or self.context)
        except RequireSyntaxError as e:
            self._emit(requirement, event="syntax_error", message=str(e))
            raise

        if not result.ok:
            self.state.set(result)
            logger.info(f"Requirement not met: {requirement}: {result.message}")
        self._emit(requirement, event="require", ok=result.ok, code=result.code, message=result.message)
        return result

    def require(self, *tokens: str, ctx: EvalContext | None = None) -> bool:
        return self.evaluate(*tokens, ctx=ctx).ok

    def ensure(self, *tokens: str, ctx: EvalContext | None = None) -> None:
        result = self.evaluate(*tokens, ctx=ctx)
        if not result.ok:
            message, code = self.state.consume()
            raise RequirementNotMet(message, code)

    def error(self, *args: object) -> NoReturn:
        self.reporter.report(*args)

    def for_call(self, caller: str, args: Sequence[str]) -> EvalContext:
        """Context for a function `caller` that received `args`."""
        return EvalContext(variables=self.context.variables, args=tuple(args), caller=caller)

    def _emit(self, requirement: Requirement, **event: object) -> None:
        if self.events is None:
            return
        self.events.emit(tokens=list(requirement.tokens), **event)
