from __future__ import annotations

"""Requirement evaluator.

CONTRACT
- Inputs: Requirement (or token sequence), EvalContext (variables, caller args, caller name)
- Outputs (required):
  - CheckResult for the requirement
- Invariants:
  - At least 2 tokens per requirement (keyword + primary argument)
  - Built-in keywords dispatch through the registry; anything else goes to the external loader
  - Never touches ErrorState (see Session)
- Failure:
  - Raises RequireSyntaxError on malformed invocations
  - Returns a failing CheckResult when a precondition does not hold
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from loguru import logger

from .config import PreflightConfig
from .errors import RequireSyntaxError
from .external import ExternalCheckLoader
from .model import CheckResult, Requirement
from .probes import LinuxSystemProbe, SystemProbe
from .registry import RequirementRegistry, default_registry

VariableLookup = Callable[[str], "str | None"]


def _as_lookup(variables: Mapping[str, str] | VariableLookup | None) -> VariableLookup:
    if variables is None:
        return lambda _name: None
    if isinstance(variables, Mapping):
        return variables.get
    return variables


@dataclass(frozen=True)
class EvalContext:
    """What the caller of a requirement looks like.

    `args` are the arguments the calling function received (used by the
    `<test> <n> ARGUMENTS` shorthand) and `caller` names it for messages.
    """

    variables: Mapping[str, str] | VariableLookup | None = None
    args: tuple[str, ...] = ()
    caller: str | None = None
    label: str | None = None
    _lookup: VariableLookup = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "_lookup", _as_lookup(self.variables))

    def lookup(self, name: str) -> str | None:
        return self._lookup(name)

    def nested(self, label: str | None) -> EvalContext:
        return replace(self, label=label)


class Evaluator:
    def __init__(
        self,
        registry: RequirementRegistry | None = None,
        external: ExternalCheckLoader | None = None,
        probe: SystemProbe | None = None,
        config: PreflightConfig | None = None,
    ) -> None:
        self.config = config or PreflightConfig()
        self.registry = (registry if registry is not None else default_registry()).freeze()
        self.external = external or ExternalCheckLoader(
            self.config.check_dirs(),
            timeout_s=self.config.external_timeout_s,
            failure_code=self.config.failure_code,
        )
        self.probe: SystemProbe = probe or LinuxSystemProbe()

    def fail(self, message: str) -> CheckResult:
        return CheckResult.failure(message, self.config.failure_code)

    def evaluate(
        self,
        requirement: Requirement | Sequence[str],
        ctx: EvalContext | None = None,
    ) -> CheckResult:
        if not isinstance(requirement, Requirement):
            requirement = Requirement.parse(requirement)
        ctx = ctx or EvalContext()

        if not requirement.args:
            raise RequireSyntaxError(
                f"{requirement.keyword} needs at least one argument", requirement.tokens
            )

        handler = self.registry.get(requirement.keyword)
        if handler is None:
            logger.debug(f"{requirement.keyword} is not built in; trying external checks")
            return self.external.run(requirement)

        logger.debug(f"Evaluating {requirement}")
        return handler(self, requirement, ctx)

    def evaluate_tokens(self, *tokens: str, ctx: EvalContext | None = None) -> CheckResult:
        return self.evaluate(Requirement.parse(tokens), ctx)
