"""preflight package.

Shell-style precondition checks (`REQUIRE`) for Python callers:

    import preflight

    # One-off check
    result = preflight.require("FILE", "/etc/hosts")

    # Branch on a failure, escalate when there is no fallback
    session = preflight.Session(variables=os.environ, args=sys.argv[1:], caller="deploy")
    session.require("AT-LEAST", "1", "ARGUMENT") or session.error()
    session.require("VARIABLE", "PORT", "AS", "INTEGER", "IS", "AT-MOST", "65535") or session.error(2)
"""

from collections.abc import Mapping, Sequence

from .config import PreflightConfig, discover_config, load_config
from .errors import (
    ConfigError,
    DuplicateRequirementError,
    ExitCode,
    PreflightError,
    RegistryFrozenError,
    RequirementNotMet,
    RequireSyntaxError,
)
from .evaluator import EvalContext, Evaluator, VariableLookup
from .external import ExternalCheck, ExternalCheckLoader
from .model import CheckResult, Comparison, Keyword, Requirement
from .registry import RequirementRegistry, default_registry
from .session import Session
from .state import ErrorReporter, ErrorState

__version__ = "0.1.0"


def require(
    *tokens: str,
    variables: Mapping[str, str] | VariableLookup | None = None,
    args: Sequence[str] = (),
    caller: str | None = None,
    config: PreflightConfig | None = None,
) -> CheckResult:
    """Evaluate one requirement in a throwaway session.

    Args:
        tokens: Keyword followed by its arguments, e.g. ("INTEGER", "5", "IS", "AT-LEAST", "3").
        variables: Bindings for VARIABLE checks (mapping or lookup callable).
        args: Arguments the calling function received, for `<test> <n> ARGUMENTS`.
        caller: Name used to prefix ARGUMENT failures.
        config: Defaults to PreflightConfig().

    Returns:
        CheckResult (truthy when the requirement holds).

    Raises:
        RequireSyntaxError: the requirement is malformed.
    """
    session = Session(config=config, variables=variables, args=args, caller=caller)
    return session.evaluate(*tokens)


__all__ = [
    "require",
    "CheckResult",
    "Comparison",
    "ConfigError",
    "DuplicateRequirementError",
    "ErrorReporter",
    "ErrorState",
    "EvalContext",
    "Evaluator",
    "ExitCode",
    "ExternalCheck",
    "ExternalCheckLoader",
    "Keyword",
    "PreflightConfig",
    "PreflightError",
    "RegistryFrozenError",
    "Requirement",
    "RequirementNotMet",
    "RequirementRegistry",
    "RequireSyntaxError",
    "Session",
    "default_registry",
    "discover_config",
    "load_config",
]
