from __future__ import annotations

"""Built-in requirement checks.

Every handler takes ``(evaluator, requirement, ctx)`` and returns a
CheckResult. Malformed invocations raise RequireSyntaxError; conditions that
simply do not hold come back as failures.

Clause handling (``IS``, ``AS``) re-enters the evaluator with a rewritten
requirement, so ``VARIABLE PORT AS INTEGER IS AT-MOST 65535`` is checked as
``INTEGER <value of PORT> IS AT-MOST 65535`` and the innermost failure is
what the caller sees.
"""

import re
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import RequireSyntaxError
from .model import ARGUMENT_WORDS, CheckResult, Comparison, Keyword, Requirement
from .probes import normalize_module, normalize_mountpoint

if TYPE_CHECKING:
    from .evaluator import EvalContext, Evaluator
    from .registry import Handler

INTEGER_RE = re.compile(r"[0-9]+")
VALID_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_integer(value: str) -> bool:
    return INTEGER_RE.fullmatch(value) is not None


def is_valid_name(name: str) -> bool:
    return VALID_NAME_RE.fullmatch(name) is not None


def _single_arg(req: Requirement) -> str:
    if len(req.args) != 1:
        raise RequireSyntaxError(f"{req.keyword} takes exactly one argument", req.tokens)
    return req.args[0]


# -- filesystem ---------------------------------------------------------------


def check_file(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    path = _single_arg(req)
    if path and Path(path).is_file():
        return CheckResult.success()
    return ev.fail(f"File not found: {path}")


def check_directory(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    path = _single_arg(req)
    if path and Path(path).is_dir():
        return CheckResult.success()
    return ev.fail(f"Directory not found: {path}")


def check_pipe(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    path = _single_arg(req)
    if path and Path(path).is_fifo():
        return CheckResult.success()
    return ev.fail(f"Named pipe not found: {path}")


def check_block_device(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    path = _single_arg(req)
    if path and Path(path).is_block_device():
        return CheckResult.success()
    return ev.fail(f"Block device not found: {path}")


def check_device(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    name = _single_arg(req)
    # Absolute names still resolve under device_dir.
    path = ev.config.device_dir / name.lstrip("/")
    if name.strip("/") and (path.is_block_device() or path.is_char_device()):
        return CheckResult.success()
    return ev.fail(f"Device not found: {path}")


# -- system -------------------------------------------------------------------


def check_host(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    host = _single_arg(req)
    if host and ev.probe.host_reachable(host, ev.config.host_timeout_s):
        return CheckResult.success()
    return ev.fail(f"Host unreachable: {host}")


def check_kernel_module(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    name = _single_arg(req)
    if name and normalize_module(name) in ev.probe.kernel_modules():
        return CheckResult.success()
    return ev.fail(f"Kernel module not loaded: {name}")


def check_mountpoint(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    path = _single_arg(req)
    if path and normalize_mountpoint(path) in ev.probe.mountpoints():
        return CheckResult.success()
    return ev.fail(f"Not a mountpoint: {path}")


# -- values -------------------------------------------------------------------


def check_integer(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    value, *clause = req.args
    if not is_integer(value):
        if ctx.label:
            return ev.fail(f"{ctx.label} must be an integer (got '{value}')")
        return ev.fail(f"Not an integer: '{value}'")
    if not clause:
        return CheckResult.success()

    if clause[0] != "IS" or len(clause) not in (3, 4):
        raise RequireSyntaxError(
            f"{req.keyword} clause must be: IS <test> <value> [label]", req.tokens
        )
    test, bound = clause[1], clause[2]
    comparison = Comparison.lookup(test)
    if comparison is None:
        raise RequireSyntaxError(f"Unknown comparison test: {test}", req.tokens)
    if not is_integer(bound):
        raise RequireSyntaxError(f"Comparison value must be an integer: '{bound}'", req.tokens)

    label = clause[3] if len(clause) == 4 else (ctx.label or req.keyword)
    if comparison.holds(int(value), int(bound)):
        return CheckResult.success()
    return ev.fail(f"{label} must be {comparison.phrase} {bound} (got {value})")


def check_argument_count(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    """`<test> <n> ARGUMENT|ARGUMENTS`: arity check on the caller's arguments."""
    if len(req.args) != 2 or req.args[1] not in ARGUMENT_WORDS:
        raise RequireSyntaxError(
            f"{req.keyword} takes exactly: <n> ARGUMENT|ARGUMENTS", req.tokens
        )
    bound = req.args[0]
    label = f"{ctx.caller}: argument count" if ctx.caller else "argument count"
    nested = Requirement(
        Keyword.INTEGER.value, (str(len(ctx.args)), "IS", req.keyword, bound, label)
    )
    return ev.evaluate(nested, ctx)


def check_valid_name(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    name = _single_arg(req)
    if is_valid_name(name):
        return CheckResult.success()
    return ev.fail(f"Invalid name: '{name}'")


def _parse_as(req: Requirement, clause: list[str]) -> tuple[str, tuple[str, ...]]:
    if len(clause) < 2 or clause[0] != "AS":
        raise RequireSyntaxError(
            f"{req.keyword} clause must be: AS <condition> [args...]", req.tokens
        )
    condition, *rest = clause[1:]
    return condition, tuple(rest)


def check_variable(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    name, *clause = req.args
    valid = ev.evaluate(Requirement(Keyword.VALID_NAME.value, (name,)), ctx)
    if not valid:
        return valid
    # Syntax errors in the clause surface even when the variable is unset.
    parsed = _parse_as(req, clause) if clause else None

    value = ctx.lookup(name)
    if value is None:
        return ev.fail(f"Variable not set: {name}")
    if value == "":
        return ev.fail(f"Variable is empty: {name}")
    if parsed is None:
        return CheckResult.success()
    condition, rest = parsed
    return ev.evaluate(Requirement(condition, (value, *rest)), ctx.nested(name))


def check_argument(ev: Evaluator, req: Requirement, ctx: EvalContext) -> CheckResult:
    value, *clause = req.args
    if not clause:
        raise RequireSyntaxError(
            f"{req.keyword} requires: ARGUMENT <value> AS <condition>", req.tokens
        )
    condition, rest = _parse_as(req, clause)
    result = ev.evaluate(Requirement(condition, (value, *rest)), ctx.nested(ctx.label or "argument"))
    return result.with_prefix(ctx.caller or "")


BUILTIN_CHECKS: dict[Keyword, Handler] = {
    Keyword.FILE: check_file,
    Keyword.DIRECTORY: check_directory,
    Keyword.PIPE: check_pipe,
    Keyword.BLOCK_DEVICE: check_block_device,
    Keyword.DEVICE: check_device,
    Keyword.HOST: check_host,
    Keyword.INTEGER: check_integer,
    Keyword.VALID_NAME: check_valid_name,
    Keyword.KERNEL_MODULE: check_kernel_module,
    Keyword.MOUNTPOINT: check_mountpoint,
    Keyword.VARIABLE: check_variable,
    Keyword.ARGUMENT: check_argument,
    Keyword.AT_LEAST: check_argument_count,
    Keyword.NO_LESS_THAN: check_argument_count,
    Keyword.GREATER_THAN: check_argument_count,
    Keyword.LESS_THAN: check_argument_count,
    Keyword.NO_GREATER_THAN: check_argument_count,
    Keyword.AT_MOST: check_argument_count,
    Keyword.EXACTLY: check_argument_count,
}

SYNOPSIS: dict[Keyword, str] = {
    Keyword.FILE: "FILE <path>",
    Keyword.DIRECTORY: "DIRECTORY <path>",
    Keyword.PIPE: "PIPE <path>",
    Keyword.BLOCK_DEVICE: "BLOCK-DEVICE <path>",
    Keyword.DEVICE: "DEVICE <name>",
    Keyword.HOST: "HOST <host>",
    Keyword.INTEGER: "INTEGER <value> [IS <test> <n> [label]]",
    Keyword.VALID_NAME: "VALID-NAME <name>",
    Keyword.KERNEL_MODULE: "KERNEL-MODULE <module>",
    Keyword.MOUNTPOINT: "MOUNTPOINT <path>",
    Keyword.VARIABLE: "VARIABLE <name> [AS <condition> ...]",
    Keyword.ARGUMENT: "ARGUMENT <value> AS <condition> ...",
    **{
        kw: f"{kw.value} <n> ARGUMENT|ARGUMENTS"
        for kw in (
            Keyword.AT_LEAST,
            Keyword.NO_LESS_THAN,
            Keyword.GREATER_THAN,
            Keyword.LESS_THAN,
            Keyword.NO_GREATER_THAN,
            Keyword.AT_MOST,
            Keyword.EXACTLY,
        )
    },
}
