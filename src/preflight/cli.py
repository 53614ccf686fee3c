"""CLI entrypoint.

Primary command:
- preflight check KEYWORD ARGS...

Utilities:
- preflight keywords
- preflight doctor
- preflight init

CONTRACT
- Inputs: Command line arguments (parsed by Typer)
- Outputs (required):
  - Exit code 0 when the requirement holds
  - The failure code (80 by default) when it does not
  - 64 (EX_USAGE) on a malformed requirement, 78 (EX_CONFIG) on a bad config file
- Invariants:
  - Options come before the requirement tokens; everything after the keyword is passed through
- Failure:
  - Messages go to stderr; --json prints a CheckReport on stdout instead
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from .checks import SYNOPSIS
from .config import PreflightConfig, discover_config, load_config
from .doctor import doctor_report
from .errors import ConfigError, ExitCode, RequireSyntaxError
from .model import Requirement
from .report import CheckReport
from .session import Session

app = typer.Typer(add_completion=False, help="Check shell-style preconditions (REQUIRE).")

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool):
    if value:
        from . import __version__

        console.print(f"preflight version: {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    # Resolve sys.stderr per message; test runners swap it out.
    logger.add(lambda msg: sys.stderr.write(msg), level="DEBUG" if verbose else "WARNING")


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr."),
):
    _configure_logging(verbose)


_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Config file (default: ./.preflight.yaml if present).",
)
_VAR_OPTION = typer.Option(
    None,
    "--var",
    help="Variable binding NAME=VALUE (repeatable).",
)
_ENV_OPTION = typer.Option(
    True,
    "--env/--no-env",
    help="Resolve VARIABLE names from the process environment too.",
)
_ARG_OPTION = typer.Option(
    None,
    "--arg",
    help="Caller argument, for `<test> <n> ARGUMENTS` (repeatable).",
)
_CALLER_OPTION = typer.Option(
    None,
    "--caller",
    help="Caller name used in failure messages.",
)
_JSON_OPTION = typer.Option(
    False,
    "--json",
    help="Print a JSON report.",
)
_PROJECT_OPTION = typer.Option(
    Path("."),
    "--project",
    help="Project root (default: current dir).",
)


def _load_config(path: Path | None) -> PreflightConfig:
    try:
        return load_config(path) if path else discover_config()
    except (ConfigError, OSError) as e:
        err_console.print(f"Config error: {e}", markup=False)
        raise typer.Exit(code=int(ExitCode.CONFIG))


def _parse_vars(items: list[str] | None) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in items or []:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected NAME=VALUE, got: {item}", param_hint="--var")
        out[name] = value
    return out


@app.command(
    context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True}
)
def check(
    tokens: list[str] = typer.Argument(..., help="KEYWORD ARGS... e.g. FILE /etc/hosts"),
    config: Path | None = _CONFIG_OPTION,
    var: list[str] | None = _VAR_OPTION,
    env: bool = _ENV_OPTION,
    arg: list[str] | None = _ARG_OPTION,
    caller: str | None = _CALLER_OPTION,
    as_json: bool = _JSON_OPTION,
) -> None:
    """Evaluate one requirement."""
    cfg = _load_config(config)
    variables = dict(os.environ) if env else {}
    variables.update(_parse_vars(var))

    session = Session(config=cfg, variables=variables, args=arg or [], caller=caller)
    try:
        result = session.evaluate(*tokens)
    except RequireSyntaxError as e:
        err_console.print(f"REQUIRE syntax error: {e}", markup=False)
        raise typer.Exit(code=int(ExitCode.USAGE))

    if as_json:
        report = CheckReport.from_result(Requirement.parse(tokens), result, caller=caller)
        console.print_json(report.model_dump_json())
    elif not result.ok:
        err_console.print(result.message, markup=False)
    if not result.ok:
        raise typer.Exit(code=result.code)


@app.command()
def keywords() -> None:
    """List built-in requirement keywords."""
    table = Table(title="preflight keywords")
    table.add_column("Keyword")
    table.add_column("Synopsis")
    for keyword, synopsis in SYNOPSIS.items():
        table.add_row(keyword.value, synopsis)
    console.print(table)
    console.print("Other keywords run REQUIRE_<KEYWORD> from the search path.")


@app.command()
def doctor(
    config: Path | None = _CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", help="Show more details."),
) -> None:
    """Environment and search-path checks."""
    cfg = _load_config(config)
    report = doctor_report(config=cfg, verbose=verbose)
    table = Table(title="preflight doctor")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")
    for item in report.items:
        table.add_row(item.name, item.status, item.details)
    console.print(table)
    if report.ok:
        console.print("[green]OK[/green]")
    else:
        raise typer.Exit(code=2)


@app.command()
def init(
    project: Path = _PROJECT_OPTION,
    force: bool = typer.Option(False, "--force", help="Overwrite existing config."),
) -> None:
    """Write a `.preflight.yaml` template into a project."""
    from .init import write_templates

    written = write_templates(project, force=force)
    if written:
        for path in written:
            console.print(f"[green]Wrote[/green] {path}")
    else:
        console.print("Config already present; use --force to overwrite.")


if __name__ == "__main__":
    app()
