from __future__ import annotations

"""Subprocess execution.

CONTRACT
- Inputs: argv list (or command string), cwd, env overrides, timeout
- Outputs (required):
  - CmdResult(returncode, stdout, stderr, elapsed_s)
- Invariants:
  - Never raises for non-zero exit; caller inspects returncode
  - Timeout maps to returncode 124 and timed_out=True, exec failure (missing/not executable) to 126
- Failure:
  - Returns CmdResult describing the failure instead of raising
"""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from ..errors import ExitCode

EXEC_FAILED = 126


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def which(cmd: str, path: str | None = None) -> str | None:
    search = os.environ.get("PATH", "") if path is None else path
    for p in search.split(os.pathsep):
        if not p:
            continue
        candidate = Path(p) / cmd
        if is_executable(candidate):
            return str(candidate)
    return None


@dataclass(frozen=True)
class CmdResult:
    cmd: str
    returncode: int
    stdout: str
    stderr: str
    elapsed_s: float
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def last_line(self) -> str:
        """Last non-blank diagnostic line, preferring stderr."""
        for stream in (self.stderr, self.stdout):
            lines = [ln.strip() for ln in stream.splitlines() if ln.strip()]
            if lines:
                return lines[-1]
        return ""


def run_cmd(
    cmd: str | list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout_s: float | None = None,
) -> CmdResult:
    """Run a command and capture its output.

    A str runs through the shell, a list runs directly (shell=False).
    """
    use_shell = isinstance(cmd, str)
    timed_out = False

    start_t = time.time()
    try:
        p = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            shell=use_shell,
            env=(os.environ | env) if env else None,
            capture_output=True,
            timeout=timeout_s,
            text=True,
        )
        rc, out, err = p.returncode, p.stdout or "", p.stderr or ""
    except subprocess.TimeoutExpired as e:
        rc = int(ExitCode.TIMEOUT)
        timed_out = True
        out = _as_text(e.stdout)
        err = _as_text(e.stderr) + "\nTimeout expired.\n"
    except OSError as e:
        rc = EXEC_FAILED
        out, err = "", f"Exception: {e}\n"

    return CmdResult(
        cmd=cmd if use_shell else " ".join(str(c) for c in cmd),
        returncode=rc,
        stdout=out,
        stderr=err,
        elapsed_s=time.time() - start_t,
        timed_out=timed_out,
    )


def _as_text(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


if __name__ == "__main__":
    import argparse
    import shlex
    import sys

    parser = argparse.ArgumentParser(description="Run a command and show captured output")
    parser.add_argument("--cmd", required=True, help="Command to run")
    parser.add_argument("--timeout", type=float, default=10, help="Timeout in seconds")
    args = parser.parse_args()

    res = run_cmd(shlex.split(args.cmd), timeout_s=args.timeout)
    print(f"Exit code: {res.returncode}")
    print(f"Stdout: {res.stdout}")
    print(f"Stderr: {res.stderr}")
    sys.exit(res.returncode)
