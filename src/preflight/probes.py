from __future__ import annotations

"""System probes consumed by HOST, KERNEL-MODULE and MOUNTPOINT.

CONTRACT
- Inputs: host name, timeout; /proc listings
- Outputs (required):
  - host_reachable() -> bool (one ping attempt)
  - kernel_modules() -> set of loaded module names
  - mountpoints() -> set of mount target paths
- Invariants:
  - Read-only; never modifies system state
  - Module names are normalised with `-` folded to `_`
- Failure:
  - Missing listings yield an empty set (the check then fails, it does not crash)
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from loguru import logger

from .util.shell import run_cmd, which

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def normalize_module(name: str) -> str:
    return name.replace("-", "_")


def normalize_mountpoint(path: str) -> str:
    if path != "/":
        path = path.rstrip("/")
    return path or "/"


def _unescape_mount(field: str) -> str:
    # /proc/mounts encodes space, tab, newline and backslash as \ooo
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


class SystemProbe(Protocol):
    def host_reachable(self, host: str, timeout_s: float) -> bool: ...

    def kernel_modules(self) -> set[str]: ...

    def mountpoints(self) -> set[str]: ...


@dataclass
class LinuxSystemProbe:
    """Probe backed by `ping`, /proc/modules and /proc/mounts."""

    modules_path: Path = Path("/proc/modules")
    mounts_path: Path = Path("/proc/mounts")
    ping: str = "ping"

    def host_reachable(self, host: str, timeout_s: float) -> bool:
        ping_bin = which(self.ping)
        if ping_bin is None:
            logger.warning(f"{self.ping} not found in PATH; HOST checks will fail")
            return False
        wait = str(max(1, int(round(timeout_s))))
        # Extra second on the subprocess timeout so ping's own -W fires first.
        res = run_cmd([ping_bin, "-c", "1", "-W", wait, host], timeout_s=timeout_s + 1)
        logger.debug(f"ping {host}: rc={res.returncode} in {res.elapsed_s:.2f}s")
        return res.ok

    def kernel_modules(self) -> set[str]:
        if not self.modules_path.exists():
            logger.debug(f"{self.modules_path} missing; no modules listed")
            return set()
        lines = self.modules_path.read_text(encoding="utf-8").splitlines()
        return {normalize_module(ln.split()[0]) for ln in lines if ln.strip()}

    def mountpoints(self) -> set[str]:
        if not self.mounts_path.exists():
            logger.debug(f"{self.mounts_path} missing; no mounts listed")
            return set()
        out: set[str] = set()
        for ln in self.mounts_path.read_text(encoding="utf-8").splitlines():
            fields = ln.split()
            if len(fields) >= 2:
                out.add(normalize_mountpoint(_unescape_mount(fields[1])))
        return out
