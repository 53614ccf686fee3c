from __future__ import annotations

"""Environment health checks.

CONTRACT
- Inputs: PreflightConfig, SystemProbe-backing paths
- Outputs (required):
  - DoctorReport (ok=bool, items=[(name, status, details)])
- Invariants:
  - Checks: ping binary, module list, mount table, device dir, each search-path directory, external checks, event log
  - Does not modify system state (read-only checks)
- Failure:
  - Returns DoctorReport with ok=False if a critical check fails (device dir, mount table)
"""

from dataclasses import dataclass
from pathlib import Path

from .config import PreflightConfig
from .external import ExternalCheckLoader
from .probes import LinuxSystemProbe
from .util.events import EventLog
from .util.shell import which


@dataclass(frozen=True)
class DoctorItem:
    name: str
    status: str
    details: str


@dataclass(frozen=True)
class DoctorReport:
    ok: bool
    items: list[DoctorItem]


def doctor_report(
    config: PreflightConfig | None = None,
    probe: LinuxSystemProbe | None = None,
    verbose: bool = False,
) -> DoctorReport:
    config = config or PreflightConfig()
    probe = probe or LinuxSystemProbe()
    items: list[DoctorItem] = []
    ok = True

    # 1. Critical: device dir and mount table back DEVICE / MOUNTPOINT
    if config.device_dir.is_dir():
        items.append(DoctorItem("device dir", "OK", str(config.device_dir)))
    else:
        ok = False
        items.append(DoctorItem("device dir", "FAIL", f"{config.device_dir} is not a directory"))

    if probe.mounts_path.exists():
        items.append(DoctorItem("mount table", "OK", str(probe.mounts_path)))
    else:
        ok = False
        items.append(DoctorItem("mount table", "FAIL", f"{probe.mounts_path} missing; MOUNTPOINT will fail"))

    # 2. Optional collaborators
    if probe.modules_path.exists():
        items.append(DoctorItem("module list", "OK", str(probe.modules_path)))
    else:
        items.append(
            DoctorItem("module list", "WARN", f"{probe.modules_path} missing; KERNEL-MODULE will fail")
        )

    ping_bin = which(probe.ping)
    if ping_bin:
        items.append(DoctorItem("ping", "OK", ping_bin))
    else:
        items.append(DoctorItem("ping", "WARN", f"{probe.ping} not found; HOST checks will fail"))

    # 3. External check search path
    for directory in config.check_dirs():
        if directory.is_dir():
            items.append(DoctorItem("search path", "OK", str(directory)))
        elif verbose:
            items.append(DoctorItem("search path", "INFO", f"{directory} (missing)"))

    loader = ExternalCheckLoader(config.check_dirs())
    checks = loader.available()
    if checks:
        for check in checks:
            items.append(DoctorItem(f"external {check.keyword}", "OK", str(check.path)))
    else:
        items.append(DoctorItem("external checks", "INFO", "no REQUIRE_* executables found"))

    # 4. Event log, when configured
    if config.event_log is not None:
        if config.event_log.exists():
            events = EventLog(config.event_log).read()
            items.append(DoctorItem("event log", "OK", f"{config.event_log} ({len(events)} events)"))
        else:
            items.append(DoctorItem("event log", "INFO", f"{config.event_log} (not written yet)"))

    return DoctorReport(ok=ok, items=items)
