from __future__ import annotations

"""Configuration model.

CONTRACT
- Inputs: YAML file path (.preflight.yaml) or dictionary data
- Outputs (required):
  - Validated PreflightConfig
- Invariants:
  - Search path order is project-local library first, then user-level locations
  - Timeouts are positive; failure_code is 1..255
  - Relative paths resolve against the config file's directory
- Failure:
  - Raises ConfigError on invalid schema
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError, ExitCode
from .util.paths import expand_path

CONFIG_FILENAME = ".preflight.yaml"

DEFAULT_PROJECT_LIB = "lib"
DEFAULT_SEARCH_PATH = (
    "~/scripts/lib",
    "~/lib/sh",
    "~/lib",
    "~/.local/lib/sh",
    "~/.local/lib",
)


@dataclass(frozen=True)
class PreflightConfig:
    project_lib: Path = field(default_factory=lambda: Path(DEFAULT_PROJECT_LIB))
    search_path: tuple[Path, ...] = field(
        default_factory=lambda: tuple(Path(p).expanduser() for p in DEFAULT_SEARCH_PATH)
    )
    device_dir: Path = Path("/dev")
    host_timeout_s: float = 5.0
    external_timeout_s: float = 30.0
    failure_code: int = int(ExitCode.REQUIREMENT_FAILED)
    event_log: Path | None = None

    def check_dirs(self) -> list[Path]:
        """Ordered directories searched for external checks."""
        return [self.project_lib, *self.search_path]


CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "project_lib": {"type": "string", "minLength": 1},
        "search_path": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "device_dir": {"type": "string", "minLength": 1},
        "host_timeout_s": {"type": "number", "exclusiveMinimum": 0},
        "external_timeout_s": {"type": "number", "exclusiveMinimum": 0},
        "failure_code": {"type": "integer", "minimum": 1, "maximum": 255},
        "event_log": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}


def config_from_dict(data: dict[str, Any], base: Path | None = None) -> PreflightConfig:
    import jsonschema  # lazy import

    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid preflight config: {e.message}") from e

    base = base or Path.cwd()
    search_raw = data.get("search_path", list(DEFAULT_SEARCH_PATH))
    event_log = data.get("event_log")
    return PreflightConfig(
        project_lib=expand_path(data.get("project_lib", DEFAULT_PROJECT_LIB), base),
        search_path=tuple(expand_path(p, base) for p in search_raw),
        device_dir=expand_path(data.get("device_dir", "/dev"), base),
        host_timeout_s=float(data.get("host_timeout_s", 5.0)),
        external_timeout_s=float(data.get("external_timeout_s", 30.0)),
        failure_code=int(data.get("failure_code", ExitCode.REQUIREMENT_FAILED)),
        event_log=expand_path(event_log, base) if event_log else None,
    )


def load_config(path: Path) -> PreflightConfig:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid preflight config: {path} must contain a mapping")
    return config_from_dict(data, base=path.resolve().parent)


def discover_config(start: Path | None = None) -> PreflightConfig:
    """Load `.preflight.yaml` from `start` (default: cwd) or fall back to defaults."""
    base = (start or Path.cwd()).resolve()
    candidate = base / CONFIG_FILENAME
    if candidate.is_file():
        return load_config(candidate)
    return PreflightConfig(project_lib=base / DEFAULT_PROJECT_LIB)


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Config Loader CLI")
    parser.add_argument("--config", required=True, help="Path to .preflight.yaml")
    args = parser.parse_args()

    try:
        cfg = load_config(Path(args.config))
        print(f"Search path: {[str(p) for p in cfg.check_dirs()]}")
        print(f"Timeouts: host={cfg.host_timeout_s}s external={cfg.external_timeout_s}s")
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
